"""
Settings and environment management module for the Dialer Reports backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Optional Slack webhook for ETL completion notifications
- Threshold table driving qualification, coaching and anomaly rules

Environment Variables:
- SLACK_WEBHOOK_URL: Slack webhook for ETL completion messages (optional)
- DASHBOARD_URL: Link included in completion messages
- LOG_LEVEL: Root log level for the API process (default: INFO)
- MIN_HOURS_QUALIFIED, MIN_HOURS_COACHING, ZERO_TRANSFER_MIN_HOURS,
  MIN_CONNECTS_ANOMALY, DEAD_AIR_RATIO_WARNING, DEAD_AIR_RATIO_CRITICAL,
  HUNG_UP_RATIO_WARNING, HUNG_UP_RATIO_CRITICAL, WASTE_DISPOSITIONS:
  threshold overrides (see Thresholds below)

Threshold Defaults:
- min_hours_qualified: 2.0 (Ranking and TPH distribution eligibility)
- min_hours_coaching: 4.0 (Low-TPH z-score and bottom-agent eligibility)
- zero_transfer_min_hours: 4.0 (Zero-transfer anomaly eligibility)
- min_connects_anomaly: 50 (Dead-air / hung-up anomaly eligibility)
- dead_air_ratio_warning / critical: 30.0 / 50.0 percent
- hung_up_ratio_warning / critical: 10.0 / 30.0 percent

Usage:
    from dialer_reports.core.config import get_settings

    settings = get_settings()
    thresholds = settings.thresholds()
    process_day(reports, '2026-01-28', thresholds)
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Default Threshold Values
# =============================================================================

DEFAULT_WASTE_DISPOSITIONS: List[str] = [
    'Not Interested',
    'Dead Air',
    'DNC',
    'Wrong Number',
    'Ans. Machine',
    'Robo',
]


class Thresholds(BaseModel):
    """
    Immutable threshold table passed explicitly into every aggregator and detector.

    Services never read global configuration; the API layer and jobs build a
    Thresholds instance from Settings and thread it through. The defaults here
    match the Settings defaults so tests and library callers can use
    ``Thresholds()`` without any environment.

    Attributes:
        min_hours_qualified: Hours worked required for ranking and the TPH distribution.
        min_hours_coaching: Hours worked required for the low-TPH z-score pass and
            the bottom-agent list.
        zero_transfer_min_hours: Hours worked at which zero transfers is anomalous.
        min_connects_anomaly: Connects required before dead-air / hung-up ratios are judged.
        dead_air_ratio_warning: Dead-air percentage that raises a warning.
        dead_air_ratio_critical: Dead-air percentage that raises a critical.
        hung_up_ratio_warning: Hung-up-transfer percentage that raises a warning.
        hung_up_ratio_critical: Hung-up-transfer percentage that raises a critical.
        waste_dispositions: Disposition labels counted toward the waste rate.
    """

    model_config = ConfigDict(frozen=True)

    min_hours_qualified: float = Field(default=2.0, ge=0)
    min_hours_coaching: float = Field(default=4.0, ge=0)
    zero_transfer_min_hours: float = Field(default=4.0, ge=0)
    min_connects_anomaly: int = Field(default=50, ge=0)
    dead_air_ratio_warning: float = Field(default=30.0, ge=0)
    dead_air_ratio_critical: float = Field(default=50.0, ge=0)
    hung_up_ratio_warning: float = Field(default=10.0, ge=0)
    hung_up_ratio_critical: float = Field(default=30.0, ge=0)
    waste_dispositions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_WASTE_DISPOSITIONS)
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for optional settings

    Attributes:
        slack_webhook_url: Slack incoming webhook URL for completion messages.
        dashboard_url: Dashboard link appended to completion messages.
        log_level: Root logging level name.
        min_hours_qualified .. waste_dispositions: Threshold table overrides.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service Settings
    # =========================================================================

    # Format: https://hooks.slack.com/services/xxx/yyy/zzz
    slack_webhook_url: Optional[str] = None

    dashboard_url: str = 'http://localhost:3000/executive/dialedin'

    log_level: str = 'INFO'

    # =========================================================================
    # Threshold Table
    # =========================================================================

    min_hours_qualified: float = 2.0
    min_hours_coaching: float = 4.0
    zero_transfer_min_hours: float = 4.0
    min_connects_anomaly: int = 50
    dead_air_ratio_warning: float = 30.0
    dead_air_ratio_critical: float = 50.0
    hung_up_ratio_warning: float = 10.0
    hung_up_ratio_critical: float = 30.0

    # JSON list in the environment, e.g. WASTE_DISPOSITIONS='["Dead Air","DNC"]'
    waste_dispositions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_WASTE_DISPOSITIONS)
    )

    def thresholds(self) -> Thresholds:
        """
        Build the immutable Thresholds value from the current settings.

        Returns:
            Thresholds: Snapshot of the threshold fields.
        """
        return Thresholds(
            min_hours_qualified=self.min_hours_qualified,
            min_hours_coaching=self.min_hours_coaching,
            zero_transfer_min_hours=self.zero_transfer_min_hours,
            min_connects_anomaly=self.min_connects_anomaly,
            dead_air_ratio_warning=self.dead_air_ratio_warning,
            dead_air_ratio_critical=self.dead_air_ratio_critical,
            hung_up_ratio_warning=self.hung_up_ratio_warning,
            hung_up_ratio_critical=self.hung_up_ratio_critical,
            waste_dispositions=list(self.waste_dispositions),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value
            (e.g., MIN_CONNECTS_ANOMALY='many').

    Note:
        To refresh settings in tests, you can clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
