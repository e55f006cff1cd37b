"""
Core infrastructure package for the Dialer Reports backend.

Provides:
- Configuration management via pydantic-settings
- The Thresholds table threaded into every service call
- FastAPI dependency injection utilities

This module re-exports key components from submodules for convenient importing:

    from dialer_reports.core import get_settings, Thresholds, ThresholdsDep
"""

# =============================================================================
# Re-exports from dialer_reports.core.config
# =============================================================================
from dialer_reports.core.config import (
    DEFAULT_WASTE_DISPOSITIONS,
    Settings,
    Thresholds,
    get_settings,
)

# =============================================================================
# Re-exports from dialer_reports.core.dependencies
# =============================================================================
from dialer_reports.core.dependencies import (
    get_settings_dependency,
    get_thresholds_dependency,
    SettingsDep,
    ThresholdsDep,
)

__all__ = [
    # Configuration management (from config.py)
    'DEFAULT_WASTE_DISPOSITIONS',
    'Settings',
    'Thresholds',
    'get_settings',
    # FastAPI dependencies (from dependencies.py)
    'get_settings_dependency',
    'get_thresholds_dependency',
    'SettingsDep',
    'ThresholdsDep',
]
