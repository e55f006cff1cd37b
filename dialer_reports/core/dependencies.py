"""
FastAPI dependency injection module for the Dialer Reports backend.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_thresholds_dependency: Returns the Thresholds built from Settings
- SettingsDep: Type alias for injecting Settings into endpoints
- ThresholdsDep: Type alias for injecting Thresholds into endpoints

In tests, either dependency can be replaced through FastAPI's override hook:

    app.dependency_overrides[get_thresholds_dependency] = lambda: Thresholds(min_hours_qualified=1)
"""

from typing import Annotated

from fastapi import Depends

from dialer_reports.core.config import Settings, Thresholds, get_settings


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so FastAPI's dependency override
    mechanism can swap it out in tests.
    """
    return get_settings()


def get_thresholds_dependency(
    settings: Annotated[Settings, Depends(get_settings_dependency)]
) -> Thresholds:
    """
    Return the threshold table for the current settings.

    Args:
        settings: Injected application settings.

    Returns:
        Thresholds: Immutable threshold snapshot threaded into services.
    """
    return settings.thresholds()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(thresholds: ThresholdsDep)
ThresholdsDep = Annotated[Thresholds, Depends(get_thresholds_dependency)]
