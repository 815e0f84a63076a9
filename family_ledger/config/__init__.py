"""Configuration package."""

from family_ledger.config.settings import (
    SELECTABLE_CURRENCIES,
    AppSettings,
    DisplaySettings,
    LedgerEndpointSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SELECTABLE_CURRENCIES",
    "AppSettings",
    "DisplaySettings",
    "LedgerEndpointSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
