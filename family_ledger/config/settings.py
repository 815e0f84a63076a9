"""
Configuration Management for Family Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The endpoint URL, display preferences and aggregation window used to live in
the browser; here they are plain settings validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Currencies a user can pick as the display currency
SELECTABLE_CURRENCIES = [
    "TWD", "USD", "JPY", "EUR", "CNY", "AUD",
    "CAD", "CHF", "GBP", "HKD", "KRW", "SGD", "VND",
]


class LedgerEndpointSettings(BaseSettings):
    """Spreadsheet web-app endpoint configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_ENDPOINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="URL of the spreadsheet web-app script"
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="HTTP timeout for reads and writes"
    )
    read_attempts: int = Field(
        default=3,
        ge=1,
        le=5,
        description="How many times a failed snapshot read is attempted"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only http(s) endpoints are reachable."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Endpoint URL must start with http:// or https://: {v}")
        return v


class DisplaySettings(BaseSettings):
    """How the dashboard is presented."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_DISPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    title: str = Field(
        default="家庭資產記帳本",
        max_length=100,
        description="Dashboard title"
    )
    currency: str = Field(
        default="TWD",
        description="Currency all totals are converted into"
    )
    owner: str = Field(
        default="all",
        description="Initial owner filter (all, husband, wife, family)"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in SELECTABLE_CURRENCIES:
            raise ValueError(
                f"Unsupported display currency: {v}. Allowed: {SELECTABLE_CURRENCIES}"
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Aggregation
    history_window_months: int = Field(
        default=12,
        ge=1,
        le=36,
        description="How many recent history months the trend charts consume"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def endpoint(self) -> LedgerEndpointSettings:
        return LedgerEndpointSettings()

    @property
    def display(self) -> DisplaySettings:
        return DisplaySettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<setting_name>_error" entry for each failure.
    """
    results = {}

    settings = get_settings()

    for name in ("endpoint", "display", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
