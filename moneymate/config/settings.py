"""
Configuration Management for Money Mate

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Display currencies, the fallback exchange rate and the hosted store
location are all read once and passed explicitly into the ledger and
reporting code. Nothing downstream reads ambient global state.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per collection
    transactions_sheet_name: str = Field(default="Transactions")
    debts_sheet_name: str = Field(default="Debts")
    debt_payments_sheet_name: str = Field(default="DebtPayments")
    preferences_sheet_name: str = Field(default="UserPreferences")
    family_access_sheet_name: str = Field(default="FamilyAccess")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class SessionSettings(BaseSettings):
    """Identity signed in by the configured auth provider."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYMATE_USER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Stable user id used as the owner reference on records"
    )
    email: str = Field(
        ...,
        description="Email address of the signed-in user"
    )
    display_name: Optional[str] = Field(
        default=None,
        description="Name shown in the greeting"
    )


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
    log_level: str = Field(
        default="INFO",
        description="Standard library log level for local structured logs"
    )

    # Currencies
    base_currency: str = Field(
        default="CAD",
        description="Currency amounts are entered and stored in"
    )
    secondary_currency: str = Field(
        default="INR",
        description="Display-only currency derived via the exchange rate"
    )
    default_exchange_rate: Decimal = Field(
        default=Decimal("61.5"),
        gt=0,
        description="Base to secondary rate used until the user sets one"
    )
    default_theme: str = Field(
        default="light",
        pattern="^(light|dark)$",
    )

    # Dashboard limits
    recent_transactions_limit: int = Field(default=5, ge=1, le=100)
    dashboard_debts_limit: int = Field(default=5, ge=1, le=100)


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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

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
    "<name>_error" entry for every section that failed to load.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
