"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Only the composition root (orchestrator, Streamlit app)
reads settings. The ledger and the engines receive plain values, so
they never depend on the environment.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the expense and audit files"
    )
    key: str = Field(
        default="expenses",
        min_length=1,
        description="Storage key; the ledger is saved as <key>.json"
    )
    audit_log_enabled: bool = Field(
        default=True,
        description="Append audit events to <data_dir>/audit.jsonl"
    )

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """The key becomes a file name, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key must not contain path separators: {v}")
        return v

    @property
    def audit_path(self) -> Path:
        return self.data_dir / "audit.jsonl"


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

    # View defaults
    default_page_size: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Rows per page in the expense table"
    )
    amount_filter_ceiling: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Upper end of the amount filter slider"
    )

    # Metrics
    recent_window_days: int = Field(
        default=7,
        ge=1,
        description="How many days count as 'recent' activity"
    )
    trend_months: int = Field(
        default=12,
        ge=1,
        le=60,
        description="Number of months in the spending trend"
    )

    # Display
    currency_code: str = Field(
        default="INR",
        description="Currency shown next to amounts"
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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks and the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except ValueError as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except ValueError as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
