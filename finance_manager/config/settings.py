"""
Configuration Management for Finance Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Insight thresholds, storage backend and display currency are read once
and validated at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class InsightSettings(BaseSettings):
    """Thresholds for the rule-based financial insights."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_INSIGHT_",
        extra="ignore"
    )

    high_savings_rate: float = Field(
        default=30.0,
        description="Savings rate (%) above which savings are praised"
    )
    category_income_ratio: float = Field(
        default=0.4,
        gt=0.0,
        description="Share of income one category may take before a warning"
    )


class StorageSettings(BaseSettings):
    """Record storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_STORAGE_",
        extra="ignore"
    )

    backend: Literal["memory", "json"] = Field(
        default="memory",
        description="Which storage implementation to use"
    )
    data_path: str = Field(
        default="finance_data.json",
        description="Path of the JSON document file (json backend only)"
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for snapshot loads and file access"
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

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )

    # Display
    currency_code: str = Field(
        default="HKD",
        min_length=3,
        max_length=3,
        description="ISO currency code used when formatting amounts"
    )
    report_max_insights: int = Field(
        default=3,
        ge=0,
        description="How many insights the text export includes"
    )

    @field_validator('currency_code', 'log_level', mode='before')
    @classmethod
    def upper_case(cls, v):
        return v.upper() if isinstance(v, str) else v


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
    def insights(self) -> InsightSettings:
        return InsightSettings()

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

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    ``<name>_error`` entries for the ones that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("insights", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
