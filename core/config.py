"""
Application configuration using Pydantic Settings.

Typed, validated settings for the calculator, loaded from environment
variables and an optional ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging output settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Minimum log level")
    json_format: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Upper-case the level and reject unknown names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class TaxRateSettings(BaseSettings):
    """Default tax rates for new calculators (Mexican CFDI defaults)."""

    model_config = SettingsConfigDict(env_prefix="TAX_")

    vat_rate: float = Field(default=0.16, ge=0, le=1, description="VAT (IVA) rate")
    income_tax_rate: float = Field(
        default=0.10, ge=0, le=1, description="Income tax withheld (ISR) rate"
    )
    vat_retention_fraction: float = Field(
        default=0.6666666667,
        ge=0,
        le=1,
        description="Fraction of the VAT amount that is withheld",
    )


class GoalSeekSettings(BaseSettings):
    """Bounds for the goal seek search."""

    model_config = SettingsConfigDict(env_prefix="GOAL_SEEK_")

    max_iterations: int = Field(default=80, ge=1, description="Bisection steps")
    tolerance: float = Field(default=0.0005, gt=0, description="Accepted net deviation")
    search_range: float = Field(
        default=2000.0, gt=0, description="Half-width of the initial bracket"
    )
    max_attempts: int = Field(default=40, ge=0, description="Bracket widening attempts")


class ExportSettings(BaseSettings):
    """Export file settings."""

    model_config = SettingsConfigDict(env_prefix="EXPORT_")

    csv_filename: str = Field(default="invoice_breakdown.csv")
    json_filename: str = Field(default="invoice_breakdown.json")
    json_indent: int = Field(default=2, ge=0)


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_prefix="CFDI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Log at DEBUG regardless of LOG_LEVEL")
    language: Literal["en", "es"] = Field(default="en", description="Message language")
    app_version: str = Field(default="1.0.0", description="Version stamped on exports")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rates: TaxRateSettings = Field(default_factory=TaxRateSettings)
    goal_seek: GoalSeekSettings = Field(default_factory=GoalSeekSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)

    @field_validator("language", mode="before")
    @classmethod
    def parse_language(cls, v: object) -> object:
        """Accept locale strings such as ``es-MX`` or ``EN_us``."""
        if isinstance(v, str):
            return v.strip().replace("_", "-").split("-")[0].lower()
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()
