"""
Configuration Management for Voice Expense

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable limits live here.
The parser itself never reads the environment; it receives a
ParserSettings instance, which keeps tests hermetic.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserSettings(BaseSettings):
    """Limits and matching behaviour of the command parser."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_EXPENSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Amount range
    min_amount: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Smallest accepted expense amount"
    )
    max_amount: Decimal = Field(
        default=Decimal("999999.99"),
        gt=0,
        description="Largest accepted expense amount"
    )

    # Currency handling
    default_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency used when neither transcript nor locale decide"
    )
    common_currencies: str = Field(
        default="USD,AED,EUR,GBP,INR,SAR",
        description="Comma-separated currencies preferred on keyword ties"
    )
    catalog_path: Optional[str] = Field(
        default=None,
        description="Override path to the currency catalog JSON file"
    )

    # Classification
    category_match_mode: Literal["word", "substring"] = Field(
        default="word",
        description="How category keywords are matched against the transcript"
    )

    # Merchant bounds
    merchant_min_length: int = Field(
        default=3,
        ge=3,
        le=100,
        description="Shortest merchant name kept; a parsed expense accepts 3-100 characters"
    )
    merchant_max_length: int = Field(default=100, ge=3, le=100)

    # Advisory threshold, the caller decides what to do with it
    low_confidence_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence below which a warning is attached"
    )

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def validate_ranges(self) -> "ParserSettings":
        """Validate that the configured ranges make sense."""
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot be greater than max_amount")
        if self.merchant_min_length > self.merchant_max_length:
            raise ValueError("merchant_min_length cannot be greater than merchant_max_length")
        return self

    @property
    def common_currency_codes(self) -> tuple[str, ...]:
        """Get common currencies as an ordered tuple of codes."""
        return tuple(
            code.strip().upper()
            for code in self.common_currencies.split(",")
            if code.strip()
        )

    @property
    def catalog_file(self) -> Path:
        """Path of the catalog file, falling back to the packaged one."""
        if self.catalog_path:
            return Path(self.catalog_path)
        return Path(__file__).resolve().parent.parent / "data" / "currencies.json"


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_EXPENSE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Standard library log level name"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (console renderer otherwise)"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()


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
    def parser(self) -> ParserSettings:
        return ParserSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} with an
    additional {setting_name}_error entry for failures.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    for name in ("parser", "logging"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
