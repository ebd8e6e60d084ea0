"""
Application configuration - Settings
Project: Dealer Console

Defines the application settings loaded from environment variables.
"""


from __future__ import annotations
import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration.

    Loads settings from environment variables (and an optional .env file).
    Defaults are suitable for local development.

    To obtain the singleton instance:
    - In FastAPI: use `Depends(get_settings)` for dependency injection
    - Elsewhere: call `get_settings()` directly
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------
    # Application
    # ------------------------------------------------------------
    app_name: str = Field(
        default="Dealer Console",
        description="Application name",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )

    app_env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Runtime environment (development | production | testing)",
    )

    debug: bool = Field(
        default=False,
        description="Debug mode",
    )

    # ------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
        description="Allowed CORS origins",
    )

    # ------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ------------------------------------------------------------
    # Upstream dealership API
    # ------------------------------------------------------------
    upstream_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the dealership REST API",
    )

    upstream_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for every upstream call, in seconds",
    )

    # ------------------------------------------------------------
    # Payment policy
    # ------------------------------------------------------------
    deposit_min_percent: float = Field(
        default=10,
        description="Lowest accepted deposit percentage (inclusive)",
    )

    deposit_max_percent: float = Field(
        default=30,
        description="Highest accepted deposit percentage (inclusive)",
    )

    dealer_scoped_roles: list[str] = Field(
        default_factory=lambda: ["dealer_staff", "dealer_manager"],
        description="Roles that may only take payments for their own dealership",
    )

    # ------------------------------------------------------------
    # Stock re-check after an "insufficient stock" deposit
    # ------------------------------------------------------------
    stock_recheck_attempts: int = Field(
        default=1,
        ge=0,
        le=10,
        description="How many times the order is re-fetched after a stock shortage",
    )

    stock_recheck_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Wait before the first re-fetch",
    )

    stock_recheck_backoff: float = Field(
        default=2.0,
        ge=1,
        description="Multiplier applied to the wait between successive re-fetches",
    )

    # ------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------
    contract_location: str = Field(
        default="Thành phố Hồ Chí Minh",
        description="Place of signature printed on contracts",
    )

    default_dealership_name: str = Field(
        default="Đại lý VinFast",
        description="Dealership label used when the record has no name",
    )

    default_representative: str = Field(
        default="Giám đốc đại lý",
        description="Legal representative label used when the record has none",
    )

    signed_contract_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest accepted scan of a signed contract",
    )

    quote_validity_days: int = Field(
        default=30,
        ge=1,
        description="Validity of a quotation when the quote carries no end date",
    )

    # ------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------

    @field_validator("upstream_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalizes the base URL so that paths can be joined with '/api/...'."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("upstream_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("dealer_scoped_roles")
    @classmethod
    def normalize_roles(cls, v: list[str]) -> list[str]:
        """Lower-cases role names."""
        return [role.strip().lower() for role in v if role.strip()]

    @model_validator(mode="after")
    def validate_deposit_bounds(self) -> "Settings":
        """Deposit bounds must be a non-empty range inside (0, 100]."""
        if not 0 < self.deposit_min_percent <= self.deposit_max_percent <= 100:
            raise ValueError(
                "deposit_min_percent and deposit_max_percent must satisfy "
                "0 < min <= max <= 100"
            )
        return self

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuses development defaults in production."""
        if self.app_env != "production":
            return self

        errors = []

        if "localhost" in self.upstream_base_url or "127.0.0.1" in self.upstream_base_url:
            errors.append("- upstream_base_url: must not point at localhost in production")

        if self.debug:
            errors.append("- debug: must be False in production")

        for origin in self.cors_origins:
            if "localhost" in origin or "127.0.0.1" in origin:
                errors.append(
                    f"- cors_origins: origin '{origin}' is not allowed in production"
                )

        if errors:
            error_msg = "Invalid production configuration:\n" + "\n".join(errors)
            raise ValueError(error_msg)

        if self.stock_recheck_attempts == 0:
            logging.getLogger(__name__).warning(
                "stock_recheck_attempts is 0: stock shortages will never be re-checked"
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Returns the singleton settings instance.

    lru_cache guarantees Settings() is built once and reused everywhere.
    Tests call get_settings.cache_clear() to reset it.

    Returns:
        Settings: application settings
    """
    return Settings()


# Module-level singleton for direct use
settings = get_settings()
