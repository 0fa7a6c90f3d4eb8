"""
Configuration Management for GigLedger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The backend location, retry policy and local session file are the
only external dependencies, and they are validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """GigLedger backend REST service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GIGLEDGER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the backend API (including the /api prefix)"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout in seconds"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for requests that fail before reaching the server"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can always start with '/'."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Backend URL must start with http:// or https://, got {v!r}")
        return v.rstrip("/")


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
        description="Minimum level for local structured logs"
    )

    # Session persistence
    session_file: Path = Field(
        default=Path.home() / ".gigledger" / "session.json",
        description="Where the auth token and user are kept between runs"
    )

    # Request fan-out
    milestone_fetch_concurrency: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Maximum milestone list requests in flight at once"
    )

    # Ledger defaults
    default_tax_percentage: float = Field(
        default=3.0,
        ge=0.0,
        le=100.0,
        description="Tax percentage applied to new credit transactions"
    )
    display_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency code used for displayed amounts"
    )

    # CSV import limits
    max_csv_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum CSV import size in MB"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('display_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def max_csv_upload_size_bytes(self) -> int:
        """Get max CSV upload size in bytes."""
        return self.max_csv_upload_size_mb * 1024 * 1024


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
    def backend(self) -> BackendSettings:
        return BackendSettings()

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
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.backend
        results["backend"] = True
    except Exception as e:
        results["backend"] = False
        results["backend_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
