"""
Centralized configuration management using Pydantic Settings.

Configuration Sources (in order of precedence):
1. Arguments passed to the Synexa client
2. Environment variables
3. .env file
4. Default values

Usage:
    from synexa.infra.settings import get_settings

    settings = get_settings()
    print(settings.SYNEXA_BASE_URL)
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://api.synexa.ai/v1"


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.

    The API key uses SecretStr to prevent accidental logging.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =========================================================================
    # API
    # =========================================================================

    SYNEXA_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="API key sent in the x-api-key header"
    )
    SYNEXA_BASE_URL: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the prediction API"
    )

    # =========================================================================
    # Timeouts
    # =========================================================================

    SYNEXA_REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        ge=1.0,
        le=600.0,
        description="HTTP timeout for create/get requests"
    )
    SYNEXA_WAIT_TIMEOUT_MARGIN_SECONDS: float = Field(
        default=10.0,
        ge=0.0,
        le=300.0,
        description="Extra read time on top of the server-side blocking wait timeout"
    )
    SYNEXA_FILE_FETCH_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        ge=1.0,
        le=3600.0,
        description="HTTP timeout for downloading file outputs"
    )

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    LOG_FORMAT: Literal["json", "console", "auto"] = Field(
        default="auto",
        description="Log output format"
    )
    USE_STRUCTURED_LOGGING: bool = Field(
        default=True,
        description="Use structlog for structured logging"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("SYNEXA_BASE_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended with a leading slash."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("SYNEXA_BASE_URL must be an http(s) URL")
        return v

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def get_api_key(self) -> Optional[str]:
        """
        Get the API key.

        Returns:
            API key or None if not configured
        """
        if self.SYNEXA_API_KEY is None:
            return None
        return self.SYNEXA_API_KEY.get_secret_value()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing or reloading configuration.
    """
    get_settings.cache_clear()
