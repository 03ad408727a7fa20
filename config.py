"""Application configuration."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import (
    ADDITIONAL_CHARGE_TYPES,
    API_TIMEOUT_DEFAULT,
    CHARGE_TYPE_PLACEHOLDER,
    DEFAULT_DISPLAY_TIMEZONE,
    MAX_RETRY_ATTEMPTS,
    RETRY_INITIAL_DELAY,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Rental backend
    backend_base_url: str = "http://localhost:8080"
    backend_api_token: Optional[str] = None
    backend_timeout_seconds: float = float(API_TIMEOUT_DEFAULT)
    backend_read_attempts: int = MAX_RETRY_ATTEMPTS
    retry_initial_delay: float = float(RETRY_INITIAL_DELAY)

    # Billing
    additional_charge_types: list[str] = list(ADDITIONAL_CHARGE_TYPES)

    # Display
    display_timezone: str = DEFAULT_DISPLAY_TIMEZONE

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.app_env == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.app_env == "testing"

    def validate_required_settings(self) -> list[str]:
        """
        Validate that all required settings are configured.

        Returns:
            List of missing or invalid settings
        """
        errors = []

        if not self.backend_base_url.startswith(("http://", "https://")):
            errors.append("BACKEND_BASE_URL must be an http(s) URL")

        if self.is_production and not self.backend_api_token:
            errors.append("BACKEND_API_TOKEN is required in production")

        if self.backend_timeout_seconds <= 0:
            errors.append("backend_timeout_seconds must be positive")

        if self.backend_read_attempts < 1:
            errors.append("backend_read_attempts must be at least 1")

        if not self.additional_charge_types:
            errors.append("additional_charge_types must not be empty")
        elif CHARGE_TYPE_PLACEHOLDER in self.additional_charge_types:
            errors.append(
                f"additional_charge_types must not contain the placeholder '{CHARGE_TYPE_PLACEHOLDER}'"
            )

        return errors


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
