"""
Configuration module for FitBook.

Centralized configuration management using Pydantic settings.
All values can be overridden via environment variables or a .env file.
"""

from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings for the FitBook service.

    Attributes:
        APP_NAME: Display name for the application
        DEBUG: Enable debug mode (shows API docs)
        HOST: Server bind address
        PORT: Server port number
        LOG_LEVEL: Logging level
        USE_JSON_LOGS: Emit JSON structured logs instead of colored text
        SUPABASE_URL: Supabase project URL
        SUPABASE_ANON_KEY: Public anon key used for user-scoped calls
        SUPABASE_SERVICE_KEY: Service role key used for provisioning
        SUPABASE_JWT_SECRET: Secret used to verify user access tokens
        REQUEST_TIMEOUT: Upper bound in seconds for a single backend call
        MAX_RETRIES: Extra attempts on transient network failures
        PROVISION_MAX_ATTEMPTS: Polls for the trigger-created users row
        PROVISION_POLL_INTERVAL: Seconds between those polls
        CORS_ORIGINS: Comma-separated list of allowed origins
    """

    APP_NAME: str = Field(default="FitBook", description="Display name")
    DEBUG: bool = Field(default=False, description="Enable debug mode")

    HOST: str = Field(default="0.0.0.0", description="Server bind address")
    PORT: int = Field(default=8000, ge=1, le=65535, description="Server port number")

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    USE_JSON_LOGS: bool = Field(default=False, description="JSON structured logs")

    # Supabase
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(default="", description="Supabase anon key")
    SUPABASE_SERVICE_KEY: str = Field(default="", description="Supabase service role key")
    SUPABASE_JWT_SECRET: str = Field(default="", description="Supabase JWT secret")

    # Backend call guards
    REQUEST_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        le=60.0,
        description="Timeout for a single backend call in seconds",
    )
    MAX_RETRIES: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Retry attempts for transient network failures",
    )

    # User provisioning
    PROVISION_MAX_ATTEMPTS: int = Field(default=5, ge=0, le=20)
    PROVISION_POLL_INTERVAL: float = Field(default=0.5, ge=0, le=5.0)

    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("SUPABASE_URL")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """
        Validate the Supabase URL when one is given.

        Args:
            value: The URL to validate

        Returns:
            The validated URL without trailing slash

        Raises:
            ValueError: If URL does not use http or https
        """
        if not value:
            return value

        value = value.rstrip("/")

        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(
                f"Supabase URL must start with http:// or https://, got: {value}"
            )

        return value

    @property
    def supabase_configured(self) -> bool:
        """Check if the public Supabase credentials are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

    def get_cors_origins(self) -> List[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
