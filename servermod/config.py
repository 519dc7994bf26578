from typing import Final

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_DB_TIMEOUT_SECONDS,
    DEFAULT_PORT,
    DEFAULT_SERVER_CACHE_TTL_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./servermod.db", description="Database connection URL"
    )
    db_name: str = Field(default="servermod", description="Database name for SQLite")
    db_timeout_seconds: float = Field(
        default=DEFAULT_DB_TIMEOUT_SECONDS,
        gt=0,
        description="Lock wait / statement timeout before a store call fails",
    )

    # Application configuration
    app_name: str = Field(default="ServerMod", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Security configuration
    bcrypt_rounds: int = Field(
        default=DEFAULT_BCRYPT_ROUNDS,
        ge=4,
        le=31,
        description="bcrypt cost factor used when hashing new passwords",
    )

    # Proxy configuration
    trust_proxy_headers: bool = Field(
        default=False,
        description="Take the client IP from X-Forwarded-For / X-Real-IP. Enable "
        "only behind a proxy that overwrites these headers",
    )

    # Cache configuration
    server_cache_ttl_seconds: int = Field(
        default=DEFAULT_SERVER_CACHE_TTL_SECONDS,
        ge=0,
        description="Lifetime of cached server moderation views (0 disables expiry)",
    )

    # Logging configuration
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL, handling SQLite with db_name."""
        if (
            self.database_url == "sqlite:///./servermod.db"
            and self.db_name != "servermod"
        ):
            return f"sqlite:///./{self.db_name}.db"
        return self.database_url


# Global settings instance
settings: Final = Settings()
