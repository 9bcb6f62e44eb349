"""
Base settings class for environment configuration.

Uses Pydantic Settings for automatic environment variable loading.
Instances are frozen: settings are read once at startup and handed to
services through their constructors.

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        TWILIO_ACCOUNT_SID: Optional[str] = None

    settings = Settings()
    print(settings.MONGODB_URI)
"""

import re
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}


def parse_duration(value: str, default: int = 900) -> int:
    """
    Convert a duration such as "15m" or "7d" to seconds.

    Unparsable values fall back to ``default`` (15 minutes).
    """
    match = _DURATION_PATTERN.match(value.strip()) if value else None
    if not match:
        return default
    return int(match.group(1)) * _DURATION_UNITS[match.group(2)]


class BaseAppSettings(BaseSettings):
    """
    Base settings class with common configuration options.

    Automatically loads values from environment variables.
    Extend this class for application-specific settings.
    """

    # ==========================================================================
    # Database Settings
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017/?replicaSet=rs0"
    MONGODB_DATABASE: str = "salon"

    # ==========================================================================
    # Authentication Settings
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_REFRESH_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE: str = "15m"
    JWT_REFRESH_TOKEN_EXPIRE: str = "7d"

    # bcrypt cost factor
    BCRYPT_ROUNDS: int = 12

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    API_PREFIX: str = "/api/v1"

    # CORS Settings
    CORS_ORIGINS: str = "http://localhost:3001"  # Comma-separated origins or "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        frozen=True,
    )

    @property
    def access_token_ttl_seconds(self) -> int:
        return parse_duration(self.JWT_ACCESS_TOKEN_EXPIRE)

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return parse_duration(self.JWT_REFRESH_TOKEN_EXPIRE)

    def get_cors_origins(self) -> list:
        """Parse CORS_ORIGINS into a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required")

        if not self.JWT_REFRESH_SECRET:
            errors.append("JWT_REFRESH_SECRET is required")

        if self.JWT_SECRET and self.JWT_SECRET == self.JWT_REFRESH_SECRET:
            errors.append("JWT_REFRESH_SECRET must differ from JWT_SECRET")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
