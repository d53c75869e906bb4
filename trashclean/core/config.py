"""
Trash Clean - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRASHCLEAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Backend API
    api_base_url: str = "http://localhost:3000/api"
    request_timeout_seconds: float = 30.0

    # Static bearer token (development / scripted use)
    auth_token: Optional[str] = None

    # Pickup verification
    pickup_radius_meters: float = 50.0
    nearby_radius_meters: float = 100.0
    location_timeout_seconds: float = 15.0

    # Substitute coordinate when the device cannot produce a fix
    fallback_latitude: Optional[float] = None
    fallback_longitude: Optional[float] = None

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def has_fallback_location(self) -> bool:
        return self.fallback_latitude is not None and self.fallback_longitude is not None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
