"""
Configuration settings for the CollabMap Engine.

This module defines all configuration parameters using Pydantic Settings,
enabling environment variable overrides for production deployment.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        APP_NAME: Application identifier
        APP_VERSION: Semantic version
        DEBUG: Enable debug mode

        # Deployment Region
        REGION_CENTER_LAT / REGION_CENTER_LNG: Center of the served region
        REGION_LONGITUDE_SIGN: Expected longitude sign (-1 west, 1 east, 0 off)
        REGION_SWAP_THRESHOLD_DEG: Magnitude used by lat/lng swap detection
        REGION_FAR_THRESHOLD_DEG: Offset that raises the far-from-region flag
        GEOCODE_REGION_SUFFIX: Bias appended to free-text address queries

        # Location Providers
        GEOCODER_BASE_URL: Nominatim-compatible search endpoint
        IP_LOCATOR_URL: IP-approximate geolocation endpoint
        DEVICE_TIMEOUT_SECONDS: Device geolocation timeout

        # Map View
        DEFAULT_RADIUS_MILES / MIN_RADIUS_MILES / MAX_RADIUS_MILES
        DEFAULT_EDGE_COLOR: Edge color when a collaboration has none

        # API Configuration
        API_V1_PREFIX: API version prefix
        HOST: Server host
        PORT: Server port
    """

    # Application
    APP_NAME: str = "CollabMap Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"

    # Deployment region (Dayton, Ohio)
    REGION_NAME: str = "Dayton, Ohio"
    REGION_CENTER_LAT: float = 39.7589
    REGION_CENTER_LNG: float = -84.1916
    REGION_LONGITUDE_SIGN: int = -1
    REGION_SWAP_THRESHOLD_DEG: float = 60.0
    REGION_FAR_THRESHOLD_DEG: float = 10.0
    GEOCODE_REGION_SUFFIX: str = ", Dayton, Ohio"

    # Free-text geocoder (Nominatim)
    GEOCODER_BASE_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_USER_AGENT: str = "collabmap-engine/1.0"
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # IP-approximate locator
    IP_LOCATOR_URL: str = "https://ipapi.co/json/"
    IP_LOCATOR_TIMEOUT_SECONDS: float = 10.0

    # Device geolocation
    DEVICE_TIMEOUT_SECONDS: float = 10.0

    # Map view
    DEFAULT_RADIUS_MILES: float = 5.0
    MIN_RADIUS_MILES: float = 1.0
    MAX_RADIUS_MILES: float = 25.0
    DEFAULT_EDGE_COLOR: str = "#ef4444"
    COLLAB_EDGE_WARN_MEMBERS: int = 20

    # Directory snapshot (local to the engine)
    DATA_DIR: Optional[str] = None

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8002
    MAX_SESSIONS: int = 1000

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Allow extra fields in .env


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings factory.

    Returns:
        Settings: Application configuration singleton
    """
    return Settings()


# Global settings instance
settings = get_settings()
