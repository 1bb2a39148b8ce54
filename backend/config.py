# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_marketplace.db"
    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Token buckets, requests per minute per client
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 100
    AUTH_RATE_LIMIT_PER_MINUTE: int = 10
    ORDER_RATE_LIMIT_PER_MINUTE: int = 20
    # Comma-separated peer addresses allowed to set X-Forwarded-For
    TRUSTED_PROXIES: str = ""

    # Daily sweep deactivating expired promotions
    PROMOTION_SWEEP_ENABLED: bool = True
    PROMOTION_SWEEP_INTERVAL_SECONDS: int = 86400

    # Nominatim-compatible geocoding service
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_USER_AGENT: str = "FoodMarketplace/1.0"
    GEOCODER_MIN_INTERVAL_SECONDS: float = 1.1
    GEOCODER_TIMEOUT_SECONDS: float = 10.0

    # Per-subscriber buffer of the order notification broker
    NOTIFICATION_QUEUE_SIZE: int = 100

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
