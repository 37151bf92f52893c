"""Shared configuration for all services."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration (transactions need a replica set)
    mongo_url: str = "mongodb://localhost:27017/?replicaSet=rs0"
    mongo_db_name: str = "newsbyte"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_provider_channel: str = "provider_updates"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    log_level: str = "INFO"

    # Identity tokens
    auth_jwt_secret: str = "change-me"
    auth_jwt_algorithm: str = "HS256"
    auth_jwt_audience: Optional[str] = None

    # AI Provider Configuration
    provider_check_timeout_ms: int = 5000
    provider_generation_timeout_ms: int = 12000
    provider_cache_ttl_seconds: float = 60.0
    provider_failure_threshold: int = 3
    provider_pause_minutes: int = 15
    provider_min_health_score: int = 30

    # Health check
    health_check_max_duration_seconds: int = 60

    # Shared secret for scheduled jobs; unset leaves the cron routes open
    cron_secret: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
