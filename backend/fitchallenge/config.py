from __future__ import annotations
import os
from pydantic import BaseModel

_FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "fitchallenge-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "FitChallenge")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    # Web client; OAuth providers redirect here and the page POSTs the code to /integrations/{provider}/link
    frontend_url: str = _FRONTEND_URL
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Document store backend: memory|redis|sql
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/fitchallenge_dev")

    # Challenge rules
    max_active_challenges: int = int(os.getenv("MAX_ACTIVE_CHALLENGES", "5"))
    # Document locks: how long a holder may keep one, how long a waiter waits
    lock_timeout_seconds: float = float(os.getenv("LOCK_TIMEOUT_SECONDS", "30"))
    lock_wait_seconds: float = float(os.getenv("LOCK_WAIT_SECONDS", "10"))
    seed_demo_data: bool = os.getenv("SEED_DEMO_DATA", "1") == "1"

    # Sessions
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "1440"))  # 24h
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d

    # Third-party fitness APIs
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
    strava_client_id: str = os.getenv("STRAVA_CLIENT_ID", "")
    strava_client_secret: str = os.getenv("STRAVA_CLIENT_SECRET", "")
    strava_redirect_uri: str = os.getenv("STRAVA_REDIRECT_URI", f"{_FRONTEND_URL}/connect/strava")
    fitbit_client_id: str = os.getenv("FITBIT_CLIENT_ID", "")
    fitbit_client_secret: str = os.getenv("FITBIT_CLIENT_SECRET", "")
    fitbit_redirect_uri: str = os.getenv("FITBIT_REDIRECT_URI", f"{_FRONTEND_URL}/connect/fitbit")
    nutritionix_app_id: str = os.getenv("NUTRITIONIX_APP_ID", "")
    nutritionix_app_key: str = os.getenv("NUTRITIONIX_APP_KEY", "")
    youtube_api_key: str = os.getenv("YOUTUBE_API_KEY", "")

settings = Settings()
