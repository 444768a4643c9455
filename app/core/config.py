"""
Application configuration.
Values come from the process environment, falling back to a local .env
file for development. Handlers read `settings` at call time so tests can
patch individual attributes.
"""
import os
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", "")
    DATABASE_URL: str

    # Plivo telephony
    PLIVO_AUTH_ID: str = ""
    PLIVO_AUTH_TOKEN: str = ""
    PLIVO_PHONE_NUMBER: str = ""
    DEFAULT_TRANSFER_NUMBER: str = ""

    # Realtime voice AI
    OPENAI_API_KEY: str = ""
    ENABLE_REALTIME_AI: bool = False
    WEBSOCKET_SERVER_URL: str = ""
    WS_URL: str = ""

    # Public base URL used in provider callbacks
    SITE_URL: str = "http://localhost:8000"

    # Razorpay
    RAZORPAY_WEBHOOK_SECRET: str = ""

    # In-process profile cache
    PROFILE_CACHE_TTL_SECONDS: int = 300

    class Config:
        env_file = ".env"


settings = Settings()

# Validate critical security settings
if not settings.JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY is not set. Export it as an environment variable or add it to .env. "
        "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
