from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Project root, so the .env file is found regardless of the working directory
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Serva Repair Booking"
    APP_VERSION: str = "2.0.0"
    API_V1_PREFIX: str = "/api/v1"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    LOG_LEVEL: str = "INFO"

    # Security settings
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Database settings
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # CORS settings
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Booking / warranty
    WARRANTY_DAYS: int = 365

    # Local file storage settings
    LOCAL_STORAGE_PATH: str = "./uploads"
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024  # 10MB

    # OpenAI settings
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    AI_TIMEOUT_SECONDS: float = 20.0

    # Rate limiting for the auth endpoints
    LOGIN_RATE_LIMIT: int = 10
    REGISTER_RATE_LIMIT: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
