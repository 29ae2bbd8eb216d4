from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/anonymous_messages"
    REDIS_URL: Optional[str] = None
    HOST: str = "0.0.0.0"
    PORT: int = 3300
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    SHARE_PATH_PREFIX: str = "/share"

    # Fixed-window limits per client IP
    LINK_RATE_LIMIT: int = 5
    LINK_RATE_WINDOW: int = 60 * 60
    MESSAGE_RATE_LIMIT: int = 10
    MESSAGE_RATE_WINDOW: int = 15 * 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()
