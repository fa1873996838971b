"""Application settings, read from the environment (prefix ``SIRRS_``) or a .env file."""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # SQLite locally, PostgreSQL in production
    DATABASE_URL: str = "sqlite:///./sirrs.db"
    LOG_LEVEL: str = "INFO"

    # Upload collaborator hands us at most this many photo references per call
    MAX_PHOTOS_PER_UPLOAD: int = 5

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_prefix = "SIRRS_"
        env_file = ".env"


settings = Settings()
