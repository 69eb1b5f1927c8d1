from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ASSIGNMENT_DATABASE_URL: str = "sqlite+aiosqlite:///./assignments.db"
    AUTO_CREATE_TABLES: bool = True
    ROSTER_SERVICE_URL: str = "http://accounts-service:8007"
    ROSTER_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_MAX_CAPACITY: int = 15
    PERSISTENCE_RETRY_ATTEMPTS: int = 3
    PERSISTENCE_RETRY_WAIT: float = 0.5
    PERSISTENCE_RETRY_MAX_WAIT: float = 5.0
    API_PREFIX: str = "/api/v1"
    ENVIRONMENT: str = "production"
    DEBUG: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
