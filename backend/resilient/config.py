from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Retry defaults (seconds)
    RETRY_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RETRY_BASE_DELAY: float = Field(default=1.0, ge=0)
    RETRY_MAX_DELAY: float = Field(default=30.0, ge=0)
    RETRY_BACKOFF_FACTOR: float = Field(default=2.0, gt=1)
    RETRY_JITTER: float = Field(default=1.0, ge=0)

    # Circuit breaker defaults (seconds)
    CIRCUIT_FAILURE_THRESHOLD: int = Field(default=5, ge=1)
    CIRCUIT_RECOVERY_TIMEOUT: float = Field(default=60.0, gt=0)
    CIRCUIT_MONITORING_PERIOD: float | None = None

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
