from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    SERVICE_NAME: str = "tripgate"
    LOG_LEVEL: Optional[LogLevel] = None  # overrides the per-env default when set

    BREAKER_THRESHOLD: int = 3
    BREAKER_OPEN_DURATION_SECONDS: float = 30.0
    # False keeps a breaker half-open after a successful probe (legacy behaviour)
    BREAKER_CLOSE_ON_PROBE_SUCCESS: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    class Config:
        env_file = ".env"
        extra = "ignore"

config_settings = Settings()
