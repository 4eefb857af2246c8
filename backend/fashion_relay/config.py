from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    REPLICATE_API_TOKEN: Optional[str] = None
    REPLICATE_API_BASE_URL: str = "https://api.replicate.com/v1"

    # Optional keys, reported by /api/health
    MODEL_ID: Optional[str] = None
    PROMPT_TEMPLATE: Optional[str] = None

    IMAGE_MODEL: str = "google/nano-banana"
    VIDEO_MODEL: str = "kwaivgi/kling-v2.1"

    POLL_INTERVAL_SECONDS: float = 5.0
    MAX_POLL_ATTEMPTS: int = 60
    MAX_VIDEO_POLL_ATTEMPTS: int = 240
    HTTP_TIMEOUT_SECONDS: float = 60.0

    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 3001

    class Config:
        env_file = ".env"
        env_ignore_empty = True
        extra = "ignore"
        frozen = True

    @property
    def image_model(self) -> str:
        return self.MODEL_ID or self.IMAGE_MODEL

    def max_attempts(self, long_running: bool = False) -> int:
        return self.MAX_VIDEO_POLL_ATTEMPTS if long_running else self.MAX_POLL_ATTEMPTS


@lru_cache
def get_settings() -> Settings:
    return Settings()
