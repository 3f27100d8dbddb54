from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    youtube_api_key: str | None = None
    youtube_api_base: str = "https://www.googleapis.com/youtube/v3"
    page_size: int = 50
    batch_size: int = 50
    retry_max_attempts: int = 3
    retry_backoff_ms: int = 600
    request_timeout_seconds: float = 15.0
    export_dir: str = "out"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", env_file_encoding="utf-8")

    @field_validator("page_size", "batch_size")
    @classmethod
    def _clamp_batch(cls, value: int) -> int:
        # YouTube Data API caps both maxResults and the id list at 50
        return min(max(value, 1), 50)

    @field_validator("retry_max_attempts")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(value, 1)


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
