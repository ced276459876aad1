# catalog_app/config.py
from typing import Optional
from functools import lru_cache

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    CATALOG_API_URL: str = "http://localhost:8080"
    # None means the client imposes no timeout of its own
    REQUEST_TIMEOUT: Optional[float] = None

    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    PREVIEW_WIDTH: int = 300
    PREVIEW_HEIGHT: int = 300

    LOG_LEVEL: str = "INFO"
    CURRENCY_SYMBOL: str = "$"

    # Example .env:
    # CATALOG_API_URL=http://catalog.internal:8080
    # LOG_LEVEL=DEBUG

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
