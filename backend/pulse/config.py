"""Application configuration."""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Pulse API"
    environment: Literal["development", "production"] = "development"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db: str = "pulse"
    jwt_secret: str = "supersecretkey"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 7 * 24 * 60
    public_base_url: str = "http://localhost:8000"
    storage_path_prefix: str = "/storage/v1/object/public"
    message_read_state: Literal["timestamp", "boolean"] = "timestamp"
    redis_url: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
