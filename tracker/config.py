"""Centralized settings — all env vars and tunables live here."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Load .env before anything reads os.getenv
load_dotenv(Path(__file__).resolve().parent / ".env")


class Settings(BaseSettings):
    """Migration settings. Values come from environment variables, then defaults."""

    # ── Database ──
    database_url: str = Field(default="", alias="DATABASE_URL")
    echo_sql: bool = Field(default=False, alias="ECHO_SQL")

    # ── Connection pool ──
    pool_size: int = 5
    max_overflow: int = 5
    pool_recycle: int = 1800
    pool_timeout: int = 30
    connect_timeout: int = 10

    # ── Logging ──
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # ── Backups ──
    backup_dir: str = Field(default="backups", alias="BACKUP_DIR")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _check_database_url(self) -> "Settings":
        """Fail fast at startup if the store cannot even be addressed."""
        if not self.database_url:
            raise ValueError("Missing required environment variables: DATABASE_URL")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached singleton settings instance."""
    return Settings()
