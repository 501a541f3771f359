# app/config/settings.py

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "lgu-workflow-engine"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Storage ---
    repository_backend: Literal["memory", "database"] = "memory"
    database_url: Optional[str] = None
    database_echo: bool = False

    # --- Locking ---
    lock_backend: Literal["none", "memory", "redis"] = "memory"
    lock_ttl_seconds: int = Field(10, ge=1, le=300)
    redis_url: Optional[str] = None

    # --- Observability ---
    enable_metrics: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @model_validator(mode="after")
    def backends_have_urls(self) -> "AppSettings":
        if self.repository_backend == "database" and not self.database_url:
            raise ValueError("database_url is required when repository_backend is 'database'")
        if self.lock_backend == "redis" and not self.redis_url:
            raise ValueError("redis_url is required when lock_backend is 'redis'")
        return self


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
