"""Configuration management for the shortlink service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortlink.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    db_url = settings.DATABASE_URL

**Step 3 — Override through the environment**::
    DATABASE_URL=sqlite+aiosqlite:///./shortlink.db DEDUP_ENABLED=false python -m shortlink

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- SHORT_ID_LENGTH outside 6..8 and MAX_ALLOCATION_ATTEMPTS < 1 raise ValidationError.
- CORS_ORIGINS is a comma-separated list; use ``cors_origin_list`` to read it.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "shortlink"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8001"
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ORIGINS: str = "http://localhost:5173"

    # Record store
    DATABASE_URL: str = "postgresql+asyncpg://shortlink:shortlink@db:5432/shortlink"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Short identifier allocation
    SHORT_ID_LENGTH: int = Field(default=6, ge=6, le=8)
    MAX_ALLOCATION_ATTEMPTS: int = Field(default=10, ge=1)
    DEDUP_ENABLED: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def short_url_prefix(self) -> str:
        return self.BASE_URL.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
