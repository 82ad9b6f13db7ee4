"""
Movie Facts — Application Settings

Design patterns:
  - Configuration Object: centralizes all env-based config
  - Singleton: one Settings instance, read once at process start
"""

from __future__ import annotations

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration sourced from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity provider (Google OAuth) ──────────────────
    google_client_id: str = ""
    google_client_secret: str = ""
    google_metadata_url: str = "https://accounts.google.com/.well-known/openid-configuration"

    # ── Sessions ──────────────────────────────────────────
    session_secret: str = "change-me"
    session_max_age_days: int = 30

    # ── Storage ───────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./moviefacts.db"
    database_echo: bool = False

    # ── OpenAI (optional) ─────────────────────────────────
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout: float = 30.0

    # ── TMDB (optional) ───────────────────────────────────
    tmdb_api_key: Optional[str] = None
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_image_base: str = "https://image.tmdb.org/t/p/w200"
    tmdb_timeout: float = 10.0

    # ── App ───────────────────────────────────────────────
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "info"
    app_reload: bool = False
    allowed_origins: List[str] = ["http://localhost:3000"]

    # ── Derived helpers ───────────────────────────────────
    @property
    def llm_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def tmdb_enabled(self) -> bool:
        return bool(self.tmdb_api_key)


# Singleton – import this everywhere
settings = Settings()
