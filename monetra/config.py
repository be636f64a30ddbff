"""Monetra — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── Auth ──
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    admin_role: str = "admin"

    # ── Google / AdSense ──
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    adsense_token_url: str = "https://oauth2.googleapis.com/token"
    adsense_base_url: str = "https://adsense.googleapis.com/v2"
    adsense_timeout: float = 30.0

    # ── Synthetic data ──
    synthetic_seed: Optional[int] = None  # None = non-deterministic placeholders

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    cleanup_hour: int = 3  # Daily snapshot cleanup at 3 AM
    snapshot_retention_days: int = 7

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/monetra.db"
        return "sqlite:///./monetra.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
