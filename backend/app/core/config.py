"""
Application settings loaded from environment variables.

Uses pydantic-settings so that every config value is validated at startup.
The Gemini key stays server-side — it is never sent to the browser and
never echoed back in an error body.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    Quota constants are validated as strictly positive, so a bad
    QUOTA_LIMIT / QUOTA_WINDOW_MS fails the process at import time
    instead of surfacing on the first request.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Optional (sensible defaults) ────────────────────────
    APP_NAME: str = "Libris AI Gateway"
    DEBUG: bool = False
    ENVIRONMENT: str = "dev"
    CORS_ORIGINS: list[str] = ["*"]

    # ── Gemini ──────────────────────────────────────────────
    # Empty key is allowed at startup; requests then fail with a
    # generic 500 "Backend configuration error".
    GEMINI_API_KEY: str = ""
    LLM_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    LLM_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # ── Per-user quota (fixed window) ───────────────────────
    QUOTA_LIMIT: int = Field(default=3, gt=0)
    QUOTA_WINDOW_MS: int = Field(default=60_000, gt=0)
    QUOTA_SWEEP_INTERVAL_SECONDS: float = Field(default=300.0, gt=0)


# Singleton: imported everywhere as `from app.core.config import settings`
settings = Settings()
