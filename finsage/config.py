# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# DESIGN DECISION: Pydantic V2 `BaseSettings` for configuration.
# Values load in this priority order (highest first):
#   1. Environment variables (e.g., `MAX_UPLOAD_MB=20`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from finsage.config import settings
#   print(settings.max_upload_mb)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults match the behaviour of the dashboard's stub services, so a
    fresh checkout runs without any .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "FinancialSage"
    app_version: str = "0.1.0"
    debug: bool = True
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Upload Limits
    # -------------------------------------------------------------------------
    # Enforced before any ingestion work starts. The rejection message quotes
    # max_upload_mb, so keep the two in sync by only changing this value.
    # -------------------------------------------------------------------------
    max_upload_mb: int = 10

    # -------------------------------------------------------------------------
    # Credential
    # -------------------------------------------------------------------------
    # The Gemini key is supplied by the user at runtime, never via env.
    # credential_slot: name of the session-scoped storage slot.
    # credential_placeholder: value shipped in sample configs; treated as unset.
    # -------------------------------------------------------------------------
    credential_slot: str = "gemini_api_key"
    credential_placeholder: str = "YOUR_GEMINI_API_KEY"

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------
    # csv_extraction:
    #   - "simplified": rows 1..4 of the grid, columns 0/1 as description/amount
    #   - "placeholder": ignore the CSV content, return the canned record
    # -------------------------------------------------------------------------
    csv_extraction: Literal["simplified", "placeholder"] = "simplified"

    # -------------------------------------------------------------------------
    # Simulated Latency
    # -------------------------------------------------------------------------
    # The resolver and OCR stubs wait before answering to mimic the round
    # trip of the future Gemini integration. Turn off for tests and demos.
    # -------------------------------------------------------------------------
    simulate_latency: bool = True

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------
    # session_backend:
    #   - "memory": credential mirror lives in-process (default)
    #   - "redis": credential mirror lives in Redis with a TTL
    # -------------------------------------------------------------------------
    session_backend: Literal["memory", "redis"] = "memory"
    session_redis_url: str = "redis://localhost:6379/2"
    session_ttl_seconds: int = 60 * 60 * 8
    session_cookie_name: str = "finsage_session"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    Routes read the config handed to create_app() instead; in tests pass
    one directly:
        create_app(config=Settings(simulate_latency=False))
    """
    return Settings()


settings = get_settings()
