"""
config.py — pydantic-settings Settings class.

All environment variables for crewdesk are declared here.
Both the API and the pipeline import `settings` from this module.

Usage:
    from crewdesk_shared.config import settings
    print(settings.supabase_url)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_dotenv() -> Path | None:
    """Walk up from CWD to find the nearest .env file."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / ".env"
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_find_dotenv() or ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: str = Field(default="http://localhost:54321")
    supabase_anon_key: str = Field(default="")
    supabase_service_key: str = Field(default="")
    # Supabase signs access tokens with the project JWT secret
    supabase_jwt_secret: str = Field(default="change-me-in-production")
    session_cookie_name: str = Field(default="sb-access-token")

    # -------------------------------------------------------------------------
    # API server
    # -------------------------------------------------------------------------
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: str = Field(default="http://localhost:3000")
    app_base_url: str = Field(default="http://localhost:3000")

    # -------------------------------------------------------------------------
    # Email (Resend)
    # -------------------------------------------------------------------------
    resend_api_key: str = Field(default="")
    resend_base_url: str = Field(default="https://api.resend.com")
    email_from: str = Field(default="Crewdesk <notifications@crewdesk.local>")
    # Resend allows ~10 requests per second per key
    email_throttle_seconds: float = Field(default=0.125, ge=0)

    # -------------------------------------------------------------------------
    # Geocoding (Nominatim)
    # -------------------------------------------------------------------------
    nominatim_url: str = Field(default="https://nominatim.openstreetmap.org")
    nominatim_user_agent: str = Field(default="crewdesk-geocoder")
    # Nominatim usage policy: at most one request per second
    geocode_delay_seconds: float = Field(default=1.1, ge=0)

    # -------------------------------------------------------------------------
    # Scheduling rules
    # -------------------------------------------------------------------------
    invitation_ttl_days: int = Field(default=30, ge=1)
    bulk_invitation_weeks: int = Field(default=3, ge=1, le=12)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")

    # -------------------------------------------------------------------------
    # Derived / computed
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @field_validator(
        "supabase_url", "app_base_url", "resend_base_url", "nominatim_url", mode="before"
    )
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Module-level singleton; import this everywhere
# ---------------------------------------------------------------------------
settings = Settings()
