"""
Library settings loaded from environment variables.

Uses pydantic-settings to validate and type-cast ``OBJMAP_*`` env vars.
A registry reads these once, at construction time.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised mapping configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OBJMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Logging ───────────────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: Literal["json", "console"] = "console"

    # ── Registry ──────────────────────────────────────────────────────
    warn_on_overwrite: bool = True
    validate_on_freeze: bool = False

    # ── Validator ─────────────────────────────────────────────────────
    scan_nested_code: bool = True


@lru_cache
def get_settings() -> Settings:
    """
    Cached singleton — settings are read once and reused.
    """
    return Settings()
