"""
Runtime configuration for the CRM platform.

Values are read from the environment (optionally from a `.env` file in the
crm-platform directory). Supabase credentials are validated only when the live
client is requested, so domain code and tests can import freely.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide settings resolved from environment variables."""

    supabase_url: Optional[str]
    supabase_key: Optional[str]
    gemini_api_key: Optional[str]
    gemini_model: str
    gemini_timeout_seconds: float
    notification_max_attempts: int
    log_level: str
    app_name: str
    app_currency: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-pro"),
        gemini_timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30")),
        notification_max_attempts=int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        app_name=os.getenv("APP_NAME", "AFTRAS CRM"),
        app_currency=os.getenv("APP_CURRENCY", "FCFA"),
    )


def configure_logging() -> None:
    """Install a single stdout handler on the root logger (idempotent)."""
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, get_settings().log_level, logging.INFO))
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["Settings", "get_settings", "configure_logging"]
