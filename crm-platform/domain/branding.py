"""Domain: application branding settings (name, currency, logo)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

APP_SETTINGS_ID = "app_config"


@dataclass(frozen=True, slots=True)
class AppSettings:
    name: str
    currency: str
    logo: Optional[str] = None  # data URL or remote URL
