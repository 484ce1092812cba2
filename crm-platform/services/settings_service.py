"""
Branding settings (application name, currency, logo).

`SettingsStore` caches the current settings and publishes every change to
explicit subscribers, so parts of the application that render branding can
subscribe and unsubscribe as they come and go.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from config import get_settings
from domain.branding import AppSettings
from domain.errors import ValidationError
from repositories import settings_repository
from repositories.store import EntityStore
from services.observable import Observable

logger = logging.getLogger(__name__)


def default_app_settings() -> AppSettings:
    settings = get_settings()
    return AppSettings(name=settings.app_name, currency=settings.app_currency, logo=None)


class SettingsStore:
    def __init__(self, store: EntityStore, defaults: Optional[AppSettings] = None) -> None:
        self._store = store
        self._defaults = defaults or default_app_settings()
        self._current: Observable[AppSettings] = Observable(self._defaults)

    @property
    def current(self) -> AppSettings:
        return self._current.value

    def subscribe(self, listener: Callable[[AppSettings], None], *, replay: bool = True) -> Callable[[], None]:
        return self._current.subscribe(listener, replay=replay)

    async def load(self) -> AppSettings:
        """Read the stored settings; missing or unreadable settings fall back to defaults."""

        stored = await settings_repository.get_app_settings(self._store)
        if stored is None:
            settings = self._defaults
        else:
            settings = AppSettings(
                name=stored.name or self._defaults.name,
                currency=stored.currency or self._defaults.currency,
                logo=stored.logo,
            )
        if settings != self._current.value:
            self._current.publish(settings)
        return settings

    async def update(self, name: str, currency: str) -> AppSettings:
        if not name or not name.strip():
            raise ValidationError("Application name must not be empty")
        if not currency or not currency.strip():
            raise ValidationError("Currency must not be empty")

        updated = replace(await self.load(), name=name.strip(), currency=currency.strip())
        return await self._save(updated)

    async def update_logo(self, logo: Optional[str]) -> AppSettings:
        return await self._save(replace(await self.load(), logo=logo or None))

    async def _save(self, settings: AppSettings) -> AppSettings:
        await settings_repository.put_app_settings(self._store, settings)
        logger.info("Branding settings updated", extra={"name": settings.name, "currency": settings.currency})
        self._current.publish(settings)
        return settings


__all__ = ["SettingsStore", "default_app_settings"]
