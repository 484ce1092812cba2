"""Branding settings repository: one record with the fixed id `app_config`."""

from __future__ import annotations

from typing import Optional

from domain.branding import APP_SETTINGS_ID, AppSettings
from repositories.store import EntityStore

_SETTINGS_TABLE: str = "settings"


async def get_app_settings(store: EntityStore) -> Optional[AppSettings]:
    row = await store.get_by_id(_SETTINGS_TABLE, APP_SETTINGS_ID)
    if not row:
        return None
    return AppSettings(
        name=str(row.get("name") or ""),
        currency=str(row.get("currency") or ""),
        logo=row.get("logo") or None,
    )


async def put_app_settings(store: EntityStore, settings: AppSettings) -> None:
    await store.upsert(
        _SETTINGS_TABLE,
        APP_SETTINGS_ID,
        {"name": settings.name, "currency": settings.currency, "logo": settings.logo},
    )


__all__ = ["get_app_settings", "put_app_settings"]
