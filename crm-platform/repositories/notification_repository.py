"""Notification repository (persistence only)."""

from __future__ import annotations

from typing import Any, List, Mapping

from domain.notification import Notification, NotificationType
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.store import EntityStore, Record, parse_rows

_NOTIFICATIONS_TABLE: str = "notifications"


def _notification_to_row(notification: Notification) -> Record:
    return {
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type.value,
        "read": notification.read,
        "created_at_utc": to_iso_utc(notification.created_at, name="created_at"),
    }


def _row_to_notification(row: Mapping[str, Any]) -> Notification:
    return Notification(
        notification_id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row.get("title") or ""),
        message=str(row.get("message") or ""),
        type=NotificationType(str(row.get("type") or NotificationType.SYS.value)),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        read=bool(row.get("read", False)),
    )


async def put_notification(store: EntityStore, notification: Notification) -> None:
    """Write a notification under its own id; repeating the write is harmless."""

    await store.upsert(
        _NOTIFICATIONS_TABLE, notification.notification_id, _notification_to_row(notification)
    )


async def mark_read(store: EntityStore, notification_id: str) -> None:
    await store.update(_NOTIFICATIONS_TABLE, notification_id, {"read": True})


async def list_notifications(store: EntityStore) -> List[Notification]:
    rows = await store.get_all(_NOTIFICATIONS_TABLE)
    return parse_rows(_NOTIFICATIONS_TABLE, rows, _row_to_notification)


async def list_notifications_by_user(store: EntityStore, user_id: str) -> List[Notification]:
    rows = await store.get_by_query(_NOTIFICATIONS_TABLE, "user_id", "==", user_id)
    return parse_rows(_NOTIFICATIONS_TABLE, rows, _row_to_notification)


__all__ = ["put_notification", "mark_read", "list_notifications", "list_notifications_by_user"]
