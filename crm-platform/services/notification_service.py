"""
Notification service.

Handles:
- Dispatch of a notification with bounded retries (same id on every attempt,
  so a retry after an ambiguous failure never produces a duplicate)
- Per-user and global listings
- Mark-all-read
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from domain.errors import NotificationDispatchError, StoreError
from domain.notification import Notification
from repositories import notification_repository
from repositories.store import EntityStore

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


async def dispatch_notification(
    store: EntityStore,
    notification: Notification,
    *,
    attempts: int = 3,
    retry_delay: float = 0.5,
    sleep: Sleep = asyncio.sleep,
) -> Notification:
    """
    Persist `notification`, retrying write failures up to `attempts` times.

    Raises:
        NotificationDispatchError: every attempt failed. The error carries the
            undelivered notification so the caller can alert on it.
    """
    attempts = max(1, attempts)
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            await notification_repository.put_notification(store, notification)
            return notification
        except StoreError as exc:
            last_error = exc
            logger.warning(
                f"Notification dispatch attempt {attempt}/{attempts} failed",
                extra={
                    "notification_id": notification.notification_id,
                    "user_id": notification.user_id,
                    "error": str(exc),
                },
            )
            if attempt < attempts:
                await sleep(retry_delay * attempt)

    logger.error(
        "Notification could not be delivered",
        extra={
            "notification_id": notification.notification_id,
            "user_id": notification.user_id,
            "error": str(last_error),
        },
    )
    raise NotificationDispatchError(
        f"Failed to deliver notification to user {notification.user_id} "
        f"after {attempts} attempts: {last_error}",
        notification=notification,
    ) from last_error


async def list_notifications(store: EntityStore, user_id: Optional[str] = None) -> List[Notification]:
    """Newest first. Without `user_id`, every notification is returned."""

    if user_id is None:
        notifications = await notification_repository.list_notifications(store)
    else:
        notifications = await notification_repository.list_notifications_by_user(store, user_id)
    return sorted(notifications, key=lambda n: n.created_at, reverse=True)


async def mark_all_read(store: EntityStore, user_id: Optional[str] = None) -> int:
    """Mark unread notifications as read; returns how many were updated."""

    unread = [n for n in await list_notifications(store, user_id) if not n.read]
    for notification in unread:
        await notification_repository.mark_read(store, notification.notification_id)
    return len(unread)


__all__ = ["dispatch_notification", "list_notifications", "mark_all_read"]
