"""Domain: user-directed notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .time import require_utc_timestamp


class NotificationType(str, Enum):
    USER = "user"
    LEAD = "lead"
    CASH = "cash"
    SYS = "sys"
    ALERT = "alert"


@dataclass(frozen=True, slots=True)
class Notification:
    notification_id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    read: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
