"""
Domain: user profiles.

A profile shares its identifier with the identity provider's principal id.
Its status decides whether a signed-in identity is admitted:
- ACTIVE admits the session.
- PENDING and DISABLED deny it, with distinct reasons.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    AGENT = "AGENT"
    SUPERVISOR = "SUPERVISOR"


class UserStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Application profile of a signed-up or admin-created user."""

    user_id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole
    status: UserStatus
    created_at: datetime

    agent_code: Optional[str] = None
    phone: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def with_status(self, status: UserStatus) -> "UserProfile":
        return replace(self, status=status)
