"""
Domain: session authorization states.

A session is always in exactly one of:
- UNAUTHENTICATED: no signed-in identity.
- RESOLVING: an identity is present, its profile has not been delivered yet.
- ADMITTED: the profile is ACTIVE.
- DENIED: the profile is PENDING, DISABLED, missing, or could not be read.

`resolve_session` is the single mapping from a profile to ADMITTED / DENIED. It
is shared by the live reconciler and the HTTP boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .user import UserProfile, UserStatus

PENDING_VALIDATION = "pending admin validation"
ACCOUNT_DISABLED = "account disabled"
PROFILE_NOT_FOUND = "profile not found"
PROFILE_LOOKUP_FAILED = "profile lookup failed"

_DENIAL_REASONS = {
    UserStatus.PENDING: PENDING_VALIDATION,
    UserStatus.DISABLED: ACCOUNT_DISABLED,
}


class SessionStatus(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    RESOLVING = "RESOLVING"
    ADMITTED = "ADMITTED"
    DENIED = "DENIED"


@dataclass(frozen=True, slots=True)
class SessionState:
    status: SessionStatus
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    reason: Optional[str] = None

    @staticmethod
    def unauthenticated() -> "SessionState":
        return SessionState(status=SessionStatus.UNAUTHENTICATED)

    @staticmethod
    def resolving(user_id: str) -> "SessionState":
        return SessionState(status=SessionStatus.RESOLVING, user_id=user_id)

    @staticmethod
    def denied(user_id: Optional[str], reason: str) -> "SessionState":
        return SessionState(status=SessionStatus.DENIED, user_id=user_id, reason=reason)

    @property
    def is_admitted(self) -> bool:
        return self.status == SessionStatus.ADMITTED


def resolve_session(user_id: str, profile: Optional[UserProfile]) -> SessionState:
    """Map a delivered profile (or its absence) to ADMITTED or DENIED."""

    if profile is None:
        return SessionState.denied(user_id, PROFILE_NOT_FOUND)

    if profile.status == UserStatus.ACTIVE:
        return SessionState(status=SessionStatus.ADMITTED, user_id=user_id, profile=profile)

    return SessionState.denied(user_id, _DENIAL_REASONS[profile.status])
