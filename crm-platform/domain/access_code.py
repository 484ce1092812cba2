"""
Domain: sign-up access code.

A single shared secret gates agent self-registration. It lives in one
well-known record slot, is valid for 24 hours from generation, and is only
accepted on an exact match.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .time import require_utc_timestamp

ACCESS_CODE_VALIDITY = timedelta(hours=24)
CURRENT_ACCESS_CODE_ID = "current"


@dataclass(frozen=True, slots=True)
class AccessCode:
    code: str
    expires_at: datetime
    is_active: bool = True
    code_id: str = CURRENT_ACCESS_CODE_ID

    def __post_init__(self) -> None:
        require_utc_timestamp("expires_at", self.expires_at)

    def is_expired(self, as_of: datetime) -> bool:
        require_utc_timestamp("as_of", as_of)
        return as_of > self.expires_at

    def accepts(self, submitted: str, as_of: datetime) -> bool:
        """Exact, case-sensitive match of an active, unexpired code."""

        return self.is_active and bool(self.code) and submitted == self.code and not self.is_expired(as_of)
