"""
Access-code gate for agent self-registration.

Exactly one code is live at a time. It is kept in the fixed `current` slot and
replaced by upsert, so there is no window in which an old code and a new code
coexist. Any other rows (legacy, or left over from manual edits) are removed
after the new code is written.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from domain.access_code import ACCESS_CODE_VALIDITY, CURRENT_ACCESS_CODE_ID, AccessCode
from domain.errors import AccessCodeError
from domain.time import Clock, utc_now
from repositories import access_code_repository
from repositories.store import EntityStore

logger = logging.getLogger(__name__)


def _new_code_string(year: int) -> str:
    return f"CRM-{1000 + secrets.randbelow(9000)}-{year}"


class AccessCodeGate:
    def __init__(self, store: EntityStore, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def generate_code(self) -> AccessCode:
        now = self._clock()
        code = AccessCode(
            code=_new_code_string(now.year),
            expires_at=now + ACCESS_CODE_VALIDITY,
            is_active=True,
        )
        await access_code_repository.put_current_code(self._store, code)

        for code_id in await access_code_repository.list_code_ids(self._store):
            if code_id != CURRENT_ACCESS_CODE_ID:
                await access_code_repository.delete_code(self._store, code_id)

        logger.info("Access code generated", extra={"expires_at": code.expires_at.isoformat()})
        return code

    async def current_code(self) -> Optional[AccessCode]:
        return await access_code_repository.get_current_code(self._store)

    async def validate_code(self, submitted: str) -> bool:
        """True only for an exact match of the current, active, unexpired code."""

        current = await self.current_code()
        if current is None:
            return False
        return current.accepts(submitted, self._clock())

    async def require_valid_code(self, submitted: str) -> None:
        current = await self.current_code()
        if current is None:
            raise AccessCodeError("No access code has been issued")
        now = self._clock()
        if not current.code or submitted != current.code or not current.is_active:
            raise AccessCodeError("Invalid access code")
        if current.is_expired(now):
            raise AccessCodeError("Access code has expired (24h validity)")


__all__ = ["AccessCodeGate"]
