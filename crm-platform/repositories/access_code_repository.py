"""Access code repository: the single well-known `current` slot plus legacy rows."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.access_code import CURRENT_ACCESS_CODE_ID, AccessCode
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.store import EntityStore, Record

_ACCESS_CODES_TABLE: str = "access_codes"


def _code_to_row(code: AccessCode) -> Record:
    return {
        "code": code.code,
        "expires_at_utc": to_iso_utc(code.expires_at, name="expires_at"),
        "is_active": code.is_active,
    }


def _row_to_code(row: Mapping[str, Any]) -> AccessCode:
    return AccessCode(
        code=str(row.get("code") or ""),
        expires_at=parse_utc_datetime(row["expires_at_utc"]),
        is_active=bool(row.get("is_active", False)),
        code_id=str(row["id"]),
    )


async def put_current_code(store: EntityStore, code: AccessCode) -> None:
    await store.upsert(_ACCESS_CODES_TABLE, CURRENT_ACCESS_CODE_ID, _code_to_row(code))


async def get_current_code(store: EntityStore) -> Optional[AccessCode]:
    row = await store.get_by_id(_ACCESS_CODES_TABLE, CURRENT_ACCESS_CODE_ID)
    return _row_to_code(row) if row else None


async def list_code_ids(store: EntityStore) -> List[str]:
    return [str(row["id"]) for row in await store.get_all(_ACCESS_CODES_TABLE)]


async def delete_code(store: EntityStore, code_id: str) -> None:
    await store.delete(_ACCESS_CODES_TABLE, code_id)


__all__ = ["put_current_code", "get_current_code", "list_code_ids", "delete_code"]
