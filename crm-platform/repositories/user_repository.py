"""
User profile repository (persistence).

Provides persistence operations for UserProfile records and the live profile
subscription used by the session reconciler. No authorization rules here.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional

from domain.time import parse_utc_datetime, to_iso_utc
from domain.user import UserProfile, UserRole, UserStatus
from repositories.store import EntityStore, OnError, Record, Subscription, parse_rows

_USERS_TABLE: str = "users"


def _profile_to_row(profile: UserProfile) -> Record:
    return {
        "id": profile.user_id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "email": profile.email,
        "role": profile.role.value,
        "status": profile.status.value,
        "agent_code": profile.agent_code,
        "phone": profile.phone,
        "created_at_utc": to_iso_utc(profile.created_at, name="created_at"),
    }


def _row_to_profile(row: Mapping[str, Any]) -> UserProfile:
    return UserProfile(
        user_id=str(row["id"]),
        first_name=str(row.get("first_name") or ""),
        last_name=str(row.get("last_name") or ""),
        email=str(row["email"]),
        role=UserRole(str(row["role"])),
        status=UserStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        agent_code=row.get("agent_code") or None,
        phone=row.get("phone") or None,
    )


async def insert_user(store: EntityStore, profile: UserProfile) -> None:
    await store.add(_USERS_TABLE, _profile_to_row(profile))


async def save_user(store: EntityStore, profile: UserProfile) -> None:
    await store.update(_USERS_TABLE, profile.user_id, _profile_to_row(profile))


async def delete_user(store: EntityStore, user_id: str) -> None:
    await store.delete(_USERS_TABLE, user_id)


async def get_user_by_id(store: EntityStore, user_id: str) -> Optional[UserProfile]:
    row = await store.get_by_id(_USERS_TABLE, user_id)
    return _row_to_profile(row) if row else None


async def list_users(store: EntityStore) -> List[UserProfile]:
    return parse_rows(_USERS_TABLE, await store.get_all(_USERS_TABLE), _row_to_profile)


async def listen_to_profile(
    store: EntityStore,
    user_id: str,
    on_profile: Callable[[Optional[UserProfile]], None],
    on_error: OnError,
) -> Subscription:
    """
    Subscribe to a user's profile record.

    `on_profile` receives the parsed profile (None if the record is missing or
    deleted). Rows that cannot be parsed are reported through `on_error`.
    """

    def _on_change(row: Optional[Record]) -> None:
        if row is None:
            on_profile(None)
            return
        try:
            profile = _row_to_profile(row)
        except (KeyError, TypeError, ValueError) as exc:
            on_error(exc)
            return
        on_profile(profile)

    return await store.listen_by_id(_USERS_TABLE, user_id, _on_change, on_error)


__all__ = [
    "insert_user",
    "save_user",
    "delete_user",
    "get_user_by_id",
    "list_users",
    "listen_to_profile",
]
