"""
User administration and self-service registration.

Handles:
- Agent sign-up gated by the access code (profile created PENDING)
- Admin-created users (profile created ACTIVE)
- Status changes (activate / disable), profile edits and deletion
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.errors import NotFoundError, ValidationError
from domain.time import Clock, utc_now
from domain.user import UserProfile, UserRole, UserStatus
from repositories import user_repository
from repositories.identity import IdentityProvider
from repositories.store import EntityStore
from services.access_code_service import AccessCodeGate

logger = logging.getLogger(__name__)

# What a user may change on their own profile.
SELF_EDITABLE_FIELDS = frozenset({"first_name", "last_name", "phone"})
# What an admin may change on any profile (status has its own operation).
ADMIN_EDITABLE_FIELDS = SELF_EDITABLE_FIELDS | {"email", "role", "agent_code"}


def _require_name(first_name: str, last_name: str) -> None:
    if not (first_name or "").strip() and not (last_name or "").strip():
        raise ValidationError("A first or last name is required")


async def register_agent(
    store: EntityStore,
    identity_provider: IdentityProvider,
    gate: AccessCodeGate,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    access_code: str,
    phone: Optional[str] = None,
    clock: Clock = utc_now,
) -> UserProfile:
    """
    Self-service sign-up.

    The access code is checked before any account is created. The new profile
    shares the identity's principal id and waits in PENDING for an admin.
    """
    _require_name(first_name, last_name)
    await gate.require_valid_code(access_code)

    identity = await identity_provider.register(email, password)
    profile = UserProfile(
        user_id=identity.user_id,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        role=UserRole.AGENT,
        status=UserStatus.PENDING,
        created_at=clock(),
        phone=phone or None,
    )
    await user_repository.insert_user(store, profile)
    logger.info("Agent registered, awaiting validation", extra={"user_id": profile.user_id})
    return profile


async def create_user(
    store: EntityStore,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role: UserRole,
    agent_code: Optional[str] = None,
    phone: Optional[str] = None,
    clock: Clock = utc_now,
) -> UserProfile:
    """Admin-created profile; it is ACTIVE immediately."""

    _require_name(first_name, last_name)
    profile = UserProfile(
        user_id=str(uuid4()),
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
        role=role,
        status=UserStatus.ACTIVE,
        created_at=clock(),
        agent_code=agent_code or None,
        phone=phone or None,
    )
    await user_repository.insert_user(store, profile)
    logger.info("User created by admin", extra={"user_id": profile.user_id, "role": role.value})
    return profile


async def get_user(store: EntityStore, user_id: str) -> UserProfile:
    profile = await user_repository.get_user_by_id(store, user_id)
    if profile is None:
        raise NotFoundError("User", user_id)
    return profile


async def list_users(store: EntityStore, role: Optional[UserRole] = None) -> List[UserProfile]:
    users = await user_repository.list_users(store)
    if role is not None:
        users = [u for u in users if u.role == role]
    return sorted(users, key=lambda u: u.created_at, reverse=True)


async def set_user_status(store: EntityStore, user_id: str, status: UserStatus) -> UserProfile:
    """
    Change a user's status. A signed-in user's live session picks the change
    up through its profile subscription.
    """
    profile = await get_user(store, user_id)
    updated = profile.with_status(status)
    await user_repository.save_user(store, updated)
    logger.info(
        "User status changed",
        extra={"user_id": user_id, "from": profile.status.value, "to": status.value},
    )
    return updated


async def update_user(
    store: EntityStore,
    user_id: str,
    changes: Mapping[str, Any],
    *,
    self_service: bool = False,
) -> UserProfile:
    allowed = SELF_EDITABLE_FIELDS if self_service else ADMIN_EDITABLE_FIELDS
    rejected = set(changes) - allowed
    if rejected:
        raise ValidationError(f"Fields cannot be edited: {sorted(rejected)}")

    values = dict(changes)
    if "role" in values and not isinstance(values["role"], UserRole):
        try:
            values["role"] = UserRole(str(values["role"]))
        except ValueError as exc:
            raise ValidationError(f"Unknown role {values['role']!r}") from exc

    profile = await get_user(store, user_id)
    profile_fields = {f.name for f in fields(profile)}
    updated = replace(profile, **{k: v for k, v in values.items() if k in profile_fields})
    _require_name(updated.first_name, updated.last_name)
    await user_repository.save_user(store, updated)
    return updated


async def delete_user(store: EntityStore, user_id: str) -> None:
    await get_user(store, user_id)
    await user_repository.delete_user(store, user_id)
    logger.info("User deleted", extra={"user_id": user_id})


__all__ = [
    "SELF_EDITABLE_FIELDS",
    "ADMIN_EDITABLE_FIELDS",
    "register_agent",
    "create_user",
    "get_user",
    "list_users",
    "set_user_status",
    "update_user",
    "delete_user",
]
