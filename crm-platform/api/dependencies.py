"""
FastAPI dependencies: collaborators, services, the current profile and
capability checks.

Collaborators live on `app.state` (set up in the application lifespan) and
are overridden in tests through `app.dependency_overrides`. They take an
`HTTPConnection` so HTTP and WebSocket routes share them.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import get_settings
from domain.capabilities import Capability, has_capability
from domain.errors import AuthorizationError
from domain.session import resolve_session
from domain.user import UserProfile
from repositories import user_repository
from repositories.identity import IdentityProvider
from repositories.store import EntityStore
from services.access_code_service import AccessCodeGate
from services.insights_service import InsightsClient
from services.lifecycle_service import LifecycleEngine
from services.settings_service import SettingsStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(connection: HTTPConnection) -> EntityStore:
    return connection.app.state.store


def get_identity_provider(connection: HTTPConnection) -> IdentityProvider:
    return connection.app.state.identity_provider


def get_settings_store(connection: HTTPConnection) -> SettingsStore:
    return connection.app.state.settings_store


def get_engine(store: EntityStore = Depends(get_store)) -> LifecycleEngine:
    return LifecycleEngine(store, notification_attempts=get_settings().notification_max_attempts)


def get_access_code_gate(store: EntityStore = Depends(get_store)) -> AccessCodeGate:
    return AccessCodeGate(store)


def get_insights_client() -> InsightsClient:
    return InsightsClient.from_settings()


async def get_current_profile(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    store: EntityStore = Depends(get_store),
) -> UserProfile:
    """
    Resolve the bearer token to an admitted profile.

    401 when there is no valid session, 403 with the denial reason when the
    profile is pending, disabled or missing.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    identity = await identity_provider.get_user(credentials.credentials)
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    profile = await user_repository.get_user_by_id(store, identity.user_id)
    state = resolve_session(identity.user_id, profile)
    if not state.is_admitted or state.profile is None:
        logger.info("Session denied", extra={"user_id": identity.user_id, "reason": state.reason})
        raise HTTPException(status_code=403, detail=state.reason)
    return state.profile


def require_capability(*capabilities: Capability):
    """
    FastAPI dependency factory: the caller needs at least one of `capabilities`.
    Usage: profile: UserProfile = Depends(require_capability(Capability.SALES_CONCLUDE))
    """

    async def _check(profile: UserProfile = Depends(get_current_profile)) -> UserProfile:
        if not any(has_capability(profile.role, c) for c in capabilities):
            logger.warning(
                "Permission denied",
                extra={
                    "user_id": profile.user_id,
                    "role": profile.role.value,
                    "required": [c.value for c in capabilities],
                },
            )
            raise HTTPException(
                status_code=403,
                detail=f"Missing capability: {' or '.join(c.value for c in capabilities)}",
            )
        return profile

    return _check


def ensure_record_access(profile: UserProfile, owner_id: str, all_records: Capability) -> None:
    """Callers without `all_records` may only touch records they own."""

    if has_capability(profile.role, all_records) or owner_id == profile.user_id:
        return
    raise AuthorizationError("This record belongs to another agent")


def scope_agent_id(profile: UserProfile, all_records: Capability, requested: Optional[str] = None) -> Optional[str]:
    """Agent filter for listings: callers without `all_records` only see their own."""

    if has_capability(profile.role, all_records):
        return requested
    return profile.user_id
