"""
Identity provider interface and its Supabase Auth implementation.

The provider owns credentials. On the server it never holds a signed-in
session of its own: sign-in and sign-up run on a throwaway auth client, and
every later request identifies itself with its access token.

An `IdentitySource` reports the currently signed-in identity (or None) to
subscribers whenever it changes. The session reconciler follows one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

from supabase import AsyncClient, AuthError  # type: ignore[import-not-found]

from domain.errors import AuthorizationError, ValidationError
from repositories.client import create_auth_client
from repositories.store import Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    """A signed-in principal. `user_id` is also the profile record id."""

    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None


IdentityCallback = Callable[[Optional[Identity]], None]

AuthClientFactory = Callable[[], Awaitable[AsyncClient]]


class IdentitySource(Protocol):
    def on_identity_change(self, callback: IdentityCallback) -> Subscription: ...


class IdentityProvider(Protocol):
    async def login(self, email: str, password: str) -> Identity: ...

    async def register(self, email: str, password: str) -> Identity: ...

    async def logout(self, access_token: str) -> None: ...

    async def send_reset_email(self, email: str) -> None: ...

    async def get_user(self, access_token: str) -> Optional[Identity]: ...


def _identity_from(user: Any, session: Any = None) -> Identity:
    return Identity(
        user_id=str(user.id),
        email=getattr(user, "email", None),
        access_token=getattr(session, "access_token", None) if session is not None else None,
    )


class SupabaseIdentityProvider:
    """
    `client` is the shared server client. It is only used for calls that take
    the caller's token explicitly (`get_user(jwt)`, `admin.sign_out(jwt)`), so
    its own Authorization header always stays the server key.
    """

    def __init__(self, client: AsyncClient, auth_client_factory: AuthClientFactory = create_auth_client) -> None:
        self._auth = client.auth
        self._new_auth_client = auth_client_factory

    async def login(self, email: str, password: str) -> Identity:
        auth = (await self._new_auth_client()).auth
        try:
            response = await auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            logger.info("Login rejected", extra={"email": email, "error": str(exc)})
            raise AuthorizationError("Invalid credentials") from exc

        if response.user is None:
            raise AuthorizationError("Invalid credentials")
        return _identity_from(response.user, response.session)

    async def register(self, email: str, password: str) -> Identity:
        auth = (await self._new_auth_client()).auth
        try:
            response = await auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise ValidationError(f"Registration failed: {exc}") from exc

        if response.user is None:
            raise ValidationError("Registration failed: no user returned")
        return _identity_from(response.user, response.session)

    async def logout(self, access_token: str) -> None:
        """Revoke the sessions behind `access_token`; other users are unaffected."""

        try:
            await self._auth.admin.sign_out(access_token)
        except AuthError as exc:
            # The token is already invalid; there is nothing left to revoke.
            logger.info("Sign-out of an invalid token", extra={"error": str(exc)})

    async def send_reset_email(self, email: str) -> None:
        auth = (await self._new_auth_client()).auth
        try:
            await auth.reset_password_for_email(email)
        except AuthError as exc:
            raise ValidationError(f"Could not send reset email to {email}: {exc}") from exc

    async def get_user(self, access_token: str) -> Optional[Identity]:
        try:
            response = await self._auth.get_user(access_token)
        except AuthError as exc:
            logger.info("Access token rejected", extra={"error": str(exc)})
            return None

        if response is None or response.user is None:
            return None
        return _identity_from(response.user, _TokenSession(access_token))


@dataclass(frozen=True, slots=True)
class _TokenSession:
    access_token: str


__all__ = [
    "Identity",
    "IdentityCallback",
    "IdentitySource",
    "IdentityProvider",
    "AuthClientFactory",
    "SupabaseIdentityProvider",
]
