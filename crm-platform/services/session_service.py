"""
Session authorization reconciler.

Keeps a session's admitted/denied state in step with the signed-in identity's
live profile record:

- identity present  -> RESOLVING, then a profile subscription is opened
- profile pushed    -> ADMITTED or DENIED via resolve_session()
- subscription error-> DENIED("profile lookup failed")
- identity absent   -> subscription disposed, UNAUTHENTICATED

Identity events are handled one at a time. Each one bumps a generation
counter and disposes the previous profile subscription before opening the
next, so a late push from an old subscription can never re-admit a stale
profile.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set

from domain.session import PROFILE_LOOKUP_FAILED, SessionState, resolve_session
from domain.user import UserProfile
from repositories import user_repository
from repositories.identity import Identity, IdentityCallback, IdentitySource
from repositories.store import CallbackSubscription, EntityStore, Subscription
from services.observable import Observable

logger = logging.getLogger(__name__)


class ConnectionIdentity:
    """
    Identity source for one server-side connection. It is set from the
    connection's bearer token and cleared when the client signs out.
    """

    def __init__(self) -> None:
        self._identity: Observable[Optional[Identity]] = Observable(None)

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity.value

    def set(self, identity: Optional[Identity]) -> None:
        if identity != self._identity.value:
            self._identity.publish(identity)

    def on_identity_change(self, callback: IdentityCallback) -> Subscription:
        return CallbackSubscription(self._identity.subscribe(callback, replay=False))


class SessionReconciler:
    """
    Scoped resource: use `async with SessionReconciler(...)` (or start/close)
    so both the identity subscription and the profile subscription are
    released on every exit path.
    """

    def __init__(self, identity_source: IdentitySource, store: EntityStore) -> None:
        self._identity_source = identity_source
        self._store = store
        self._state: Observable[SessionState] = Observable(SessionState.unauthenticated())
        self._lock = asyncio.Lock()
        self._generation = 0
        self._identity_subscription: Optional[Subscription] = None
        self._profile_subscription: Optional[Subscription] = None
        self._pending: Set["asyncio.Task[None]"] = set()
        self._closed = False

    # ------------------------------------------------------------------ public

    @property
    def state(self) -> SessionState:
        return self._state.value

    @property
    def has_profile_subscription(self) -> bool:
        return self._profile_subscription is not None

    def subscribe(self, listener: Callable[[SessionState], None], *, replay: bool = True) -> Callable[[], None]:
        return self._state.subscribe(listener, replay=replay)

    async def start(self) -> "SessionReconciler":
        if self._identity_subscription is None:
            self._identity_subscription = self._identity_source.on_identity_change(self._on_identity)
        return self

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._identity_subscription is not None:
            subscription, self._identity_subscription = self._identity_subscription, None
            await subscription.unsubscribe()

        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*self._pending, return_exceptions=True)

        async with self._lock:
            self._generation += 1
            await self._dispose_profile_subscription()
            self._set_state(SessionState.unauthenticated())

    async def __aenter__(self) -> "SessionReconciler":
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def handle_identity(self, identity: Optional[Identity]) -> None:
        """Apply one identity-change event. Safe to call concurrently."""

        async with self._lock:
            if self._closed:
                return
            self._generation += 1
            generation = self._generation
            await self._dispose_profile_subscription()

            if identity is None:
                self._set_state(SessionState.unauthenticated())
                return

            user_id = identity.user_id
            self._set_state(SessionState.resolving(user_id))
            try:
                self._profile_subscription = await user_repository.listen_to_profile(
                    self._store,
                    user_id,
                    lambda profile: self._on_profile(generation, user_id, profile),
                    lambda exc: self._on_profile_error(generation, user_id, exc),
                )
            except Exception as exc:
                self._on_profile_error(generation, user_id, exc)

    async def wait_until_settled(self) -> None:
        """Wait for identity events already received to be fully applied."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # --------------------------------------------------------------- internals

    def _on_identity(self, identity: Optional[Identity]) -> None:
        task = asyncio.get_running_loop().create_task(self.handle_identity(identity))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_profile(self, generation: int, user_id: str, profile: Optional[UserProfile]) -> None:
        if generation != self._generation:
            logger.debug("Ignoring push from a disposed profile subscription", extra={"user_id": user_id})
            return
        self._set_state(resolve_session(user_id, profile))

    def _on_profile_error(self, generation: int, user_id: str, exc: BaseException) -> None:
        if generation != self._generation:
            return
        logger.warning(
            "Profile subscription failed; denying session",
            extra={"user_id": user_id, "error": str(exc)},
        )
        self._set_state(SessionState.denied(user_id, PROFILE_LOOKUP_FAILED))

    async def _dispose_profile_subscription(self) -> None:
        if self._profile_subscription is None:
            return
        subscription, self._profile_subscription = self._profile_subscription, None
        await subscription.unsubscribe()

    def _set_state(self, state: SessionState) -> None:
        if state == self._state.value:
            return
        logger.info(
            f"Session {state.status.value}",
            extra={"user_id": state.user_id, "reason": state.reason},
        )
        self._state.publish(state)


__all__ = ["ConnectionIdentity", "SessionReconciler"]
