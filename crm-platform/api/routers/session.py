"""
Session Stream WebSocket.

Pushes the caller's live session state. Each connection opens its own
SessionReconciler over the identity behind its bearer token, so a profile
that is disabled (or re-activated) while the connection is open is reflected
immediately.

The token comes from the Authorization header or, for browsers that cannot
set headers on a WebSocket, the `access_token` query parameter. Sending the
text frame "sign_out" ends the session: the server pushes UNAUTHENTICATED
and closes the connection.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from api.dependencies import get_identity_provider, get_store
from api.models import SessionStateResponse
from domain.session import SessionState, SessionStatus
from repositories.identity import IdentityProvider
from repositories.store import EntityStore
from services.session_service import ConnectionIdentity, SessionReconciler

logger = logging.getLogger(__name__)

router = APIRouter()

SIGN_OUT = "sign_out"


def _bearer_token(websocket: WebSocket, access_token: Optional[str]) -> Optional[str]:
    if access_token:
        return access_token
    scheme, _, credentials = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def _send_states(websocket: WebSocket, states: "asyncio.Queue[SessionState]") -> None:
    while True:
        state = await states.get()
        await websocket.send_json(SessionStateResponse.from_domain(state).model_dump(mode="json"))
        if state.status == SessionStatus.UNAUTHENTICATED:
            return


async def _receive_commands(websocket: WebSocket, source: ConnectionIdentity) -> None:
    try:
        while True:
            if await websocket.receive_text() == SIGN_OUT:
                source.set(None)
    except WebSocketDisconnect:
        return


@router.websocket("/session/stream")
async def session_stream(
    websocket: WebSocket,
    access_token: Optional[str] = Query(None),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    store: EntityStore = Depends(get_store),
):
    token = _bearer_token(websocket, access_token)
    identity = await identity_provider.get_user(token) if token else None
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid or expired session")
        return

    await websocket.accept()
    logger.info("Session stream opened", extra={"user_id": identity.user_id})

    # Profile pushes may arrive on the store's own thread.
    loop = asyncio.get_running_loop()
    states: "asyncio.Queue[SessionState]" = asyncio.Queue()
    source = ConnectionIdentity()
    signed_out = False

    async with SessionReconciler(source, store) as reconciler:
        unsubscribe = reconciler.subscribe(
            lambda state: loop.call_soon_threadsafe(states.put_nowait, state), replay=False
        )
        sender = asyncio.create_task(_send_states(websocket, states))
        receiver = asyncio.create_task(_receive_commands(websocket, source))
        try:
            source.set(identity)
            done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in done:
                task.result()
            signed_out = sender in done
        finally:
            sender.cancel()
            receiver.cancel()
            unsubscribe()

    logger.info("Session stream closed", extra={"user_id": identity.user_id, "signed_out": signed_out})
    if signed_out:
        await websocket.close()
