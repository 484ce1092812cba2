"""Clients API Endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import ensure_record_access, get_engine, require_capability, scope_agent_id
from api.models import CancelClientRequest, ClientResponse
from domain.capabilities import Capability
from domain.user import UserProfile
from services.lifecycle_service import LifecycleEngine

router = APIRouter(prefix="/clients")

_READ = require_capability(Capability.CLIENTS_VIEW_ALL, Capability.CLIENTS_VIEW_OWN)


@router.get("", response_model=List[ClientResponse], summary="List Clients")
async def list_clients(
    agent_id: Optional[str] = Query(None, description="Filter by owning agent (admins and supervisors)"),
    include_cancelled: bool = Query(False, description="Include CANCELLED clients"),
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    scoped = scope_agent_id(profile, Capability.CLIENTS_VIEW_ALL, agent_id)
    clients = await engine.list_clients(scoped, include_cancelled=include_cancelled)
    return [ClientResponse.from_domain(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse, summary="Get Client")
async def get_client(
    client_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    client = await engine.get_client(client_id)
    ensure_record_access(profile, client.agent_id, Capability.CLIENTS_VIEW_ALL)
    return ClientResponse.from_domain(client)


@router.post("/{client_id}/cancel", response_model=ClientResponse, summary="Cancel Client")
async def cancel_client(
    client_id: str,
    request: CancelClientRequest,
    engine: LifecycleEngine = Depends(get_engine),
    _: UserProfile = Depends(require_capability(Capability.CLIENTS_CANCEL)),
):
    """
    Cancel the client (terminal) and alert the owning agent with the reason.

    Returns 502 if the client was cancelled but the alert could not be
    delivered after retries.
    """
    result = await engine.cancel_client(client_id, request.reason)
    return ClientResponse.from_domain(result.client)
