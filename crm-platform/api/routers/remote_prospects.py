"""
Remote Prospects API Endpoints.

The capture endpoint is public: it backs the link an agent shares with
potential customers. Captured leads wait in the agent's inbox until the agent
confirms them (they become prospects) or discards them.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import ensure_record_access, get_engine, get_store, require_capability
from api.models import LeadDetailsModel, ProspectResponse, RemoteProspectResponse
from domain.capabilities import Capability
from domain.user import UserProfile, UserRole
from repositories import user_repository
from repositories.store import EntityStore
from services.lifecycle_service import LifecycleEngine

router = APIRouter()

_MANAGE_OWN = require_capability(Capability.REMOTE_PROSPECTS_MANAGE_OWN)


@router.post(
    "/public/agents/{agent_id}/leads",
    response_model=RemoteProspectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Lead (public)",
)
async def capture_lead(
    agent_id: str,
    request: LeadDetailsModel,
    engine: LifecycleEngine = Depends(get_engine),
    store: EntityStore = Depends(get_store),
):
    """Anonymous submission from an agent's capture link. No authentication."""

    agent = await user_repository.get_user_by_id(store, agent_id)
    if agent is None or agent.role != UserRole.AGENT or not agent.is_active():
        raise HTTPException(status_code=404, detail="Unknown capture link")

    remote = await engine.capture_remote_prospect(agent_id, request.to_domain())
    return RemoteProspectResponse.from_domain(remote)


@router.get("/remote-prospects", response_model=List[RemoteProspectResponse], summary="List Captured Leads")
async def list_remote_prospects(
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_MANAGE_OWN),
):
    remotes = await engine.list_remote_prospects(profile.user_id)
    return [RemoteProspectResponse.from_domain(r) for r in remotes]


@router.post(
    "/remote-prospects/{remote_prospect_id}/confirm",
    response_model=ProspectResponse,
    summary="Confirm Captured Lead",
)
async def confirm_remote_prospect(
    remote_prospect_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_MANAGE_OWN),
):
    """Move the lead into the agent's prospects (status PENDING)."""

    remote = await engine.get_remote_prospect(remote_prospect_id)
    ensure_record_access(profile, remote.agent_id, Capability.PROSPECTS_MANAGE_ALL)
    return ProspectResponse.from_domain(await engine.confirm_remote_prospect(remote_prospect_id))


@router.delete(
    "/remote-prospects/{remote_prospect_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard Captured Lead",
)
async def discard_remote_prospect(
    remote_prospect_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_MANAGE_OWN),
):
    remote = await engine.get_remote_prospect(remote_prospect_id)
    ensure_record_access(profile, remote.agent_id, Capability.PROSPECTS_MANAGE_ALL)
    await engine.discard_remote_prospect(remote_prospect_id)
