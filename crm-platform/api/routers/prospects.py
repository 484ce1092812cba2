"""
Prospects API Endpoints.

Agents manage their own prospects; admins manage everyone's; supervisors
read everything.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import ensure_record_access, get_engine, require_capability, scope_agent_id
from api.models import (
    ConversionResponse,
    ClientResponse,
    CreateProspectRequest,
    ProspectResponse,
    UpdateProspectRequest,
)
from domain.capabilities import Capability, has_capability
from domain.user import UserProfile
from services.lifecycle_service import LifecycleEngine

router = APIRouter(prefix="/prospects")

_READ = require_capability(Capability.PROSPECTS_VIEW_ALL, Capability.PROSPECTS_MANAGE_OWN)
_WRITE = require_capability(Capability.PROSPECTS_MANAGE_ALL, Capability.PROSPECTS_MANAGE_OWN)


@router.get("", response_model=List[ProspectResponse], summary="List Prospects")
async def list_prospects(
    agent_id: Optional[str] = Query(None, description="Filter by owning agent (admins and supervisors)"),
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    scoped = scope_agent_id(profile, Capability.PROSPECTS_VIEW_ALL, agent_id)
    return [ProspectResponse.from_domain(p) for p in await engine.list_prospects(scoped)]


@router.post("", response_model=ProspectResponse, status_code=status.HTTP_201_CREATED, summary="Create Prospect")
async def create_prospect(
    request: CreateProspectRequest,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_WRITE),
):
    """
    Create a prospect. The status is always PENDING; agents always own the
    prospects they create.
    """
    agent_id = profile.user_id
    if request.agent_id and has_capability(profile.role, Capability.PROSPECTS_MANAGE_ALL):
        agent_id = request.agent_id

    prospect = await engine.create_prospect(agent_id, request.to_domain())
    return ProspectResponse.from_domain(prospect)


@router.get("/{prospect_id}", response_model=ProspectResponse, summary="Get Prospect")
async def get_prospect(
    prospect_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    prospect = await engine.get_prospect(prospect_id)
    ensure_record_access(profile, prospect.agent_id, Capability.PROSPECTS_VIEW_ALL)
    return ProspectResponse.from_domain(prospect)


@router.patch("/{prospect_id}", response_model=ProspectResponse, summary="Update Prospect")
async def update_prospect(
    prospect_id: str,
    request: UpdateProspectRequest,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_WRITE),
):
    """Edit contact details. Converted prospects can no longer be edited (409)."""

    prospect = await engine.get_prospect(prospect_id)
    ensure_record_access(profile, prospect.agent_id, Capability.PROSPECTS_MANAGE_ALL)
    return ProspectResponse.from_domain(await engine.update_prospect(prospect_id, request.changes()))


@router.post("/{prospect_id}/convert", response_model=ConversionResponse, summary="Convert to Client")
async def convert_prospect(
    prospect_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_WRITE),
):
    """Mark the prospect CONVERTED and create its client. A second call returns 409."""

    prospect = await engine.get_prospect(prospect_id)
    ensure_record_access(profile, prospect.agent_id, Capability.PROSPECTS_MANAGE_ALL)
    result = await engine.convert_prospect(prospect_id)
    return ConversionResponse(
        prospect=ProspectResponse.from_domain(result.prospect),
        client=ClientResponse.from_domain(result.client),
    )


@router.delete("/{prospect_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Prospect")
async def delete_prospect(
    prospect_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_WRITE),
):
    prospect = await engine.get_prospect(prospect_id)
    ensure_record_access(profile, prospect.agent_id, Capability.PROSPECTS_MANAGE_ALL)
    await engine.delete_prospect(prospect_id)
