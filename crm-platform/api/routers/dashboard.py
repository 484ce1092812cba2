"""
Dashboard API Endpoints.

Aggregated statistics per role and the AI insights summary. Insights are best
effort: failures come back as a placeholder text, never as an error status.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_engine, get_insights_client, get_store, require_capability
from api.models import AdminOverviewResponse, AgentStatsResponse, InsightsResponse
from domain.capabilities import Capability
from domain.user import UserProfile
from repositories.store import EntityStore
from services import dashboard_service
from services.insights_service import InsightsClient, generate_team_insights
from services.lifecycle_service import LifecycleEngine

router = APIRouter(prefix="/dashboard")


@router.get("/agent", response_model=AgentStatsResponse, summary="My Statistics")
async def agent_dashboard(
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(require_capability(Capability.COMMISSIONS_VIEW_OWN)),
):
    return AgentStatsResponse.from_domain(await dashboard_service.agent_stats(engine, profile.user_id))


@router.get("/overview", response_model=AdminOverviewResponse, summary="Team Overview")
async def admin_dashboard(
    engine: LifecycleEngine = Depends(get_engine),
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.SALES_VIEW_ALL)),
):
    return AdminOverviewResponse.from_domain(await dashboard_service.admin_overview(engine, store))


@router.post("/insights", response_model=InsightsResponse, summary="AI Sales Insights")
async def insights(
    engine: LifecycleEngine = Depends(get_engine),
    client: InsightsClient = Depends(get_insights_client),
    _: UserProfile = Depends(require_capability(Capability.INSIGHTS_GENERATE)),
):
    return InsightsResponse(text=await generate_team_insights(engine, client))
