"""
Sales & Commissions API Endpoints.

Profit and commission are computed by the server from revenue and real cost;
they are never accepted from the client.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_engine, require_capability, scope_agent_id
from api.models import (
    CommissionTotalsResponse,
    ConcludeSaleRequest,
    CorrectSaleRequest,
    SaleResponse,
)
from domain.capabilities import Capability
from domain.user import UserProfile
from services import dashboard_service
from services.lifecycle_service import LifecycleEngine

router = APIRouter()

_READ = require_capability(Capability.SALES_VIEW_ALL, Capability.COMMISSIONS_VIEW_OWN)


@router.get("/sales", response_model=List[SaleResponse], summary="List Sales")
async def list_sales(
    agent_id: Optional[str] = Query(None, description="Filter by agent (admins and supervisors)"),
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    scoped = scope_agent_id(profile, Capability.SALES_VIEW_ALL, agent_id)
    views = await dashboard_service.sales_with_client_names(engine, scoped)
    return [SaleResponse.from_view(v) for v in views]


@router.post("/sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED, summary="Conclude Sale")
async def conclude_sale(
    request: ConcludeSaleRequest,
    engine: LifecycleEngine = Depends(get_engine),
    _: UserProfile = Depends(require_capability(Capability.SALES_CONCLUDE)),
):
    """
    Record the sale for a PENDING client.

    **Example:** revenue 500000, real cost 350000 gives profit 150000 and
    commission 22500. The client becomes SALE_CONCLUDED. A client that is not
    PENDING returns 409.
    """
    result = await engine.conclude_sale(request.client_id, request.revenue, request.real_cost)
    return SaleResponse.from_domain(result.sale, client_name=result.client.full_name)


@router.put("/sales/{sale_id}", response_model=SaleResponse, summary="Correct Sale")
async def correct_sale(
    sale_id: str,
    request: CorrectSaleRequest,
    engine: LifecycleEngine = Depends(get_engine),
    _: UserProfile = Depends(require_capability(Capability.SALES_CORRECT)),
):
    """Recompute profit and commission from corrected figures. The status is unchanged."""

    return SaleResponse.from_domain(await engine.correct_sale(sale_id, request.revenue, request.real_cost))


@router.post("/sales/{sale_id}/settle", response_model=SaleResponse, summary="Settle Commission")
async def settle_commission(
    sale_id: str,
    engine: LifecycleEngine = Depends(get_engine),
    _: UserProfile = Depends(require_capability(Capability.COMMISSIONS_SETTLE)),
):
    """Mark the commission PAID. Already-paid sales return 409."""

    return SaleResponse.from_domain(await engine.settle_commission(sale_id))


@router.get("/commissions/summary", response_model=CommissionTotalsResponse, summary="Commission Totals")
async def commission_summary(
    agent_id: Optional[str] = Query(None, description="Filter by agent (admins and supervisors)"),
    engine: LifecycleEngine = Depends(get_engine),
    profile: UserProfile = Depends(_READ),
):
    scoped = scope_agent_id(profile, Capability.SALES_VIEW_ALL, agent_id)
    sales = await engine.list_sales(scoped)
    return CommissionTotalsResponse.from_domain(dashboard_service.commission_totals(sales))
