"""
Read-only dashboard aggregates built on top of the lifecycle engine listings.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from domain.prospect import ProspectStatus
from domain.sale import Sale, SaleStatus
from domain.user import UserRole
from repositories.store import EntityStore
from services import user_service
from services.lifecycle_service import LifecycleEngine

UNKNOWN_CLIENT_NAME = "Unknown client"


@dataclass(frozen=True, slots=True)
class CommissionTotals:
    total: Decimal
    pending: Decimal
    paid: Decimal


@dataclass(frozen=True, slots=True)
class AgentStats:
    prospects: int
    pending_prospects: int
    active_clients: int
    remote_leads: int
    commissions: CommissionTotals


@dataclass(frozen=True, slots=True)
class AdminOverview:
    active_agents: int
    prospects: int
    active_clients: int
    total_revenue: Decimal
    commissions: CommissionTotals


@dataclass(frozen=True, slots=True)
class SaleWithClient:
    sale: Sale
    client_name: str


def commission_totals(sales: Iterable[Sale]) -> CommissionTotals:
    total = pending = paid = Decimal("0")
    for sale in sales:
        total += sale.commission
        if sale.status == SaleStatus.PAID:
            paid += sale.commission
        else:
            pending += sale.commission
    return CommissionTotals(total=total, pending=pending, paid=paid)


async def agent_stats(engine: LifecycleEngine, agent_id: str) -> AgentStats:
    prospects = await engine.list_prospects(agent_id)
    clients = await engine.list_clients(agent_id)
    remotes = await engine.list_remote_prospects(agent_id)
    sales = await engine.list_sales(agent_id)
    return AgentStats(
        prospects=len(prospects),
        pending_prospects=sum(1 for p in prospects if p.status == ProspectStatus.PENDING),
        active_clients=len(clients),
        remote_leads=len(remotes),
        commissions=commission_totals(sales),
    )


async def admin_overview(engine: LifecycleEngine, store: EntityStore) -> AdminOverview:
    users = await user_service.list_users(store, role=UserRole.AGENT)
    prospects = await engine.list_prospects()
    clients = await engine.list_clients()
    sales = await engine.list_sales()
    return AdminOverview(
        active_agents=sum(1 for u in users if u.is_active()),
        prospects=len(prospects),
        active_clients=len(clients),
        total_revenue=sum((s.amount for s in sales), Decimal("0")),
        commissions=commission_totals(sales),
    )


async def sales_with_client_names(
    engine: LifecycleEngine, agent_id: Optional[str] = None
) -> List[SaleWithClient]:
    """Sales (newest first) paired with their client's name."""

    sales = await engine.list_sales(agent_id)
    names = await engine.client_names(agent_id)
    return [SaleWithClient(sale=s, client_name=names.get(s.client_id, UNKNOWN_CLIENT_NAME)) for s in sales]


__all__ = [
    "UNKNOWN_CLIENT_NAME",
    "CommissionTotals",
    "AgentStats",
    "AdminOverview",
    "SaleWithClient",
    "commission_totals",
    "agent_stats",
    "admin_overview",
    "sales_with_client_names",
]
