"""
Lifecycle engine for Prospect -> Client -> Sale -> Commission.

Handles:
- Prospect creation, edits and deletion (PENDING only)
- Conversion into exactly one Client (guarded on current status)
- Sale conclusion, correction and commission settlement, with profit and
  commission always derived from revenue and cost
- Client cancellation with a mandatory reason and an alert to the owning agent
- Remote lead capture, confirmation and discard

The engine is role-agnostic: capability checks happen at the API boundary.
Multi-record operations are not transactional at the store; where a second
write fails after a first succeeded, the first is compensated before the
error propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Mapping, Optional
from uuid import uuid4

from domain.client import Client, ClientStatus
from domain.errors import InvalidTransitionError, NotFoundError, StoreError, ValidationError
from domain.notification import Notification, NotificationType
from domain.prospect import LeadDetails, Prospect, ProspectStatus, RemoteProspect
from domain.sale import Amount, Sale, SaleFinancials, SaleStatus
from domain.time import Clock, utc_now
from repositories import client_repository, prospect_repository, sale_repository
from repositories.store import EntityStore
from services.notification_service import dispatch_notification

logger = logging.getLogger(__name__)

# Prospect fields owned by the engine, never by callers.
_PROTECTED_PROSPECT_FIELDS = frozenset({"id", "prospect_id", "agent_id", "status", "created_at"})

CANCELLATION_TITLE = "Client record deleted"


@dataclass(frozen=True, slots=True)
class ConversionResult:
    prospect: Prospect
    client: Client


@dataclass(frozen=True, slots=True)
class SaleConclusion:
    sale: Sale
    client: Client


@dataclass(frozen=True, slots=True)
class CancellationResult:
    client: Client
    notification: Notification


def _new_id() -> str:
    return str(uuid4())


class LifecycleEngine:
    """Sole mutation point for Prospect, RemoteProspect, Client and Sale records."""

    def __init__(
        self,
        store: EntityStore,
        *,
        clock: Clock = utc_now,
        notification_attempts: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self._store = store
        self._clock = clock
        self._notification_attempts = notification_attempts
        self._retry_delay = retry_delay

    async def _compensate(self, cause: StoreError, undo: Awaitable[None], orphan: str, **context: str) -> None:
        """
        Roll back the first half of a two-step write. When the rollback fails
        as well the orphaned record is logged; the caller re-raises `cause`.
        """
        try:
            await undo
        except StoreError as exc:
            logger.error(
                f"Compensation failed; orphaned {orphan} left in store",
                extra={**context, "cause": str(cause), "error": str(exc)},
            )

    # ------------------------------------------------------------------ loaders

    async def _require_prospect(self, prospect_id: str) -> Prospect:
        prospect = await prospect_repository.get_prospect_by_id(self._store, prospect_id)
        if prospect is None:
            raise NotFoundError("Prospect", prospect_id)
        return prospect

    async def _require_client(self, client_id: str) -> Client:
        client = await client_repository.get_client_by_id(self._store, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    async def _require_sale(self, sale_id: str) -> Sale:
        sale = await sale_repository.get_sale_by_id(self._store, sale_id)
        if sale is None:
            raise NotFoundError("Sale", sale_id)
        return sale

    async def _require_remote(self, remote_prospect_id: str) -> RemoteProspect:
        remote = await prospect_repository.get_remote_prospect_by_id(self._store, remote_prospect_id)
        if remote is None:
            raise NotFoundError("RemoteProspect", remote_prospect_id)
        return remote

    # ---------------------------------------------------------------- prospects

    async def create_prospect(self, agent_id: str, details: LeadDetails) -> Prospect:
        """Create a Prospect; status is always PENDING, timestamp from the engine clock."""

        if not agent_id:
            raise ValidationError("agent_id is required")

        prospect = Prospect(
            prospect_id=_new_id(),
            agent_id=agent_id,
            details=details,
            status=ProspectStatus.PENDING,
            created_at=self._clock(),
        )
        await prospect_repository.insert_prospect(self._store, prospect)
        logger.info(
            "Prospect created",
            extra={"prospect_id": prospect.prospect_id, "agent_id": agent_id},
        )
        return prospect

    async def update_prospect(self, prospect_id: str, changes: Mapping[str, Any]) -> Prospect:
        protected = _PROTECTED_PROSPECT_FIELDS & set(changes)
        if protected:
            raise ValidationError(f"Fields cannot be edited: {sorted(protected)}")

        prospect = await self._require_prospect(prospect_id)
        updated = prospect.with_details(changes)
        await prospect_repository.save_prospect(self._store, updated)
        return updated

    async def convert_prospect(self, prospect_id: str) -> ConversionResult:
        """
        Move a PENDING prospect to CONVERTED and create its Client.

        Raises:
            NotFoundError: no such prospect
            InvalidTransitionError: already CONVERTED (no second Client is created)
        """
        prospect = await self._require_prospect(prospect_id)
        converted = prospect.transition_to(ProspectStatus.CONVERTED)

        existing = await client_repository.list_clients_by_prospect(self._store, prospect_id)
        if existing:
            raise InvalidTransitionError(
                f"Prospect {prospect_id} already has client {existing[0].client_id}"
            )

        client = Client.from_prospect(_new_id(), converted, created_at=self._clock())
        await client_repository.insert_client(self._store, client)
        try:
            await prospect_repository.save_prospect(self._store, converted)
        except StoreError as exc:
            await self._compensate(
                exc,
                client_repository.delete_client(self._store, client.client_id),
                "client",
                client_id=client.client_id,
                prospect_id=prospect_id,
            )
            raise

        logger.info(
            "Prospect converted",
            extra={"prospect_id": prospect_id, "client_id": client.client_id, "agent_id": client.agent_id},
        )
        return ConversionResult(prospect=converted, client=client)

    async def delete_prospect(self, prospect_id: str) -> None:
        prospect = await self._require_prospect(prospect_id)
        if not prospect.is_pending:
            raise InvalidTransitionError(
                f"Prospect {prospect_id} is {prospect.status.value} and cannot be deleted"
            )
        await prospect_repository.delete_prospect(self._store, prospect_id)

    async def list_prospects(self, agent_id: Optional[str] = None) -> List[Prospect]:
        if agent_id is None:
            prospects = await prospect_repository.list_prospects(self._store)
        else:
            prospects = await prospect_repository.list_prospects_by_agent(self._store, agent_id)
        return sorted(prospects, key=lambda p: p.created_at, reverse=True)

    async def get_prospect(self, prospect_id: str) -> Prospect:
        return await self._require_prospect(prospect_id)

    # -------------------------------------------------------- remote prospects

    async def capture_remote_prospect(self, agent_id: str, details: LeadDetails) -> RemoteProspect:
        """Record an anonymous submission from an agent's public capture link."""

        if not agent_id:
            raise ValidationError("agent_id is required")

        remote = RemoteProspect(
            remote_prospect_id=_new_id(),
            agent_id=agent_id,
            details=details,
            created_at=self._clock(),
            is_verified=False,
        )
        await prospect_repository.insert_remote_prospect(self._store, remote)
        logger.info(
            "Remote lead captured",
            extra={"remote_prospect_id": remote.remote_prospect_id, "agent_id": agent_id},
        )
        return remote

    async def confirm_remote_prospect(self, remote_prospect_id: str) -> Prospect:
        """Materialize a RemoteProspect into a PENDING Prospect, then drop the remote row."""

        remote = await self._require_remote(remote_prospect_id)
        prospect = await self.create_prospect(remote.agent_id, remote.details)
        try:
            await prospect_repository.delete_remote_prospect(self._store, remote_prospect_id)
        except StoreError as exc:
            await self._compensate(
                exc,
                prospect_repository.delete_prospect(self._store, prospect.prospect_id),
                "prospect",
                prospect_id=prospect.prospect_id,
                remote_prospect_id=remote_prospect_id,
            )
            raise
        return prospect

    async def discard_remote_prospect(self, remote_prospect_id: str) -> None:
        await self._require_remote(remote_prospect_id)
        await prospect_repository.delete_remote_prospect(self._store, remote_prospect_id)

    async def get_remote_prospect(self, remote_prospect_id: str) -> RemoteProspect:
        return await self._require_remote(remote_prospect_id)

    async def list_remote_prospects(self, agent_id: str) -> List[RemoteProspect]:
        remotes = await prospect_repository.list_remote_prospects_by_agent(self._store, agent_id)
        return sorted(remotes, key=lambda r: r.created_at, reverse=True)

    # ------------------------------------------------------------------ clients

    async def get_client(self, client_id: str) -> Client:
        return await self._require_client(client_id)

    async def list_clients(
        self, agent_id: Optional[str] = None, *, include_cancelled: bool = False
    ) -> List[Client]:
        if agent_id is None:
            clients = await client_repository.list_clients(
                self._store, include_cancelled=include_cancelled
            )
        else:
            clients = await client_repository.list_clients_by_agent(
                self._store, agent_id, include_cancelled=include_cancelled
            )
        return sorted(clients, key=lambda c: c.created_at, reverse=True)

    async def cancel_client(self, client_id: str, reason: str) -> CancellationResult:
        """
        Cancel a client (terminal) and alert its owning agent.

        The cancellation is committed before the alert is sent. If the alert
        still fails after retries, NotificationDispatchError is raised and the
        client stays CANCELLED.
        """
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required")

        client = await self._require_client(client_id)
        cancelled = client.cancelled(reason)
        await client_repository.save_client(self._store, cancelled)
        logger.info(
            "Client cancelled",
            extra={"client_id": client_id, "agent_id": client.agent_id},
        )

        notification = Notification(
            notification_id=_new_id(),
            user_id=cancelled.agent_id,
            title=CANCELLATION_TITLE,
            message=(
                f"Client {cancelled.full_name} was removed from the CRM by the administration. "
                f"Reason: {cancelled.deletion_reason}"
            ),
            type=NotificationType.ALERT,
            created_at=self._clock(),
        )
        await dispatch_notification(
            self._store,
            notification,
            attempts=self._notification_attempts,
            retry_delay=self._retry_delay,
        )
        return CancellationResult(client=cancelled, notification=notification)

    # -------------------------------------------------------------------- sales

    async def conclude_sale(self, client_id: str, revenue: Amount, real_cost: Amount) -> SaleConclusion:
        """
        Record the Sale for a PENDING client and flip the client to SALE_CONCLUDED.

        Raises:
            NotFoundError: no such client
            InvalidTransitionError: the client is not PENDING (one sale per client)
            ValidationError: revenue or cost is not a number
        """
        financials = SaleFinancials.compute(revenue, real_cost)
        client = await self._require_client(client_id)
        if client.status != ClientStatus.PENDING:
            raise InvalidTransitionError(
                f"Client {client_id} is {client.status.value}; a sale can only be concluded once "
                "for a PENDING client"
            )
        concluded = client.concluded()

        sale = Sale(
            sale_id=_new_id(),
            client_id=client_id,
            agent_id=client.agent_id,
            amount=financials.amount,
            profit=financials.profit,
            commission=financials.commission,
            status=SaleStatus.PENDING,
            created_at=self._clock(),
        )
        await sale_repository.insert_sale(self._store, sale)
        try:
            await client_repository.save_client(self._store, concluded)
        except StoreError as exc:
            await self._compensate(
                exc,
                sale_repository.delete_sale(self._store, sale.sale_id),
                "sale",
                sale_id=sale.sale_id,
                client_id=client_id,
            )
            raise

        logger.info(
            "Sale concluded",
            extra={
                "sale_id": sale.sale_id,
                "client_id": client_id,
                "amount": str(sale.amount),
                "commission": str(sale.commission),
            },
        )
        return SaleConclusion(sale=sale, client=concluded)

    async def correct_sale(self, sale_id: str, new_revenue: Amount, new_real_cost: Amount) -> Sale:
        """Recompute profit and commission from new inputs; the status is untouched."""

        sale = await self._require_sale(sale_id)
        corrected = sale.corrected(new_revenue, new_real_cost)
        await sale_repository.save_sale(self._store, corrected)
        logger.info(
            "Sale corrected",
            extra={"sale_id": sale_id, "amount": str(corrected.amount), "commission": str(corrected.commission)},
        )
        return corrected

    async def settle_commission(self, sale_id: str) -> Sale:
        sale = await self._require_sale(sale_id)
        paid = sale.paid()
        await sale_repository.save_sale(self._store, paid)
        logger.info("Commission settled", extra={"sale_id": sale_id, "agent_id": sale.agent_id})
        return paid

    async def get_sale(self, sale_id: str) -> Sale:
        return await self._require_sale(sale_id)

    async def list_sales(self, agent_id: Optional[str] = None) -> List[Sale]:
        if agent_id is None:
            sales = await sale_repository.list_sales(self._store)
        else:
            sales = await sale_repository.list_sales_by_agent(self._store, agent_id)
        return sorted(sales, key=lambda s: s.created_at, reverse=True)

    async def client_names(self, agent_id: Optional[str] = None) -> Dict[str, str]:
        """client_id -> full name, including cancelled clients."""

        clients = await self.list_clients(agent_id, include_cancelled=True)
        return {c.client_id: c.full_name for c in clients}


__all__ = [
    "LifecycleEngine",
    "ConversionResult",
    "SaleConclusion",
    "CancellationResult",
    "CANCELLATION_TITLE",
]
