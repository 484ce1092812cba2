"""
Sale repository (persistence).

This module provides *only* persistence operations for the Sale domain
entity. It does not enforce business rules (e.g., single-sale-per-client or
derived commission); it only inserts, updates and fetches sale records.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping, Optional

from domain.sale import Sale, SaleStatus
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.store import EntityStore, Record

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"


def _sale_to_row(sale: Sale) -> Record:
    # Money is stored as strings so no precision is lost on the wire.
    return {
        "id": sale.sale_id,
        "client_id": sale.client_id,
        "agent_id": sale.agent_id,
        "amount": str(sale.amount),
        "profit": str(sale.profit),
        "commission": str(sale.commission),
        "status": sale.status.value,
        "created_at_utc": to_iso_utc(sale.created_at, name="created_at"),
    }


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a Supabase row into a Sale."""

    return Sale(
        sale_id=str(row["id"]),
        client_id=str(row["client_id"]),
        agent_id=str(row["agent_id"]),
        amount=Decimal(str(row["amount"])),
        profit=Decimal(str(row["profit"])),
        commission=Decimal(str(row["commission"])),
        status=SaleStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


async def insert_sale(store: EntityStore, sale: Sale) -> None:
    await store.add(_SALES_TABLE, _sale_to_row(sale))


async def save_sale(store: EntityStore, sale: Sale) -> None:
    await store.update(_SALES_TABLE, sale.sale_id, _sale_to_row(sale))


async def delete_sale(store: EntityStore, sale_id: str) -> None:
    await store.delete(_SALES_TABLE, sale_id)


async def get_sale_by_id(store: EntityStore, sale_id: str) -> Optional[Sale]:
    """
    Retrieve a single sale record by its ID.

    Returns:
        Sale or None if not found
    """
    row = await store.get_by_id(_SALES_TABLE, sale_id)
    return _row_to_sale(row) if row else None


async def list_sales(store: EntityStore) -> List[Sale]:
    return [_row_to_sale(row) for row in await store.get_all(_SALES_TABLE)]


async def list_sales_by_agent(store: EntityStore, agent_id: str) -> List[Sale]:
    """
    Retrieve all sale records credited to an agent.

    Returns:
        List[Sale] (possibly empty)
    """
    rows = await store.get_by_query(_SALES_TABLE, "agent_id", "==", agent_id)
    return [_row_to_sale(row) for row in rows]


async def list_sales_by_client(store: EntityStore, client_id: str) -> List[Sale]:
    rows = await store.get_by_query(_SALES_TABLE, "client_id", "==", client_id)
    return [_row_to_sale(row) for row in rows]


__all__ = [
    "insert_sale",
    "save_sale",
    "delete_sale",
    "get_sale_by_id",
    "list_sales",
    "list_sales_by_agent",
    "list_sales_by_client",
]
