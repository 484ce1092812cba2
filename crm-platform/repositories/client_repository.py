"""
Client repository (persistence).

Provides functions to store, fetch and list converted clients. Listing helpers
exclude CANCELLED clients unless asked otherwise.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.client import Client, ClientStatus
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.store import EntityStore, Record, parse_rows

_CLIENTS_TABLE: str = "clients"


def _client_to_row(client: Client) -> Record:
    return {
        "id": client.client_id,
        "agent_id": client.agent_id,
        "prospect_id": client.prospect_id,
        "full_name": client.full_name,
        "company": client.company or "",
        "email": client.email,
        "phone": client.phone,
        "country": client.country,
        "product": client.product,
        "status": client.status.value,
        "deletion_reason": client.deletion_reason,
        "created_at_utc": to_iso_utc(client.created_at, name="created_at"),
    }


def _row_to_client(row: Mapping[str, Any]) -> Client:
    return Client(
        client_id=str(row["id"]),
        agent_id=str(row["agent_id"]),
        prospect_id=str(row.get("prospect_id") or ""),
        full_name=str(row["full_name"]),
        email=str(row.get("email") or ""),
        phone=str(row.get("phone") or ""),
        country=str(row.get("country") or ""),
        product=str(row.get("product") or ""),
        status=ClientStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        company=row.get("company") or None,
        deletion_reason=row.get("deletion_reason") or None,
    )


async def insert_client(store: EntityStore, client: Client) -> None:
    await store.add(_CLIENTS_TABLE, _client_to_row(client))


async def save_client(store: EntityStore, client: Client) -> None:
    await store.update(_CLIENTS_TABLE, client.client_id, _client_to_row(client))


async def delete_client(store: EntityStore, client_id: str) -> None:
    await store.delete(_CLIENTS_TABLE, client_id)


async def get_client_by_id(store: EntityStore, client_id: str) -> Optional[Client]:
    """
    Get a client by its ID.

    Returns:
        Client domain model or None if not found (or the store is unreachable)
    """
    row = await store.get_by_id(_CLIENTS_TABLE, client_id)
    return _row_to_client(row) if row else None


async def list_clients(store: EntityStore, *, include_cancelled: bool = False) -> List[Client]:
    clients = parse_rows(_CLIENTS_TABLE, await store.get_all(_CLIENTS_TABLE), _row_to_client)
    return clients if include_cancelled else [c for c in clients if c.is_listed]


async def list_clients_by_agent(
    store: EntityStore, agent_id: str, *, include_cancelled: bool = False
) -> List[Client]:
    rows = await store.get_by_query(_CLIENTS_TABLE, "agent_id", "==", agent_id)
    clients = parse_rows(_CLIENTS_TABLE, rows, _row_to_client)
    return clients if include_cancelled else [c for c in clients if c.is_listed]


async def list_clients_by_prospect(store: EntityStore, prospect_id: str) -> List[Client]:
    rows = await store.get_by_query(_CLIENTS_TABLE, "prospect_id", "==", prospect_id)
    return parse_rows(_CLIENTS_TABLE, rows, _row_to_client)


__all__ = [
    "insert_client",
    "save_client",
    "delete_client",
    "get_client_by_id",
    "list_clients",
    "list_clients_by_agent",
    "list_clients_by_prospect",
]
