"""
Prospect and RemoteProspect repository (persistence).

This module provides *only* persistence operations for prospects and inbound
remote leads. Lifecycle rules (status transitions, conversion) belong to the
lifecycle service.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.prospect import LeadDetails, Prospect, ProspectStatus, RemoteProspect
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.store import EntityStore, Record, parse_rows

# Keep these aligned with your database schema.
_PROSPECTS_TABLE: str = "prospects"
_REMOTE_PROSPECTS_TABLE: str = "remote_prospects"


def _details_to_row(details: LeadDetails) -> Record:
    return {
        "full_name": details.full_name,
        "company": details.company or "",
        "phone": details.phone,
        "country_code": details.country_code,
        "country": details.country,
        "city": details.city,
        "email": details.email,
        "source": details.source,
        "product_of_interest": details.product_of_interest,
        "details": details.notes or "",
    }


def _row_to_details(row: Mapping[str, Any]) -> LeadDetails:
    # Helper to convert empty strings to None
    def get_optional(key: str) -> str | None:
        value = row.get(key, "")
        return value if value else None

    return LeadDetails(
        full_name=str(row["full_name"]),
        phone=str(row.get("phone") or ""),
        country_code=str(row.get("country_code") or ""),
        country=str(row.get("country") or ""),
        city=str(row.get("city") or ""),
        email=str(row.get("email") or ""),
        source=str(row.get("source") or ""),
        product_of_interest=str(row.get("product_of_interest") or ""),
        company=get_optional("company"),
        notes=get_optional("details"),
    )


def _prospect_to_row(prospect: Prospect) -> Record:
    return {
        "id": prospect.prospect_id,
        "agent_id": prospect.agent_id,
        **_details_to_row(prospect.details),
        "status": prospect.status.value,
        "created_at_utc": to_iso_utc(prospect.created_at, name="created_at"),
    }


def _row_to_prospect(row: Mapping[str, Any]) -> Prospect:
    return Prospect(
        prospect_id=str(row["id"]),
        agent_id=str(row["agent_id"]),
        details=_row_to_details(row),
        status=ProspectStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


def _remote_to_row(remote: RemoteProspect) -> Record:
    return {
        "id": remote.remote_prospect_id,
        "agent_id": remote.agent_id,
        **_details_to_row(remote.details),
        "is_verified": remote.is_verified,
        "created_at_utc": to_iso_utc(remote.created_at, name="created_at"),
    }


def _row_to_remote(row: Mapping[str, Any]) -> RemoteProspect:
    return RemoteProspect(
        remote_prospect_id=str(row["id"]),
        agent_id=str(row["agent_id"]),
        details=_row_to_details(row),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        is_verified=bool(row.get("is_verified", False)),
    )


# --------------------------------------------------------------------- prospects


async def insert_prospect(store: EntityStore, prospect: Prospect) -> None:
    await store.add(_PROSPECTS_TABLE, _prospect_to_row(prospect))


async def save_prospect(store: EntityStore, prospect: Prospect) -> None:
    await store.update(_PROSPECTS_TABLE, prospect.prospect_id, _prospect_to_row(prospect))


async def delete_prospect(store: EntityStore, prospect_id: str) -> None:
    await store.delete(_PROSPECTS_TABLE, prospect_id)


async def get_prospect_by_id(store: EntityStore, prospect_id: str) -> Optional[Prospect]:
    row = await store.get_by_id(_PROSPECTS_TABLE, prospect_id)
    return _row_to_prospect(row) if row else None


async def list_prospects(store: EntityStore) -> List[Prospect]:
    return parse_rows(_PROSPECTS_TABLE, await store.get_all(_PROSPECTS_TABLE), _row_to_prospect)


async def list_prospects_by_agent(store: EntityStore, agent_id: str) -> List[Prospect]:
    rows = await store.get_by_query(_PROSPECTS_TABLE, "agent_id", "==", agent_id)
    return parse_rows(_PROSPECTS_TABLE, rows, _row_to_prospect)


# --------------------------------------------------------------- remote prospects


async def insert_remote_prospect(store: EntityStore, remote: RemoteProspect) -> None:
    await store.add(_REMOTE_PROSPECTS_TABLE, _remote_to_row(remote))


async def delete_remote_prospect(store: EntityStore, remote_prospect_id: str) -> None:
    await store.delete(_REMOTE_PROSPECTS_TABLE, remote_prospect_id)


async def get_remote_prospect_by_id(
    store: EntityStore, remote_prospect_id: str
) -> Optional[RemoteProspect]:
    row = await store.get_by_id(_REMOTE_PROSPECTS_TABLE, remote_prospect_id)
    return _row_to_remote(row) if row else None


async def list_remote_prospects_by_agent(store: EntityStore, agent_id: str) -> List[RemoteProspect]:
    rows = await store.get_by_query(_REMOTE_PROSPECTS_TABLE, "agent_id", "==", agent_id)
    return parse_rows(_REMOTE_PROSPECTS_TABLE, rows, _row_to_remote)


__all__ = [
    "insert_prospect",
    "save_prospect",
    "delete_prospect",
    "get_prospect_by_id",
    "list_prospects",
    "list_prospects_by_agent",
    "insert_remote_prospect",
    "delete_remote_prospect",
    "get_remote_prospect_by_id",
    "list_remote_prospects_by_agent",
]
