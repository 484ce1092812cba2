"""
Supabase-backed implementation of the entity store interface.

Collections map to PostgREST tables whose primary key column is "id".
Live record subscriptions use Supabase Realtime (postgres_changes) channels.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional
from uuid import uuid4

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient  # type: ignore[import-not-found]

from domain.errors import StoreError
from repositories.store import (
    QUERY_OPERATORS,
    CallbackSubscription,
    OnChange,
    OnError,
    QueryOperator,
    Record,
    Subscription,
)

logger = logging.getLogger(__name__)

# Errors that mean "the store could not answer", as opposed to programming errors.
_STORE_ERRORS = (APIError, httpx.HTTPError)

_FAILED_CHANNEL_STATES = {"CHANNEL_ERROR", "TIMED_OUT"}


def _apply_filter(query: Any, field: str, op: QueryOperator, value: Any) -> Any:
    if op == "==":
        return query.eq(field, value)
    if op == "!=":
        return query.neq(field, value)
    if op == "<":
        return query.lt(field, value)
    if op == "<=":
        return query.lte(field, value)
    if op == ">":
        return query.gt(field, value)
    if op == ">=":
        return query.gte(field, value)
    if op == "in":
        return query.in_(field, list(value))
    raise ValueError(f"Unsupported query operator {op!r}; expected one of {QUERY_OPERATORS}")


def _extract_record(payload: Mapping[str, Any]) -> Optional[Record]:
    """Pull the new row out of a postgres_changes payload (None for deletes)."""

    data = payload.get("data", payload)
    event = data.get("type") or data.get("eventType")
    if event == "DELETE":
        return None
    record = data.get("record") or data.get("new")
    return dict(record) if record else None


class SupabaseEntityStore:
    def __init__(self, client: AsyncClient, schema: str = "public") -> None:
        self._client = client
        self._schema = schema

    # ------------------------------------------------------------------ reads

    async def get_all(self, collection: str) -> List[Record]:
        try:
            response = await self._client.table(collection).select("*").execute()
        except _STORE_ERRORS as exc:
            logger.warning(
                f"Read of collection '{collection}' failed; returning no rows",
                extra={"collection": collection, "error": str(exc)},
            )
            return []
        return list(getattr(response, "data", None) or [])

    async def _fetch_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        response = (
            await self._client.table(collection)
            .select("*")
            .eq("id", record_id)
            .limit(1)
            .execute()
        )
        rows = getattr(response, "data", None) or []
        return dict(rows[0]) if rows else None

    async def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        try:
            return await self._fetch_by_id(collection, record_id)
        except _STORE_ERRORS as exc:
            logger.warning(
                f"Read of '{collection}/{record_id}' failed; returning None",
                extra={"collection": collection, "record_id": record_id, "error": str(exc)},
            )
            return None

    async def get_by_query(
        self, collection: str, field: str, op: QueryOperator, value: Any
    ) -> List[Record]:
        query = _apply_filter(self._client.table(collection).select("*"), field, op, value)
        try:
            response = await query.execute()
        except _STORE_ERRORS as exc:
            logger.warning(
                f"Query on '{collection}' ({field} {op} {value!r}) failed; returning no rows",
                extra={"collection": collection, "field": field, "error": str(exc)},
            )
            return []
        return list(getattr(response, "data", None) or [])

    # ----------------------------------------------------------------- writes

    async def add(self, collection: str, record: Record) -> Record:
        payload = dict(record)
        payload.setdefault("id", str(uuid4()))
        try:
            await self._client.table(collection).insert(payload).execute()
        except _STORE_ERRORS as exc:
            raise StoreError(f"Failed to add record to '{collection}': {exc}") from exc
        return payload

    async def update(self, collection: str, record_id: str, changes: Record) -> None:
        payload = {k: v for k, v in changes.items() if k != "id"}
        try:
            response = (
                await self._client.table(collection)
                .update(payload)
                .eq("id", record_id)
                .execute()
            )
        except _STORE_ERRORS as exc:
            raise StoreError(f"Failed to update '{collection}/{record_id}': {exc}") from exc

        if not (getattr(response, "data", None) or []):
            raise StoreError(f"Failed to update '{collection}/{record_id}': no such record")

    async def upsert(self, collection: str, record_id: str, record: Record) -> None:
        payload = {**record, "id": record_id}
        try:
            await self._client.table(collection).upsert(payload).execute()
        except _STORE_ERRORS as exc:
            raise StoreError(f"Failed to upsert '{collection}/{record_id}': {exc}") from exc

    async def delete(self, collection: str, record_id: str) -> None:
        try:
            await self._client.table(collection).delete().eq("id", record_id).execute()
        except _STORE_ERRORS as exc:
            raise StoreError(f"Failed to delete '{collection}/{record_id}': {exc}") from exc

    # ---------------------------------------------------------------- realtime

    async def listen_by_id(
        self, collection: str, record_id: str, on_change: OnChange, on_error: OnError
    ) -> Subscription:
        channel = self._client.channel(f"{collection}:{record_id}:{uuid4().hex[:8]}")

        def _on_postgres_change(payload: Mapping[str, Any]) -> None:
            on_change(_extract_record(payload))

        def _on_status(state: Any, error: Optional[Exception] = None) -> None:
            status = str(getattr(state, "value", state))
            if status in _FAILED_CHANNEL_STATES:
                logger.warning(
                    f"Realtime channel for '{collection}/{record_id}' reported {status}",
                    extra={"collection": collection, "record_id": record_id, "error": str(error)},
                )
                on_error(error or StoreError(f"Realtime channel {status}"))

        channel.on_postgres_changes(
            "*",
            schema=self._schema,
            table=collection,
            filter=f"id=eq.{record_id}",
            callback=_on_postgres_change,
        )

        try:
            await channel.subscribe(_on_status)

            # Realtime only pushes changes; deliver the current snapshot ourselves.
            try:
                snapshot = await self._fetch_by_id(collection, record_id)
            except _STORE_ERRORS as exc:
                on_error(exc)
            else:
                on_change(snapshot)
        except Exception:
            await self._client.remove_channel(channel)
            raise

        return CallbackSubscription(lambda: self._client.remove_channel(channel))


__all__ = ["SupabaseEntityStore"]
