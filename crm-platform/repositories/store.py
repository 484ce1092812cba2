"""
Entity store interface.

Every repository talks to the backing document store through this protocol:
named collections of plain records (dicts) addressed by an opaque "id".

Failure contract:
- Read operations (get_all, get_by_id, get_by_query) degrade to [] / None
  when the store is unavailable or denies access. Implementations log these.
- Write operations (add, update, upsert, delete) raise StoreError.
- listen_by_id delivers the current record immediately, then every change.
  A deleted or missing record is delivered as None; subscription failures go
  to on_error.
- Listings skip records that do not parse into entities (see parse_rows).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Literal, Optional, Protocol, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

Record = Dict[str, Any]
QueryOperator = Literal["==", "!=", "<", "<=", ">", ">=", "in"]
OnChange = Callable[[Optional[Record]], None]
OnError = Callable[[Exception], None]

QUERY_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in")


def parse_rows(collection: str, rows: Iterable[Record], parse: Callable[[Record], T]) -> List[T]:
    """Parse listed rows into entities. A row that does not parse is logged and skipped."""

    parsed: List[T] = []
    for row in rows:
        try:
            parsed.append(parse(row))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                f"Skipping malformed '{collection}' record",
                extra={"collection": collection, "record_id": row.get("id"), "error": str(exc)},
            )
    return parsed


class Subscription(Protocol):
    async def unsubscribe(self) -> None: ...


class CallbackSubscription:
    """Adapts a plain (sync or async) teardown callable to `Subscription`."""

    def __init__(self, teardown: Callable[[], Union[None, Awaitable[None]]]) -> None:
        self._teardown: Optional[Callable[[], Union[None, Awaitable[None]]]] = teardown

    async def unsubscribe(self) -> None:
        teardown, self._teardown = self._teardown, None
        if teardown is None:
            return
        result = teardown()
        if inspect.isawaitable(result):
            await result


class EntityStore(Protocol):
    async def get_all(self, collection: str) -> List[Record]: ...

    async def get_by_id(self, collection: str, record_id: str) -> Optional[Record]: ...

    async def get_by_query(
        self, collection: str, field: str, op: QueryOperator, value: Any
    ) -> List[Record]: ...

    async def add(self, collection: str, record: Record) -> Record: ...

    async def update(self, collection: str, record_id: str, changes: Record) -> None: ...

    async def upsert(self, collection: str, record_id: str, record: Record) -> None: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def listen_by_id(
        self, collection: str, record_id: str, on_change: OnChange, on_error: OnError
    ) -> Subscription: ...


__all__ = [
    "Record",
    "QueryOperator",
    "QUERY_OPERATORS",
    "OnChange",
    "OnError",
    "Subscription",
    "CallbackSubscription",
    "EntityStore",
    "parse_rows",
]
