"""
Domain: Prospect and RemoteProspect entities.

Lifecycle rules implemented here:
- A Prospect is created PENDING.
- Status moves PENDING -> CONVERTED only; CONVERTED is terminal.
- Contact details can only be edited while PENDING.
- A RemoteProspect carries the same details, has no status, and is either
  confirmed into a PENDING Prospect or discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional

from .errors import InvalidTransitionError, ValidationError
from .time import require_utc_timestamp


class ProspectStatus(str, Enum):
    PENDING = "PENDING"
    CONVERTED = "CONVERTED"


PROSPECT_TRANSITIONS: Mapping[ProspectStatus, FrozenSet[ProspectStatus]] = {
    ProspectStatus.PENDING: frozenset({ProspectStatus.CONVERTED}),
    ProspectStatus.CONVERTED: frozenset(),  # TERMINAL
}


@dataclass(frozen=True, slots=True)
class LeadDetails:
    """Contact and interest fields shared by Prospects, RemoteProspects and Clients."""

    full_name: str
    phone: str
    country_code: str
    country: str
    city: str
    email: str
    source: str
    product_of_interest: str
    company: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.full_name or not self.full_name.strip():
            raise ValidationError("full_name must not be empty")

    def updated(self, changes: Mapping[str, Any]) -> "LeadDetails":
        """Return a copy with `changes` applied; unknown field names are rejected."""

        allowed = {f.name for f in fields(self)}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class Prospect:
    prospect_id: str
    agent_id: str
    details: LeadDetails
    status: ProspectStatus
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @property
    def is_pending(self) -> bool:
        return self.status == ProspectStatus.PENDING

    def transition_to(self, status: ProspectStatus) -> "Prospect":
        valid_next = PROSPECT_TRANSITIONS[self.status]
        if status not in valid_next:
            raise InvalidTransitionError(
                f"Prospect {self.prospect_id} cannot go from '{self.status.value}' "
                f"to '{status.value}'"
            )
        return replace(self, status=status)

    def with_details(self, changes: Mapping[str, Any]) -> "Prospect":
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Prospect {self.prospect_id} is {self.status.value} and can no longer be edited"
            )
        return replace(self, details=self.details.updated(changes))


@dataclass(frozen=True, slots=True)
class RemoteProspect:
    """Unvalidated lead captured through an agent's public capture link."""

    remote_prospect_id: str
    agent_id: str
    details: LeadDetails
    created_at: datetime
    is_verified: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
