"""
Domain: Client (converted prospect under contract).

Lifecycle rules implemented here:
- A Client is created PENDING from exactly one converted Prospect.
- PENDING -> SALE_CONCLUDED happens once, when its Sale is recorded.
- PENDING / SALE_CONCLUDED -> CANCELLED is terminal and carries a reason.
- CANCELLED clients are excluded from default listings.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Mapping, Optional

from .errors import InvalidTransitionError, ValidationError
from .prospect import Prospect
from .time import require_utc_timestamp


class ClientStatus(str, Enum):
    PENDING = "PENDING"
    SALE_CONCLUDED = "SALE_CONCLUDED"
    CANCELLED = "CANCELLED"


CLIENT_TRANSITIONS: Mapping[ClientStatus, FrozenSet[ClientStatus]] = {
    ClientStatus.PENDING: frozenset({ClientStatus.SALE_CONCLUDED, ClientStatus.CANCELLED}),
    ClientStatus.SALE_CONCLUDED: frozenset({ClientStatus.CANCELLED}),
    ClientStatus.CANCELLED: frozenset(),  # TERMINAL
}


@dataclass(frozen=True, slots=True)
class Client:
    """
    Client record. `prospect_id` is a back-reference to the converted
    Prospect, not ownership.
    """

    client_id: str
    agent_id: str
    prospect_id: str
    full_name: str
    email: str
    phone: str
    country: str
    product: str
    status: ClientStatus
    created_at: datetime

    company: Optional[str] = None
    deletion_reason: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @staticmethod
    def from_prospect(client_id: str, prospect: Prospect, created_at: datetime) -> "Client":
        details = prospect.details
        return Client(
            client_id=client_id,
            agent_id=prospect.agent_id,
            prospect_id=prospect.prospect_id,
            full_name=details.full_name,
            email=details.email,
            phone=details.phone,
            country=details.country,
            product=details.product_of_interest,
            status=ClientStatus.PENDING,
            created_at=created_at,
            company=details.company or "",
        )

    @property
    def is_listed(self) -> bool:
        return self.status != ClientStatus.CANCELLED

    def _transition_to(self, status: ClientStatus) -> "Client":
        if status not in CLIENT_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Client {self.client_id} cannot go from '{self.status.value}' to '{status.value}'"
            )
        return replace(self, status=status)

    def concluded(self) -> "Client":
        return self._transition_to(ClientStatus.SALE_CONCLUDED)

    def cancelled(self, reason: str) -> "Client":
        if not reason or not reason.strip():
            raise ValidationError("A cancellation reason is required")
        return replace(self._transition_to(ClientStatus.CANCELLED), deletion_reason=reason.strip())
