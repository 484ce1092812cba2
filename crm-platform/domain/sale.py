"""
Domain: Sale and commission arithmetic.

Rules implemented here:
- profit = amount - real_cost
- commission = round(profit * COMMISSION_RATE), half-up to whole currency units
- profit and commission are always derived; a loss-making sale (negative
  profit) is valid data.
- status moves PENDING -> PAID once; PAID is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from .errors import InvalidTransitionError, ValidationError
from .time import require_utc_timestamp

COMMISSION_RATE = Decimal("0.15")

Amount = Union[Decimal, int, str]


class SaleStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


def to_amount(name: str, value: Amount) -> Decimal:
    """Coerce a caller-supplied monetary value to a finite Decimal."""

    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return amount


def compute_commission(profit: Decimal) -> Decimal:
    return (profit * COMMISSION_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class SaleFinancials:
    amount: Decimal
    profit: Decimal
    commission: Decimal

    @staticmethod
    def compute(revenue: Amount, real_cost: Amount) -> "SaleFinancials":
        amount = to_amount("revenue", revenue)
        profit = amount - to_amount("real_cost", real_cost)
        return SaleFinancials(amount=amount, profit=profit, commission=compute_commission(profit))

    @property
    def real_cost(self) -> Decimal:
        return self.amount - self.profit


@dataclass(frozen=True, slots=True)
class Sale:
    sale_id: str
    client_id: str
    agent_id: str
    amount: Decimal
    profit: Decimal
    commission: Decimal
    status: SaleStatus
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    @property
    def real_cost(self) -> Decimal:
        # Cost is not stored; it is recovered from the stored derived fields.
        return self.amount - self.profit

    def corrected(self, revenue: Amount, real_cost: Amount) -> "Sale":
        financials = SaleFinancials.compute(revenue, real_cost)
        return replace(
            self,
            amount=financials.amount,
            profit=financials.profit,
            commission=financials.commission,
        )

    def paid(self) -> "Sale":
        if self.status != SaleStatus.PENDING:
            raise InvalidTransitionError(f"Sale {self.sale_id} commission is already {self.status.value}")
        return replace(self, status=SaleStatus.PAID)
