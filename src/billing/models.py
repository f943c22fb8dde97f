"""Recurring Billing Engine: Data Models.

Value and entity types shared by the stores, providers and the engine.
Invoices are immutable: every status transition goes through the
invoice store, which hands back a fresh value.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .config import Currency, InvoiceStatus


@dataclass(frozen=True)
class Money:
    """An exact amount in a single currency."""

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        amount: Union[Decimal, int, str] = self.amount
        if isinstance(amount, float):
            raise TypeError("Money amounts must not be floats; use Decimal or str")
        if not isinstance(amount, Decimal):
            amount = Decimal(amount)
            object.__setattr__(self, "amount", amount)
        if not amount.is_finite():
            raise ValueError(f"Money amount must be finite, got {amount}")

    def is_compatible(self, other: "Money") -> bool:
        """Whether the two amounts can be charged against each other."""
        return self.currency == other.currency

    def to_dict(self) -> Dict[str, str]:
        return {"value": str(self.amount), "currency": self.currency.value}


@dataclass(frozen=True)
class Customer:
    """A billed customer. Owned by the customer store."""

    id: int
    currency: Currency

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "currency": self.currency.value}


@dataclass(frozen=True)
class Invoice:
    """A billable record for one customer."""

    id: int
    customer_id: int
    amount: Money
    status: InvoiceStatus = InvoiceStatus.PENDING

    def with_amount(self, amount: Money) -> "Invoice":
        return replace(self, amount=amount)

    def with_status(self, status: InvoiceStatus) -> "Invoice":
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "amount": self.amount.to_dict(),
            "status": self.status.value,
        }


@dataclass(frozen=True)
class InvoicePaymentAction:
    """Outcome of processing one invoice."""

    invoice: Invoice
    charged: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"invoice": self.invoice.to_dict(), "charged": self.charged}


@dataclass
class BillingRunReport:
    """Aggregate outcome of one billing cycle.

    ``failed`` includes ``errored``: invoices whose processing raised
    instead of producing a payment action.
    """

    run_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errored: int = 0
    duration_ms: float = 0.0
    actions: List[InvoicePaymentAction] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return round(self.succeeded / self.total, 4) if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errored": self.errored,
            "duration_ms": round(self.duration_ms, 2),
            "success_rate": self.success_rate,
            "actions": [a.to_dict() for a in self.actions],
        }
