"""API Response Models.

Pydantic schemas for the billing endpoints. Amounts are serialized as
decimal strings so no precision is lost on the wire.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.billing.models import BillingRunReport, Customer, Invoice, InvoicePaymentAction


# ─── Common ──────────────────────────────────────────────────────────────


class ErrorBody(BaseModel):
    code: str
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: ErrorBody


# ─── Customers & Invoices ────────────────────────────────────────────────


class MoneyResponse(BaseModel):
    value: str = Field(description="Decimal amount, e.g. '129.90'")
    currency: str


class CustomerResponse(BaseModel):
    id: int
    currency: str

    @classmethod
    def from_customer(cls, customer: Customer) -> "CustomerResponse":
        return cls(**customer.to_dict())


class InvoiceResponse(BaseModel):
    id: int
    customer_id: int
    amount: MoneyResponse
    status: str

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceResponse":
        return cls(**invoice.to_dict())


class PaymentActionResponse(BaseModel):
    """Outcome of charging one invoice."""

    invoice: InvoiceResponse
    charged: bool

    @classmethod
    def from_action(cls, action: InvoicePaymentAction) -> "PaymentActionResponse":
        return cls(**action.to_dict())


# ─── Billing runs ────────────────────────────────────────────────────────


class BillingRunResponse(BaseModel):
    """Summary of one billing cycle."""

    run_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    total: int
    succeeded: int
    failed: int
    errored: int
    duration_ms: float
    success_rate: float
    actions: list[PaymentActionResponse] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: BillingRunReport) -> "BillingRunResponse":
        return cls(**report.to_dict())
