"""Recurring Billing Engine: Invoice and Customer Services."""

from decimal import Decimal
from typing import Dict, List

from .config import InvoiceStatus
from .exceptions import CustomerNotFoundError, InvoiceNotFoundError, InvoiceNotPendingError
from .models import Customer, Invoice
from .store import CustomerStore, InvoiceStore


class InvoiceService:
    """Invoice lookups and lifecycle transitions over an invoice store."""

    def __init__(self, store: InvoiceStore) -> None:
        self._store = store

    # ── Queries ───────────────────────────────────────────────────────

    def fetch(self, invoice_id: int) -> Invoice:
        """Retrieve an invoice by ID."""
        invoice = self._store.fetch(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def fetch_all(self) -> List[Invoice]:
        return self._store.fetch_all()

    def fetch_all_with_status(self, status: InvoiceStatus) -> List[Invoice]:
        return self._store.fetch_all_by_status(status)

    # ── Status Transitions ────────────────────────────────────────────

    def mark_processing(self, invoice_id: int) -> Invoice:
        """Claim a PENDING invoice for payment.

        Raises:
            InvoiceNotFoundError: no invoice has this ID.
            InvoiceNotPendingError: the stored invoice is no longer PENDING.
        """
        invoice = self._store.set_status(
            invoice_id, InvoiceStatus.PROCESSING, expected=InvoiceStatus.PENDING,
        )
        if invoice is None:
            if self._store.fetch(invoice_id) is None:
                raise InvoiceNotFoundError(invoice_id)
            raise InvoiceNotPendingError(invoice_id)
        return invoice

    def mark_paid(self, invoice_id: int) -> Invoice:
        return self._set_status(invoice_id, InvoiceStatus.PAID)

    def mark_failed(self, invoice_id: int) -> Invoice:
        return self._set_status(invoice_id, InvoiceStatus.FAILED)

    def _set_status(self, invoice_id: int, status: InvoiceStatus) -> Invoice:
        invoice = self._store.set_status(invoice_id, status)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    # ── Statistics ────────────────────────────────────────────────────

    def get_statistics(self) -> Dict[str, object]:
        """Invoice counts per status and amounts per currency."""
        by_status: Dict[str, int] = {s.value: 0 for s in InvoiceStatus}
        outstanding: Dict[str, Decimal] = {}
        collected: Dict[str, Decimal] = {}

        invoices = self._store.fetch_all()
        for inv in invoices:
            by_status[inv.status.value] += 1
            code = inv.amount.currency.value
            if inv.status == InvoiceStatus.PAID:
                collected[code] = collected.get(code, Decimal(0)) + inv.amount.amount
            elif not inv.status.is_terminal:
                outstanding[code] = outstanding.get(code, Decimal(0)) + inv.amount.amount

        return {
            "total_invoices": len(invoices),
            "by_status": by_status,
            "outstanding": {k: str(v) for k, v in sorted(outstanding.items())},
            "collected": {k: str(v) for k, v in sorted(collected.items())},
        }


class CustomerService:
    """Customer lookups over a customer store."""

    def __init__(self, store: CustomerStore) -> None:
        self._store = store

    def fetch(self, customer_id: int) -> Customer:
        customer = self._store.fetch(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def fetch_all(self) -> List[Customer]:
        return self._store.fetch_all()
