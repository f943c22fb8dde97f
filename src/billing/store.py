"""Invoice and Customer Store Protocols.

The engine reads and transitions records only through these
capabilities. The in-memory stores are a reference implementation
for the CLI, the API and tests; they are not persistence.
"""

import threading
from typing import Dict, List, Optional, Protocol, runtime_checkable

from .config import InvoiceStatus
from .models import Customer, Invoice


@runtime_checkable
class InvoiceStore(Protocol):
    """Storage capability for invoices."""

    def fetch(self, invoice_id: int) -> Optional[Invoice]:
        ...

    def fetch_all(self) -> List[Invoice]:
        ...

    def fetch_all_by_status(self, status: InvoiceStatus) -> List[Invoice]:
        ...

    def set_status(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        expected: Optional[InvoiceStatus] = None,
    ) -> Optional[Invoice]:
        """Atomically set the status and return the updated invoice.

        With ``expected``, the update only happens while the invoice is
        in that status; otherwise nothing changes and None is returned.
        """
        ...

    def add(self, invoice: Invoice) -> Invoice:
        ...


@runtime_checkable
class CustomerStore(Protocol):
    """Storage capability for customers."""

    def fetch(self, customer_id: int) -> Optional[Customer]:
        ...

    def fetch_all(self) -> List[Customer]:
        ...

    def add(self, customer: Customer) -> Customer:
        ...


class InMemoryInvoiceStore:
    """Thread-safe dictionary-backed invoice store."""

    def __init__(self, invoices: Optional[List[Invoice]] = None) -> None:
        self._lock = threading.Lock()
        self._invoices: Dict[int, Invoice] = {}
        for invoice in invoices or []:
            self.add(invoice)

    def fetch(self, invoice_id: int) -> Optional[Invoice]:
        with self._lock:
            return self._invoices.get(invoice_id)

    def fetch_all(self) -> List[Invoice]:
        with self._lock:
            return sorted(self._invoices.values(), key=lambda i: i.id)

    def fetch_all_by_status(self, status: InvoiceStatus) -> List[Invoice]:
        with self._lock:
            return sorted(
                (i for i in self._invoices.values() if i.status == status),
                key=lambda i: i.id,
            )

    def set_status(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        expected: Optional[InvoiceStatus] = None,
    ) -> Optional[Invoice]:
        with self._lock:
            invoice = self._invoices.get(invoice_id)
            if invoice is None:
                return None
            if expected is not None and invoice.status != expected:
                return None
            updated = invoice.with_status(status)
            self._invoices[invoice_id] = updated
            return updated

    def add(self, invoice: Invoice) -> Invoice:
        with self._lock:
            if invoice.id in self._invoices:
                raise ValueError(f"Invoice already exists: {invoice.id}")
            self._invoices[invoice.id] = invoice
            return invoice

    def __len__(self) -> int:
        with self._lock:
            return len(self._invoices)


class InMemoryCustomerStore:
    """Thread-safe dictionary-backed customer store."""

    def __init__(self, customers: Optional[List[Customer]] = None) -> None:
        self._lock = threading.Lock()
        self._customers: Dict[int, Customer] = {}
        for customer in customers or []:
            self.add(customer)

    def fetch(self, customer_id: int) -> Optional[Customer]:
        with self._lock:
            return self._customers.get(customer_id)

    def fetch_all(self) -> List[Customer]:
        with self._lock:
            return sorted(self._customers.values(), key=lambda c: c.id)

    def add(self, customer: Customer) -> Customer:
        with self._lock:
            if customer.id in self._customers:
                raise ValueError(f"Customer already exists: {customer.id}")
            self._customers[customer.id] = customer
            return customer

    def __len__(self) -> int:
        with self._lock:
            return len(self._customers)
