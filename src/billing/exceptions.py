"""Billing Exception Hierarchy.

Every billing error carries an ``error_code`` and the HTTP status it
maps to at the API boundary. Provider-originated errors never escape
the payment processor; not-found and invalid-state errors propagate.
"""

from typing import Optional


class BillingError(Exception):
    """Base exception for all billing errors."""

    error_code = "BILLING_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ── Not found (404) ──────────────────────────────────────────────────


class EntityNotFoundError(BillingError):
    """Raised when a requested entity does not exist."""

    error_code = "RESOURCE_NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} '{entity_id}' was not found")
        self.entity = entity
        self.entity_id = entity_id


class InvoiceNotFoundError(EntityNotFoundError):
    error_code = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: int):
        super().__init__("Invoice", invoice_id)


class CustomerNotFoundError(EntityNotFoundError):
    """Raised by the customer service and by payment providers."""

    error_code = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_id: int):
        super().__init__("Customer", customer_id)


# ── Invalid state (409) ──────────────────────────────────────────────


class InvalidStateError(BillingError):
    """Raised when an operation conflicts with the current state."""

    error_code = "INVALID_STATE"
    status_code = 409


class InvoiceNotPendingError(InvalidStateError):
    error_code = "INVOICE_NOT_PENDING"

    def __init__(self, invoice_id: int):
        super().__init__(f"Invoice '{invoice_id}' not in pending state")
        self.invoice_id = invoice_id


class InvoiceBusyError(InvalidStateError):
    error_code = "INVOICE_BUSY"

    def __init__(self, invoice_id: int):
        super().__init__(f"Invoice '{invoice_id}' is already being processed")
        self.invoice_id = invoice_id


class BillingRunInProgressError(InvalidStateError):
    error_code = "BILLING_RUN_IN_PROGRESS"

    def __init__(self, run_id: Optional[str] = None):
        message = "A billing run is already in progress"
        if run_id:
            message = f"{message} ({run_id})"
        super().__init__(message)
        self.run_id = run_id


# ── Payment provider (5xx) ───────────────────────────────────────────


class PaymentProviderError(BillingError):
    """Base class for failures signalled by external providers."""

    error_code = "PROVIDER_ERROR"
    status_code = 502


class CurrencyMismatchError(PaymentProviderError):
    error_code = "CURRENCY_MISMATCH"

    def __init__(self, invoice_id: int, customer_id: int):
        super().__init__(
            f"Currency of invoice '{invoice_id}' does not match "
            f"currency of customer '{customer_id}'"
        )
        self.invoice_id = invoice_id
        self.customer_id = customer_id


class NetworkError(PaymentProviderError):
    error_code = "NETWORK_ERROR"
    status_code = 503

    def __init__(self, message: str = "A network error happened please try again"):
        super().__init__(message)
