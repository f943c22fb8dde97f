"""Recurring Billing Engine.

Charges pending invoices through an external payment provider, retries
transient failures, recovers from currency mismatches, and runs the
whole cycle on a monthly schedule.
"""

from .config import (
    Currency,
    InvoiceStatus,
    RetryDecision,
    BillingConfig,
    DEFAULT_BILLING_CONFIG,
)
from .models import (
    Money,
    Customer,
    Invoice,
    InvoicePaymentAction,
    BillingRunReport,
)
from .exceptions import (
    BillingError,
    EntityNotFoundError,
    InvoiceNotFoundError,
    CustomerNotFoundError,
    InvalidStateError,
    InvoiceNotPendingError,
    InvoiceBusyError,
    BillingRunInProgressError,
    PaymentProviderError,
    CurrencyMismatchError,
    NetworkError,
)
from .providers import (
    PaymentProvider,
    CurrencyProvider,
)
from .store import (
    InvoiceStore,
    CustomerStore,
    InMemoryInvoiceStore,
    InMemoryCustomerStore,
)
from .invoices import (
    InvoiceService,
    CustomerService,
)
from .retry import (
    classify_failure,
    compute_backoff,
)
from .processor import InvoicePaymentProcessor
from .runner import BillingRunner
from .scheduler import (
    RecurringTrigger,
    MonthlyGate,
)
from .mock import (
    MockPaymentProvider,
    FixedRateCurrencyProvider,
    seed_demo_data,
)
from .service import (
    BillingService,
    create_billing_service,
)

__all__ = [
    # Config
    "Currency",
    "InvoiceStatus",
    "RetryDecision",
    "BillingConfig",
    "DEFAULT_BILLING_CONFIG",
    # Models
    "Money",
    "Customer",
    "Invoice",
    "InvoicePaymentAction",
    "BillingRunReport",
    # Exceptions
    "BillingError",
    "EntityNotFoundError",
    "InvoiceNotFoundError",
    "CustomerNotFoundError",
    "InvalidStateError",
    "InvoiceNotPendingError",
    "InvoiceBusyError",
    "BillingRunInProgressError",
    "PaymentProviderError",
    "CurrencyMismatchError",
    "NetworkError",
    # Providers
    "PaymentProvider",
    "CurrencyProvider",
    # Stores
    "InvoiceStore",
    "CustomerStore",
    "InMemoryInvoiceStore",
    "InMemoryCustomerStore",
    # Services
    "InvoiceService",
    "CustomerService",
    # Retry
    "classify_failure",
    "compute_backoff",
    # Processing
    "InvoicePaymentProcessor",
    "BillingRunner",
    # Scheduling
    "RecurringTrigger",
    "MonthlyGate",
    # Simulation
    "MockPaymentProvider",
    "FixedRateCurrencyProvider",
    "seed_demo_data",
    # Facade
    "BillingService",
    "create_billing_service",
]
