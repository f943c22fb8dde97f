"""Pytest configuration and shared fixtures."""

import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.billing.config import BillingConfig, Currency, InvoiceStatus  # noqa: E402
from src.billing.invoices import CustomerService, InvoiceService  # noqa: E402
from src.billing.models import Customer, Invoice, Money  # noqa: E402
from src.billing.processor import InvoicePaymentProcessor  # noqa: E402
from src.billing.store import InMemoryCustomerStore, InMemoryInvoiceStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached per process; start every test from the environment."""
    from src.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def customers():
    return InMemoryCustomerStore([
        Customer(1, Currency.EUR),
        Customer(2, Currency.USD),
        Customer(3, Currency.DKK),
    ])


@pytest.fixture
def invoices():
    return InMemoryInvoiceStore([
        Invoice(1, 1, Money(Decimal("100.00"), Currency.EUR)),
        Invoice(2, 2, Money(Decimal("250.50"), Currency.USD)),
        # Billed in EUR but the customer pays in DKK
        Invoice(3, 3, Money(Decimal("10.00"), Currency.EUR)),
        Invoice(4, 1, Money(Decimal("75.00"), Currency.EUR), InvoiceStatus.PAID),
        # Customer 99 does not exist
        Invoice(5, 99, Money(Decimal("5.00"), Currency.EUR)),
    ])


@pytest.fixture
def invoice_service(invoices):
    return InvoiceService(invoices)


@pytest.fixture
def customer_service(customers):
    return CustomerService(customers)


@pytest.fixture
def providers():
    """Payment and currency provider mocks attached to one parent.

    ``providers.mock_calls`` records charges and conversions in the
    order they happened.
    """
    parent = MagicMock()
    parent.payment.charge.return_value = True
    return parent


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def processor(providers, invoice_service, customer_service, sleeps):
    return InvoicePaymentProcessor(
        providers.payment,
        providers.currency,
        invoice_service,
        customer_service,
        config=BillingConfig(max_retries=3),
        sleep=sleeps.append,
    )
