"""Simulated Providers and Demo Data.

Stand-ins for the external payment and currency providers, and a
seeded data set for the in-memory stores. Used by the CLI and the API
when no real providers are wired in.
"""

import logging
import random
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Dict, Optional, Tuple

from .config import Currency, InvoiceStatus
from .exceptions import CurrencyMismatchError, CustomerNotFoundError, NetworkError
from .models import Customer, Invoice, Money
from .store import CustomerStore, InMemoryCustomerStore, InMemoryInvoiceStore, InvoiceStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Units of each currency per 1 EUR.
EUR_RATES: Dict[Currency, Decimal] = {
    Currency.EUR: Decimal("1"),
    Currency.USD: Decimal("1.08"),
    Currency.DKK: Decimal("7.46"),
    Currency.SEK: Decimal("11.45"),
    Currency.GBP: Decimal("0.85"),
}


class MockPaymentProvider:
    """Payment provider that approves or declines at random.

    Looks customers up in the customer store so it can signal
    CustomerNotFound and CurrencyMismatch like a real provider.

    Example:
        provider = MockPaymentProvider(customer_store, success_rate=0.8)
        provider.charge(invoice)
    """

    def __init__(
        self,
        customers: CustomerStore,
        success_rate: float = 0.75,
        network_error_rate: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        if not 0.0 <= network_error_rate <= 1.0:
            raise ValueError("network_error_rate must be between 0 and 1")
        self._customers = customers
        self._success_rate = success_rate
        self._network_error_rate = network_error_rate
        self._rng = rng or random.Random()
        self.call_count = 0

    def charge(self, invoice: Invoice) -> bool:
        self.call_count += 1
        if self._rng.random() < self._network_error_rate:
            raise NetworkError()

        customer = self._customers.fetch(invoice.customer_id)
        if customer is None:
            raise CustomerNotFoundError(invoice.customer_id)
        if customer.currency != invoice.amount.currency:
            raise CurrencyMismatchError(invoice.id, invoice.customer_id)

        return self._rng.random() < self._success_rate


class FixedRateCurrencyProvider:
    """Converts through EUR using a fixed rate table."""

    def __init__(
        self,
        rates: Optional[Dict[Currency, Decimal]] = None,
        network_error_rate: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._rates = dict(rates or EUR_RATES)
        self._network_error_rate = network_error_rate
        self._rng = rng or random.Random()
        self.call_count = 0

    def convert(self, money: Money, to: Currency) -> Money:
        self.call_count += 1
        if self._rng.random() < self._network_error_rate:
            raise NetworkError()
        if money.currency == to:
            return money
        try:
            source_rate = self._rates[money.currency]
            target_rate = self._rates[to]
        except KeyError as exc:
            raise ValueError(f"No exchange rate for {exc.args[0]}") from exc

        amount = (money.amount / source_rate * target_rate).quantize(CENT, rounding=ROUND_HALF_EVEN)
        return Money(amount, to)


def seed_demo_data(
    customer_count: int = 100,
    invoices_per_customer: int = 10,
    mismatch_rate: float = 0.05,
    rng: Optional[random.Random] = None,
) -> Tuple[InvoiceStore, CustomerStore]:
    """Build in-memory stores filled with random customers and invoices.

    Each customer's last invoice is PENDING, the rest are PAID. A small
    share of invoices is billed in a currency other than the customer's.
    """
    rng = rng or random.Random()
    currencies = list(Currency)
    customers = InMemoryCustomerStore()
    invoices = InMemoryInvoiceStore()

    invoice_id = 0
    for customer_id in range(1, customer_count + 1):
        customer = customers.add(Customer(customer_id, rng.choice(currencies)))
        for n in range(invoices_per_customer):
            invoice_id += 1
            currency = customer.currency
            if rng.random() < mismatch_rate:
                currency = rng.choice([c for c in currencies if c != customer.currency])
            amount = Decimal(rng.randint(1000, 50000)) * CENT
            status = InvoiceStatus.PENDING if n == invoices_per_customer - 1 else InvoiceStatus.PAID
            invoices.add(Invoice(invoice_id, customer.id, Money(amount, currency), status))

    logger.info("Seeded %d customers and %d invoices", len(customers), len(invoices))
    return invoices, customers
