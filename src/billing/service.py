"""Recurring Billing Engine: Service Facade.

The entry points used by the CLI and the REST API: process one invoice
by ID, run a billing cycle, and arm the monthly schedule.
"""

import logging
import random
import time
from datetime import timedelta
from typing import Callable, Optional

from src.settings import Settings

from .config import BillingConfig
from .invoices import CustomerService, InvoiceService
from .mock import FixedRateCurrencyProvider, MockPaymentProvider, seed_demo_data
from .models import BillingRunReport, InvoicePaymentAction
from .processor import InvoicePaymentProcessor
from .providers import CurrencyProvider, PaymentProvider
from .runner import BillingRunner
from .scheduler import MonthlyGate, RecurringTrigger, utc_now
from .store import CustomerStore, InvoiceStore

logger = logging.getLogger(__name__)


class BillingService:
    """Wires the processor, runner and trigger together."""

    def __init__(
        self,
        invoice_service: InvoiceService,
        customer_service: CustomerService,
        processor: InvoicePaymentProcessor,
        config: BillingConfig,
        trigger: Optional[RecurringTrigger] = None,
        now: Callable = utc_now,
    ) -> None:
        self.invoices = invoice_service
        self.customers = customer_service
        self._processor = processor
        self._runner = BillingRunner(processor, invoice_service)
        self._config = config
        self._now = now
        self._trigger = trigger or RecurringTrigger(now=now)
        self._gate = MonthlyGate(
            self.run_billing_cycle,
            day_of_month=config.billing_day_of_month,
            now=now,
        )

    @property
    def config(self) -> BillingConfig:
        return self._config

    @property
    def runner(self) -> BillingRunner:
        return self._runner

    @property
    def is_recurring(self) -> bool:
        return self._trigger.is_running

    def process_invoice(self, invoice_id: int) -> InvoicePaymentAction:
        """Manually charge one invoice.

        Raises:
            InvoiceNotFoundError: no invoice has this ID.
            InvoiceNotPendingError: the invoice was already processed.
            InvoiceBusyError: the invoice is being processed right now.
        """
        invoice = self.invoices.fetch(invoice_id)
        return self._processor.process(invoice)

    def run_billing_cycle(self) -> BillingRunReport:
        return self._runner.run_billing_cycle()

    def start_recurring(self) -> None:
        """Check the monthly gate now and then every gate check interval."""
        self._trigger.schedule_recurring(
            self._gate,
            first_fire_at=self._now(),
            period=timedelta(seconds=self._config.gate_check_interval_seconds),
        )

    def stop(self) -> None:
        if self._trigger.is_running:
            self._trigger.stop()


def create_billing_service(
    settings: Settings,
    payment_provider: Optional[PaymentProvider] = None,
    currency_provider: Optional[CurrencyProvider] = None,
    invoice_store: Optional[InvoiceStore] = None,
    customer_store: Optional[CustomerStore] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BillingService:
    """Build a BillingService from settings.

    Without stores, fresh ones are seeded with demo data and missing providers are
    replaced by the simulated ones, all driven by ``settings.demo_seed``.
    """
    if (invoice_store is None) != (customer_store is None):
        raise ValueError("Pass both stores or neither")

    rng = random.Random(settings.demo_seed)
    if invoice_store is None:
        invoice_store, customer_store = seed_demo_data(
            customer_count=settings.demo_customers,
            invoices_per_customer=settings.demo_invoices_per_customer,
            rng=rng,
        )
    if payment_provider is None:
        logger.warning("No payment provider configured, using the simulated provider")
        payment_provider = MockPaymentProvider(
            customer_store, success_rate=settings.demo_success_rate, rng=rng,
        )
    if currency_provider is None:
        currency_provider = FixedRateCurrencyProvider(rng=rng)

    config = BillingConfig.from_settings(settings)
    invoice_service = InvoiceService(invoice_store)
    customer_service = CustomerService(customer_store)
    processor = InvoicePaymentProcessor(
        payment_provider,
        currency_provider,
        invoice_service,
        customer_service,
        config=config,
        sleep=sleep,
        rng=rng,
    )
    return BillingService(invoice_service, customer_service, processor, config)
