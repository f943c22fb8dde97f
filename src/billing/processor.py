"""Recurring Billing Engine: Invoice Payment Processor.

Drives one invoice from PENDING to PAID or FAILED:

    PENDING ──mark_processing──▶ PROCESSING ──charge──▶ PAID | FAILED

Charge attempts share one budget of ``max_retries`` units. A network
error retries the same invoice after a backoff; a currency mismatch
converts the amount into the customer's currency and charges again.
Provider failures never escape ``process``; they end in FAILED.
"""

import logging
import random
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Set

from src.logging_config import LogContext

from .config import DEFAULT_BILLING_CONFIG, BillingConfig, InvoiceStatus, RetryDecision
from .exceptions import (
    CustomerNotFoundError,
    InvoiceBusyError,
    InvoiceNotPendingError,
    NetworkError,
)
from .invoices import CustomerService, InvoiceService
from .models import Invoice, InvoicePaymentAction
from .providers import CurrencyProvider, PaymentProvider
from .retry import classify_failure, compute_backoff

logger = logging.getLogger(__name__)


class InvoicePaymentProcessor:
    """Payment state machine for a single invoice.

    Example:
        processor = InvoicePaymentProcessor(
            payment_provider, currency_provider, invoice_service, customer_service,
        )
        action = processor.process(invoice)
        if action.charged:
            ...
    """

    def __init__(
        self,
        payment_provider: PaymentProvider,
        currency_provider: CurrencyProvider,
        invoice_service: InvoiceService,
        customer_service: CustomerService,
        config: Optional[BillingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._payments = payment_provider
        self._currency = currency_provider
        self._invoices = invoice_service
        self._customers = customer_service
        self._config = config or DEFAULT_BILLING_CONFIG
        self._sleep = sleep
        self._rng = rng
        self._in_flight: Set[int] = set()
        self._in_flight_lock = threading.Lock()

    @property
    def config(self) -> BillingConfig:
        return self._config

    # ── Payment ───────────────────────────────────────────────────────

    def process(self, invoice: Invoice) -> InvoicePaymentAction:
        """Charge a PENDING invoice and settle it as PAID or FAILED.

        The invoice value passed in may be stale; eligibility is decided
        by the store, which moves PENDING to PROCESSING atomically.

        Raises:
            InvoiceNotPendingError: the invoice is not PENDING.
            InvoiceBusyError: the invoice is already being processed.
            InvoiceNotFoundError: the store lost the invoice mid-flight.
        """
        if invoice.status != InvoiceStatus.PENDING:
            raise InvoiceNotPendingError(invoice.id)

        with self._exclusive(invoice.id), LogContext(invoice_id=invoice.id):
            current = self._invoices.mark_processing(invoice.id)
            logger.info("Processing invoice '%s'", invoice.id)
            max_retries = self._config.max_retries

            for attempt in range(max_retries):
                try:
                    paid = self._payments.charge(current)
                except Exception as exc:
                    failure = exc
                    decision = classify_failure(exc)
                else:
                    return self._settle(current, paid)

                if decision == RetryDecision.RETRY:
                    logger.warning(
                        "Network error while charging invoice '%s' (attempt %d/%d)",
                        current.id,
                        attempt + 1,
                        max_retries,
                        extra={"attempt": attempt + 1},
                    )
                    if attempt + 1 < max_retries:
                        self._backoff()
                elif decision == RetryDecision.RECOVER:
                    logger.warning(
                        "Currency mismatch on invoice '%s' (%s), converting",
                        current.id,
                        current.amount.currency.value,
                        extra={"attempt": attempt + 1},
                    )
                    converted = self.convert(current)
                    if converted is None:
                        return self._fail(current)
                    current = converted
                else:
                    if isinstance(failure, CustomerNotFoundError):
                        logger.info("Customer '%s' not found for invoice '%s'", current.customer_id, current.id)
                    else:
                        logger.error(
                            "Unexpected error from payment provider for invoice '%s'",
                            current.id,
                            exc_info=failure,
                        )
                    return self._fail(current)

            logger.warning("Giving up on invoice '%s' after %d attempts", current.id, max_retries)
            return self._fail(current)

    def _settle(self, invoice: Invoice, paid: bool) -> InvoicePaymentAction:
        if paid:
            logger.info("Charge successful for invoice '%s'", invoice.id, extra={"charged": True})
            return InvoicePaymentAction(self._invoices.mark_paid(invoice.id), True)
        logger.info("Charge declined for invoice '%s'", invoice.id, extra={"charged": False})
        return self._fail(invoice)

    def _fail(self, invoice: Invoice) -> InvoicePaymentAction:
        failed = self._invoices.mark_failed(invoice.id)
        logger.info("Invoice '%s' marked failed", invoice.id, extra={"invoice_status": failed.status.value})
        return InvoicePaymentAction(failed, False)

    # ── Currency Recovery ─────────────────────────────────────────────

    def convert(self, invoice: Invoice) -> Optional[Invoice]:
        """Convert the invoice amount into the customer's currency.

        Returns:
            A copy of the invoice with the converted amount; the invoice
            unchanged when every attempt hit a network error; None when
            the customer is unknown or the conversion failed otherwise.
        """
        max_retries = self._config.max_retries
        for attempt in range(max_retries):
            try:
                customer = self._customers.fetch(invoice.customer_id)
                converted = self._currency.convert(invoice.amount, customer.currency)
            except NetworkError:
                logger.warning(
                    "Network error converting invoice '%s' (attempt %d/%d)",
                    invoice.id,
                    attempt + 1,
                    max_retries,
                    extra={"attempt": attempt + 1},
                )
                if attempt + 1 < max_retries:
                    self._backoff()
                continue
            except CustomerNotFoundError:
                logger.info("Customer '%s' not found while converting invoice '%s'", invoice.customer_id, invoice.id)
                return None
            except Exception:
                logger.exception("Currency conversion failed for invoice '%s'", invoice.id)
                return None

            logger.info(
                "Converted invoice '%s' from %s %s to %s %s",
                invoice.id,
                invoice.amount.amount,
                invoice.amount.currency.value,
                converted.amount,
                converted.currency.value,
            )
            return invoice.with_amount(converted)

        return invoice

    # ── Helpers ───────────────────────────────────────────────────────

    def _backoff(self) -> None:
        self._sleep(compute_backoff(self._config, self._rng))

    @contextmanager
    def _exclusive(self, invoice_id: int) -> Iterator[None]:
        """Reject a second concurrent process() for the same invoice."""
        with self._in_flight_lock:
            if invoice_id in self._in_flight:
                raise InvoiceBusyError(invoice_id)
            self._in_flight.add(invoice_id)
        try:
            yield
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(invoice_id)
