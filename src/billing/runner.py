"""Recurring Billing Engine: Billing Run Orchestrator."""

import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional

from src.logging_config import LogContext, PerformanceTimer, generate_run_id

from .config import InvoiceStatus
from .exceptions import BillingError, BillingRunInProgressError
from .invoices import InvoiceService
from .models import BillingRunReport, InvoicePaymentAction
from .processor import InvoicePaymentProcessor

logger = logging.getLogger(__name__)


class BillingRunner:
    """Processes every PENDING invoice once per billing cycle.

    Invoices are taken from a snapshot at the start of the run and
    processed one at a time. A failing invoice never stops the run.
    Only one run may be active at a time.
    """

    def __init__(
        self,
        processor: InvoicePaymentProcessor,
        invoice_service: InvoiceService,
    ) -> None:
        self._processor = processor
        self._invoices = invoice_service
        self._run_lock = threading.Lock()
        self._active_run_id: Optional[str] = None
        self._last_report: Optional[BillingRunReport] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def last_report(self) -> Optional[BillingRunReport]:
        return self._last_report

    def run_billing_cycle(self) -> BillingRunReport:
        """Charge all invoices that are PENDING right now.

        Raises:
            BillingRunInProgressError: another run has not finished yet.
        """
        if not self._run_lock.acquire(blocking=False):
            raise BillingRunInProgressError(self._active_run_id)

        run_id = generate_run_id()
        self._active_run_id = run_id
        try:
            with LogContext(billing_run_id=run_id):
                report = self._run(run_id)
        finally:
            self._active_run_id = None
            self._run_lock.release()

        self._last_report = report
        return report

    def _run(self, run_id: str) -> BillingRunReport:
        logger.info("Starting to process invoices...")
        report = BillingRunReport(run_id=run_id)

        with PerformanceTimer("billing_cycle") as timer:
            pending = self._invoices.fetch_all_with_status(InvoiceStatus.PENDING)
            actions: List[InvoicePaymentAction] = []
            for invoice in pending:
                try:
                    actions.append(self._processor.process(invoice))
                except BillingError as exc:
                    report.errored += 1
                    logger.warning("Skipped invoice '%s': %s", invoice.id, exc)
                except Exception:
                    report.errored += 1
                    logger.exception("Unexpected error processing invoice '%s'", invoice.id)

        paid = [a for a in actions if a.charged]
        report.actions = actions
        report.total = len(pending)
        report.succeeded = len(paid)
        report.failed = report.total - report.succeeded
        report.duration_ms = timer.duration_ms
        report.finished_at = datetime.now(timezone.utc)

        logger.info(
            "Finished processing %d invoices in %.0f ms",
            report.total,
            report.duration_ms,
            extra={"duration_ms": round(report.duration_ms, 2)},
        )
        logger.info("Successfully processed %d invoices", report.succeeded)
        logger.info("Failed processing %d invoices", report.failed)
        if report.errored:
            logger.warning("%d invoices raised during processing", report.errored)
        return report
