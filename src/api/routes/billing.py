"""Billing run endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from src.api.dependencies import get_billing_service
from src.api.models import BillingRunResponse, ErrorResponse
from src.billing.service import BillingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/billing", tags=["Billing"])


@router.post(
    "/run",
    response_model=BillingRunResponse,
    responses={409: {"model": ErrorResponse}},
)
def run_billing_cycle(service: BillingService = Depends(get_billing_service)) -> BillingRunResponse:
    """Run a billing cycle now, outside the monthly schedule.

    Blocks until every PENDING invoice has been processed. Responds 409
    while another run is active.
    """
    logger.info("Billing run requested over the API")
    report = service.run_billing_cycle()
    return BillingRunResponse.from_report(report)


@router.get("/last-run", response_model=Optional[BillingRunResponse])
def last_billing_run(service: BillingService = Depends(get_billing_service)) -> Optional[BillingRunResponse]:
    """Report of the most recent finished run, or null."""
    report = service.runner.last_report
    return BillingRunResponse.from_report(report) if report else None


@router.get("/statistics")
def invoice_statistics(service: BillingService = Depends(get_billing_service)) -> dict:
    """Invoice counts per status and amounts outstanding / collected."""
    return service.invoices.get_statistics()
