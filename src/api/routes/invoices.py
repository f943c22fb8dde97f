"""Invoice endpoints: listing, lookup, and manual processing."""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_billing_service
from src.api.models import ErrorResponse, InvoiceResponse, PaymentActionResponse
from src.billing.service import BillingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(service: BillingService = Depends(get_billing_service)) -> list[InvoiceResponse]:
    """All invoices, ordered by ID."""
    return [InvoiceResponse.from_invoice(i) for i in service.invoices.fetch_all()]


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_invoice(
    invoice_id: int,
    service: BillingService = Depends(get_billing_service),
) -> InvoiceResponse:
    return InvoiceResponse.from_invoice(service.invoices.fetch(invoice_id))


@router.put(
    "/{invoice_id}/process",
    response_model=PaymentActionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def process_invoice(
    invoice_id: int,
    service: BillingService = Depends(get_billing_service),
) -> PaymentActionResponse:
    """Charge one PENDING invoice now.

    Responds 409 when the invoice was already processed or is being
    processed by a running billing cycle.
    """
    logger.info(f"Manual processing requested for invoice '{invoice_id}'")
    action = service.process_invoice(invoice_id)
    return PaymentActionResponse.from_action(action)
