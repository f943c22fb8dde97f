"""Customer endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_billing_service
from src.api.models import CustomerResponse, ErrorResponse
from src.billing.service import BillingService

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=list[CustomerResponse])
def list_customers(service: BillingService = Depends(get_billing_service)) -> list[CustomerResponse]:
    return [CustomerResponse.from_customer(c) for c in service.customers.fetch_all()]


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_customer(
    customer_id: int,
    service: BillingService = Depends(get_billing_service),
) -> CustomerResponse:
    return CustomerResponse.from_customer(service.customers.fetch(customer_id))
