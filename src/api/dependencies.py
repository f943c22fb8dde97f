"""FastAPI Dependencies."""

from fastapi import Request

from src.billing.service import BillingService


def get_billing_service(request: Request) -> BillingService:
    """Return the BillingService attached to the running app."""
    return request.app.state.billing
