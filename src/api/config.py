"""API Configuration."""

from dataclasses import dataclass


@dataclass
class APIConfig:
    """Core API settings."""

    title: str = "Billing API"
    version: str = "1.0.0"
    description: str = "Recurring billing engine: invoices, customers and billing runs"
    rest_prefix: str = "/rest"
    prefix: str = "/rest/v1"
    docs_url: str = "/docs"
    welcome_message: str = "Welcome to the billing service! See /docs for the available routes"


DEFAULT_API_CONFIG = APIConfig()
