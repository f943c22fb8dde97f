"""FastAPI Application Factory.

Creates the billing REST API around a BillingService: invoice and
customer lookups, manual invoice processing, and on-demand billing
runs, with structured error responses.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from src.api.config import APIConfig, DEFAULT_API_CONFIG
from src.api.errors import register_exception_handlers
from src.api.routes import billing as billing_routes
from src.api.routes import customers as customer_routes
from src.api.routes import invoices as invoice_routes
from src.billing.service import BillingService, create_billing_service
from src.settings import Settings, get_settings

logger = logging.getLogger(__name__)


# ── Lifespan (startup / shutdown) ────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the recurring trigger if requested; stop it on shutdown."""
    service: BillingService = app.state.billing
    if app.state.start_recurring:
        service.start_recurring()

    logger.info("Billing API starting up")
    yield
    # ── Shutdown ──
    service.stop()
    logger.info("Billing API shutting down")


# ── App Factory ──────────────────────────────────────────────────────


def create_app(
    service: Optional[BillingService] = None,
    settings: Optional[Settings] = None,
    config: Optional[APIConfig] = None,
    start_recurring: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Billing service to expose. Built from settings (demo
                 data, simulated providers) if not provided.
        settings: Settings used to build the service.
        config: API configuration. Uses defaults if not provided.
        start_recurring: Arm the monthly billing trigger at startup.

    Returns:
        Configured FastAPI application.
    """
    config = config or DEFAULT_API_CONFIG
    if service is None:
        service = create_billing_service(settings or get_settings())

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        docs_url=config.docs_url,
        lifespan=lifespan,
    )
    app.state.billing = service
    app.state.start_recurring = start_recurring

    register_exception_handlers(app)

    # ── Health check ─────────────────────────────────────────────

    @app.get("/", response_class=PlainTextResponse)
    def welcome() -> str:
        return config.welcome_message

    @app.get(f"{config.rest_prefix}/health")
    def health() -> str:
        return "ok"

    # ── Route modules ────────────────────────────────────────────

    app.include_router(invoice_routes.router, prefix=config.prefix)
    app.include_router(customer_routes.router, prefix=config.prefix)
    app.include_router(billing_routes.router, prefix=config.prefix)

    logger.info(f"Billing API v{config.version} initialized")
    return app
