"""Exception Handlers.

Maps billing exceptions onto their HTTP status and renders every error
with the same envelope::

    {"error": {"code": "...", "message": "...", "timestamp": "..."}}
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.billing.exceptions import BillingError

logger = logging.getLogger(__name__)


def error_body(code: str, message: str) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }


async def handle_billing_error(request: Request, exc: BillingError) -> JSONResponse:
    """Render a BillingError with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"API Error [{exc.error_code}] ({exc.status_code}): {exc.message}")
    else:
        logger.info(f"API Error [{exc.error_code}] ({exc.status_code}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_code, exc.message),
    )


async def handle_unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; never leaks internals to the client."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An internal error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, handle_billing_error)
    app.add_exception_handler(Exception, handle_unhandled_error)
