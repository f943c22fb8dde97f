"""Billing Log Context.

Binds the billing run ID and the invoice being processed to every log
record emitted inside the context. Uses contextvars, so the timer
thread and API request handlers each see their own values.
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Optional


_billing_run_id_var: ContextVar[str] = ContextVar("billing_run_id", default="")
_invoice_id_var: ContextVar[Optional[int]] = ContextVar("invoice_id", default=None)


def generate_run_id() -> str:
    """Generate a short unique billing run ID."""
    return f"run-{uuid.uuid4().hex[:12]}"


def get_billing_run_id() -> str:
    return _billing_run_id_var.get()


def get_invoice_id() -> Optional[int]:
    return _invoice_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all bound context values as a dictionary for log binding."""
    ctx: dict[str, Any] = {}
    run_id = _billing_run_id_var.get()
    if run_id:
        ctx["billing_run_id"] = run_id
    invoice_id = _invoice_id_var.get()
    if invoice_id is not None:
        ctx["invoice_id"] = invoice_id
    return ctx


@dataclass
class LogContext:
    """Context manager for run- and invoice-scoped logging context.

    Only the fields given are bound; nesting an invoice context inside a
    run context keeps the run ID. Previous values are restored on exit.

    Example:
        with LogContext(billing_run_id=generate_run_id()):
            for invoice in pending:
                with LogContext(invoice_id=invoice.id):
                    logger.info("processing")  # carries both IDs
    """

    billing_run_id: Optional[str] = None
    invoice_id: Optional[int] = None

    _tokens: list[tuple[ContextVar, Token]] = field(default_factory=list, repr=False)

    def __enter__(self) -> "LogContext":
        if self.billing_run_id is not None:
            self._tokens.append(
                (_billing_run_id_var, _billing_run_id_var.set(self.billing_run_id))
            )
        if self.invoice_id is not None:
            self._tokens.append((_invoice_id_var, _invoice_id_var.set(self.invoice_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
