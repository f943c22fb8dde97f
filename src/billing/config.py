"""Recurring Billing Engine: Configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Currency(Enum):
    """Currencies an invoice can be billed in."""

    EUR = "EUR"
    USD = "USD"
    DKK = "DKK"
    SEK = "SEK"
    GBP = "GBP"


class InvoiceStatus(Enum):
    """Invoice lifecycle states."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (InvoiceStatus.PAID, InvoiceStatus.FAILED)


class RetryDecision(str, Enum):
    """What the payment loop does with a failed charge."""

    RETRY = "retry"
    RECOVER = "recover"
    TERMINAL = "terminal"


# ── Default Constants ────────────────────────────────────────────────

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_MIN = 1.0  # seconds
DEFAULT_BACKOFF_MAX = 2.0  # seconds
DEFAULT_BILLING_DAY = 1
DEFAULT_GATE_CHECK_INTERVAL = 24 * 60 * 60.0  # seconds


@dataclass
class BillingConfig:
    """Engine configuration passed to the processor, runner and trigger."""

    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_min_seconds: float = DEFAULT_BACKOFF_MIN
    backoff_max_seconds: float = DEFAULT_BACKOFF_MAX
    billing_day_of_month: int = DEFAULT_BILLING_DAY
    gate_check_interval_seconds: float = DEFAULT_GATE_CHECK_INTERVAL

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be a positive integer")
        if self.backoff_min_seconds < 0 or self.backoff_max_seconds < 0:
            raise ValueError("Backoff delays must be non-negative")
        if self.backoff_min_seconds > self.backoff_max_seconds:
            raise ValueError("backoff_min_seconds must not exceed backoff_max_seconds")
        # Every month has a 28th, so the gate can never skip a month by calendar.
        if not 1 <= self.billing_day_of_month <= 28:
            raise ValueError("billing_day_of_month must be between 1 and 28")
        if self.gate_check_interval_seconds <= 0:
            raise ValueError("gate_check_interval_seconds must be positive")

    @classmethod
    def from_settings(cls, settings: Any) -> "BillingConfig":
        """Build the engine config from application settings."""
        return cls(
            max_retries=settings.max_retries,
            backoff_min_seconds=settings.retry_backoff_min_seconds,
            backoff_max_seconds=settings.retry_backoff_max_seconds,
            billing_day_of_month=settings.billing_day_of_month,
            gate_check_interval_seconds=settings.gate_check_interval_seconds,
        )


DEFAULT_BILLING_CONFIG = BillingConfig()
