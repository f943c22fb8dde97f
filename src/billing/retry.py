"""Retry policy for invoice payment attempts.

Classifies a failed charge into retry / recover-then-retry / terminal
and computes the randomized backoff slept before a network retry.
"""

import random
from typing import Optional

from .config import BillingConfig, RetryDecision
from .exceptions import CurrencyMismatchError, NetworkError


def classify_failure(exc: BaseException) -> RetryDecision:
    """Map a payment provider failure to the action the processor takes.

    Args:
        exc: Exception raised by ``PaymentProvider.charge``.

    Returns:
        RETRY for transient network errors, RECOVER for a currency
        mismatch (convert, then charge again), TERMINAL for everything
        else, including an unknown customer.
    """
    if isinstance(exc, NetworkError):
        return RetryDecision.RETRY
    if isinstance(exc, CurrencyMismatchError):
        return RetryDecision.RECOVER
    return RetryDecision.TERMINAL


def compute_backoff(config: BillingConfig, rng: Optional[random.Random] = None) -> float:
    """Delay in seconds before the next network retry.

    Drawn uniformly from [backoff_min_seconds, backoff_max_seconds].
    """
    if config.backoff_max_seconds <= config.backoff_min_seconds:
        return config.backoff_min_seconds
    uniform = rng.uniform if rng is not None else random.uniform
    return uniform(config.backoff_min_seconds, config.backoff_max_seconds)
