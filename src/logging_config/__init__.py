"""Structured logging for the billing engine.

JSON or console output, billing run / invoice context binding, and
timing of long operations.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import LogContext, generate_run_id, get_context_dict
from src.logging_config.performance import PerformanceTimer
from src.logging_config.setup import configure_logging

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "LogContext",
    "PerformanceTimer",
    "configure_logging",
    "generate_run_id",
    "get_context_dict",
]
