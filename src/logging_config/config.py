"""Logging Configuration.

Settings for structured logging, log levels, and output formats.
"""

from dataclasses import dataclass
from enum import Enum


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.CONSOLE
    include_caller: bool = True
    slow_threshold_ms: float = 60_000.0  # a billing run may legitimately take a while
    service_name: str = "billing"

    @classmethod
    def from_settings(cls, settings) -> "LoggingConfig":
        return cls(
            level=LogLevel(settings.log_level.upper()),
            format=LogFormat(settings.log_format.lower()),
        )


DEFAULT_LOGGING_CONFIG = LoggingConfig()
