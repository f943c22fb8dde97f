"""Centralized settings for the billing engine.

Uses pydantic-settings to load from environment variables (prefixed
BILLING_) or a .env file, with defaults suitable for local runs.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Billing engine settings loaded from environment variables."""

    # --- Payment retries ---
    max_retries: int = Field(default=3, ge=1)
    retry_backoff_min_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_max_seconds: float = Field(default=2.0, ge=0)

    # --- Recurring trigger ---
    billing_day_of_month: int = Field(default=1, ge=1, le=28)
    gate_check_interval_seconds: float = Field(default=86_400.0, gt=0)

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "console"

    # --- REST API ---
    api_host: str = "127.0.0.1"
    api_port: int = 7000

    # --- Demo data / simulated providers ---
    demo_seed: int = 42
    demo_customers: int = 100
    demo_invoices_per_customer: int = 10
    demo_success_rate: float = Field(default=0.75, ge=0, le=1)

    model_config = {
        "env_prefix": "BILLING_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
