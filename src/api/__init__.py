"""REST API for the billing engine.

Example:
    from src.api import create_app
    app = create_app()
"""

from src.api.app import create_app
from src.api.config import APIConfig, DEFAULT_API_CONFIG

__all__ = [
    "create_app",
    "APIConfig",
    "DEFAULT_API_CONFIG",
]
