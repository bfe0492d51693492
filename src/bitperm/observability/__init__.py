"""Observability module for bitperm.

Provides loguru-based logging.
"""

from .loguru_config import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
