"""Core utilities for linksite."""

from linksite.app.core.cache import ExpiringLRUCache
from linksite.app.core.config import settings
from linksite.app.core.logging import get_logger, setup_logging

__all__ = [
    "ExpiringLRUCache",
    "settings",
    "get_logger",
    "setup_logging",
]
