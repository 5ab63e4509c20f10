"""
Utility modules for the prediction system.

Common utilities: logging and TTL caching.
"""

from src.utils.cache import TTLCache
from src.utils.logging import get_logger, setup_logger

__all__ = [
    "get_logger",
    "setup_logger",
    "TTLCache",
]
