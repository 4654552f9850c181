"""
Storage Service Factory

Provides a single entry point for obtaining the storage service instance.
Route handlers depend on ``get_storage`` and stay agnostic about which
implementation is being used.

Usage:
    from kitchen_orders.services.storage import get_storage

    # Returns DatabaseStorage or InMemoryStorage based on STORAGE_BACKEND
    storage = get_storage()

    restaurants = await storage.get_restaurants()

Backend Switching:
    - STORAGE_BACKEND=database → DatabaseStorage (SQLAlchemy async engine)
    - STORAGE_BACKEND=memory → InMemoryStorage (no database needed)
"""

import logging
from functools import lru_cache

from kitchen_orders.core.config import get_settings
from kitchen_orders.services.storage.base import BaseStorage, DuplicateUsernameError
from kitchen_orders.services.storage.database import DatabaseStorage
from kitchen_orders.services.storage.memory import InMemoryStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage() -> BaseStorage:
    """
    Get the configured storage service instance.

    The instance is cached so every request shares the same storage object
    (and, for the in-memory backend, the same data).

    Returns:
        BaseStorage: Configured storage service instance
    """
    settings = get_settings()

    if settings.use_memory_storage:
        logger.info("Storage Service: Using InMemoryStorage")
        return InMemoryStorage()

    from kitchen_orders.database import async_session_maker

    logger.info("Storage Service: Using DatabaseStorage")
    return DatabaseStorage(async_session_maker)


def reset_storage() -> None:
    """
    Clear the cached storage instance.

    The next call to get_storage() will create a new instance.
    """
    get_storage.cache_clear()
    logger.debug("Storage service cache cleared")


__all__ = [
    "get_storage",
    "reset_storage",
    "BaseStorage",
    "DuplicateUsernameError",
    "DatabaseStorage",
    "InMemoryStorage",
]
