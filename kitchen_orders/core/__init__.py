"""
Core module initialization.
Exports configuration, logging and password utilities.
"""

from kitchen_orders.core.config import (
    get_settings,
    setup_logging,
    Settings,
    EnvironmentMode,
    StorageBackend,
)
from kitchen_orders.core.security import hash_password, verify_password

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "hash_password",
    "verify_password",
]
