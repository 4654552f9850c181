"""
                        Services Module

Business services behind the HTTP layer.

Services:
    - storage: persistence façade (database and in-memory implementations)
    - seed: demo data bootstrap
"""

from kitchen_orders.services.storage import get_storage, reset_storage, BaseStorage
from kitchen_orders.services.seed import seed_database

__all__ = ["get_storage", "reset_storage", "BaseStorage", "seed_database"]
