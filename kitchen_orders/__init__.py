"""
                Kitchen Orders

Order management backend for a food-delivery style application:
restaurants, menus, orders with frozen line prices, and a chat webhook stub.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
