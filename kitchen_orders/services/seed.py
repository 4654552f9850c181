"""
Demo Data Seeding

Bootstraps an empty store with one cloud kitchen, its menu and a demo admin
account. Runs from the application lifespan before requests are served.
"""

import logging
from decimal import Decimal

from kitchen_orders.schemas import MenuItemInsert, RestaurantCreate, UserCreate
from kitchen_orders.services.storage.base import BaseStorage

logger = logging.getLogger(__name__)


DEMO_RESTAURANT = RestaurantCreate(
    name="Nepalgunj Cloud Kitchen",
    type="cloud_kitchen",
    address="B.P. Chowk, Nepalgunj",
    phone_number="9800000000",
    image="https://images.unsplash.com/photo-1556910103-1c02745a30bf?w=800&q=80",
)

DEMO_MENU = [
    {
        "name": "Chicken Momo",
        "description": "Steamed chicken dumplings with spicy chutney",
        "price": Decimal("150.00"),
        "category": "Momo",
        "image_url": "https://images.unsplash.com/photo-1626074353765-517a681e40be?w=800&q=80",
    },
    {
        "name": "Chicken Chowmein",
        "description": "Stir-fried noodles with chicken and veggies",
        "price": Decimal("120.00"),
        "category": "Noodles",
        "image_url": "https://images.unsplash.com/photo-1585032226651-759b368d7246?w=800&q=80",
    },
    {
        "name": "Burger & Fries",
        "description": "Classic chicken burger with crispy fries",
        "price": Decimal("250.00"),
        "category": "Fast Food",
        "image_url": "https://images.unsplash.com/photo-1568901346375-23c9450c58cd?w=800&q=80",
    },
]

DEMO_USER = UserCreate(
    username="demo_admin",
    password="password123",
    role="admin",
    phone_number="9800000001",
)


async def seed_database(storage: BaseStorage) -> bool:
    """
    Insert demo data when no restaurant exists yet.

    Only the restaurant count is checked, so a store left half-seeded by an
    earlier failure is not repaired.

    Args:
        storage: Storage to seed

    Returns:
        True if demo data was inserted, False if the store already had data
    """
    restaurants = await storage.get_restaurants()
    if restaurants:
        logger.info(f"Seed skipped: {len(restaurants)} restaurant(s) already stored")
        return False

    kitchen = await storage.create_restaurant(DEMO_RESTAURANT)

    for item in DEMO_MENU:
        await storage.create_menu_item(
            MenuItemInsert(restaurant_id=kitchen.id, is_available=True, **item)
        )

    await storage.create_user(DEMO_USER)

    logger.info(
        f"Seeded restaurant #{kitchen.id} '{kitchen.name}' with "
        f"{len(DEMO_MENU)} menu items and user '{DEMO_USER.username}'"
    )
    return True
