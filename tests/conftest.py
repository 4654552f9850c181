"""
Pytest configuration for the kitchen orders test suite.

Storage-dependent tests run twice: once against a temporary SQLite database
through DatabaseStorage and once against InMemoryStorage.
"""
import os

# Must be set before kitchen_orders is imported (settings are cached)
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_kitchen_orders.db"
os.environ["STORAGE_BACKEND"] = "database"
os.environ["SEED_ON_STARTUP"] = "false"

from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from kitchen_orders.database import build_engine, build_session_maker, init_db
from kitchen_orders.main import app
from kitchen_orders.services.seed import seed_database
from kitchen_orders.services.storage import DatabaseStorage, InMemoryStorage, get_storage


@asynccontextmanager
async def sqlite_storage(path):
    """DatabaseStorage on a fresh SQLite file with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{path}")
    await init_db(engine)
    try:
        yield DatabaseStorage(build_session_maker(engine))
    finally:
        await engine.dispose()


@pytest_asyncio.fixture(params=["database", "memory"])
async def storage(request, tmp_path):
    """Every storage implementation, empty."""
    if request.param == "memory":
        yield InMemoryStorage()
        return

    async with sqlite_storage(tmp_path / "kitchen.db") as db_storage:
        yield db_storage


@pytest_asyncio.fixture
async def database_storage(tmp_path):
    """DatabaseStorage only, for behavior specific to the database."""
    async with sqlite_storage(tmp_path / "kitchen.db") as db_storage:
        yield db_storage


@pytest_asyncio.fixture
async def menu(storage):
    """Seed the demo kitchen and return its menu items."""
    await seed_database(storage)
    restaurants = await storage.get_restaurants()
    return await storage.get_menu_items(restaurants[0].id)


@pytest_asyncio.fixture
async def client(storage):
    """Async HTTP client with the storage dependency overridden."""
    app.dependency_overrides[get_storage] = lambda: storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
