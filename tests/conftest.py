# tests/conftest.py
"""
Shared fixtures: settings, a seeded in-memory backend with a fixed clock, and
store builders at the stages the scenarios start from.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from config.settings import Settings
from services.api import InMemoryApi
from services.main import build_services
from store.main import build_store

FIXED_NOW = datetime(2026, 10, 16, 13, 0, tzinfo=timezone.utc)


def seed_data():
    return {
        "consumer_types": [
            {"id": "guest", "name": "Guest"},
        ],
        "consumers": [
            {"id": 5, "name": "Jan", "show": True},
            {"id": 6, "name": "Els", "show": True, "spending_limit": 10},
        ],
        "products": [
            {"id": 1, "title": "Coffee", "title_raw": "Coffee", "price": 1.5, "product_category": "beverages"},
            {"id": 2, "title": "Crème brûlée", "title_raw": "Crème brûlée", "price": 4.0, "product_category": "food"},
            {"id": 3, "title": "Tea", "title_raw": "Tea", "price": 1.25, "product_category": "beverages"},
        ],
        "occasions": [
            {"id": 1, "title": "Open", "occasion_date": "2026-10-16", "closed": False},
            {"id": 2, "title": "Closed", "occasion_date": "2026-10-09", "closed": True},
            {"id": 3, "title": "Empty", "occasion_date": "2026-10-23", "closed": False},
        ],
        "orders": [
            {
                "id": 1, "occasion": 1, "consumer": 5, "consumer_data": {"id": 5, "name": "Jan"},
                "date": FIXED_NOW - timedelta(minutes=30),
                "items": [{"id": 1, "title": "Coffee", "price": 1.5, "quantity": 2}],
            },
            {
                "id": 2, "occasion": 1, "consumer": 6, "consumer_data": {"id": 6, "name": "Els"},
                "date": FIXED_NOW - timedelta(minutes=5),
                "items": [{"id": 3, "title": "Tea", "price": 1.25, "quantity": 4}],
            },
            {
                "id": 3, "occasion": 2, "consumer": 5, "consumer_data": {"id": 5, "name": "Jan"},
                "date": FIXED_NOW - timedelta(days=7),
                "items": [{"id": 1, "title": "Coffee", "price": 1.5, "quantity": 1}],
            },
            {
                "id": 4, "occasion": 1, "consumer": 99, "consumer_data": {"id": 99, "name": "Former member"},
                "date": FIXED_NOW - timedelta(minutes=45),
                "items": [{"id": 2, "title": "Crème brûlée", "price": 4.0, "quantity": 1}],
            },
        ],
    }


@pytest.fixture
def now():
    """The fixed clock reading every store in these tests sees."""
    return FIXED_NOW


@pytest.fixture
def settings():
    return Settings(
        min_load_duration_ms=0,
        product_categories={"beverages": "Beverages", "food": "Food"},
        default_product_category="beverages",
    )


@pytest.fixture
def make_store(settings):
    """Build and initialize a store. Keyword arguments override the defaults."""

    def factory(settings_override=None, capabilities=None, data=None, page_size=25):
        current = settings_override or settings
        services = build_services(current, capabilities=capabilities, clock=lambda: FIXED_NOW)
        api = InMemoryApi(data if data is not None else seed_data(), clock=services.clock, page_size=page_size)
        store = build_store(api=api, services=services, settings=current)
        asyncio.run(store.init())
        return store

    return factory


@pytest.fixture
def store(make_store):
    """Initialized store, still in LOGIN."""
    return make_store()


@pytest.fixture
def loaded_store(store):
    """Catalogs loaded, picking an occasion."""
    asyncio.run(store.load())
    return store


@pytest.fixture
def open_store(loaded_store):
    """Occasion 1 loaded with its orders, idle."""
    asyncio.run(loaded_store.dispatch("occasions/get", {"id": 1}))
    return loaded_store
