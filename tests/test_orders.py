# tests/test_orders.py
"""
Test cases for the orders store module.
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from config.enums import State as st
from config.settings import Settings
from core.errors import TransitionRejection


class TestOrderDecoration:
    """Test cases for joined order data and totals."""

    @pytest.fixture(autouse=True)
    def setup(self, open_store, now):
        self.now = now
        self.store = open_store
        self.orders = open_store["orders"]

    def test_orders_are_joined_with_their_consumer(self):
        order = self.orders.get_item_by_id(1)

        assert order["consumer"]["name"] == "Jan"
        assert order["consumer_name"] == "Jan"
        assert order["total_quantity"] == 2
        assert order["total_price"] == 3.0

    def test_removed_consumer_falls_back_to_the_stored_data(self):
        order = self.orders.get_item_by_id(4)

        assert order["consumer"] == {"id": 99, "name": "Former member"}

    def test_unknown_consumer_name(self):
        asyncio.run(self.orders.load({"items": [
            {"id": 9, "occasion": 1, "consumer": 77, "consumer_data": {"id": 77, "name": ""}, "date": self.now, "items": []},
        ]}))

        assert self.orders.get_item_by_id(9)["consumer_name"] == "Unknown consumer"
        assert self.orders.count() == 1

    def test_totals(self):
        assert self.orders.count() == 3
        assert self.orders.get_total_price() == 12.0
        assert self.orders.get_total_quantity() == 7

    def test_orders_by_consumer(self):
        assert [o["id"] for o in self.orders.get_items_by_consumer(5)] == [1]
        assert self.orders.get_items_by_consumer() == []

        self.store["consumers"].set_active(6)
        assert [o["id"] for o in self.orders.get_items_by_consumer()] == [2]

    def test_search_by_consumer_name(self):
        asyncio.run(self.orders.search("former"))
        assert [o["id"] for o in self.orders.get_matching_items()] == [4]


class TestOrderTimeLock:
    """Test cases for the edit window of orders."""

    @pytest.fixture(autouse=True)
    def setup(self, make_store, now):
        self.now = now
        self.store = make_store(settings_override=Settings(order_time_lock=15, min_load_duration_ms=0))
        self.orders = self.store["orders"]
        asyncio.run(self.orders.load({"id": 1}))

    def test_orders_lock_after_the_window(self):
        assert self.orders.is_item_locked(1)
        assert not self.orders.is_item_locked(2)
        assert self.orders.is_item_locked(self.orders.get_item_by_id(4))

    def test_window_end_is_still_editable(self):
        assert not self.orders.is_item_locked({"date": self.now - timedelta(minutes=15)})
        assert self.orders.is_item_locked({"date": self.now - timedelta(minutes=15, seconds=1)})

    def test_naive_dates_are_utc(self):
        assert self.orders.is_item_locked({"date": datetime(2026, 10, 16, 12, 0)})
        assert not self.orders.is_item_locked({"date": "2026-10-16T12:50:00"})

    def test_unknown_orders_are_not_locked(self):
        assert not self.orders.is_item_locked(42)
        assert not self.orders.is_item_locked(None)

    def test_locked_order_cannot_be_edited(self):
        asyncio.run(self.store.load())
        asyncio.run(self.store.dispatch("occasions/get", {"id": 1}))
        asyncio.run(self.orders.select(1))

        assert self.orders.is_active_item_locked()
        with pytest.raises(TransitionRejection) as excinfo:
            asyncio.run(self.orders.edit())
        assert excinfo.value.reason == "Order.Error.TimeLocked"
        assert self.store.fsm.is_state(st.VIEW_ORDER)

        asyncio.run(self.orders.select(2))
        asyncio.run(self.orders.edit())
        assert self.store.fsm.is_state(st.EDIT_ORDER)


def test_no_lock_by_default(open_store):
    assert not open_store["orders"].is_item_locked(1)


def test_orders_of_a_closed_occasion_cannot_be_edited(loaded_store):
    asyncio.run(loaded_store.dispatch("occasions/get", {"id": 2}))
    asyncio.run(loaded_store.dispatch("orders/select", 3))

    with pytest.raises(TransitionRejection) as excinfo:
        asyncio.run(loaded_store.dispatch("orders/edit"))

    assert excinfo.value.reason == "Order.Error.OccasionClosedEditing"
    assert loaded_store.fsm.is_state(st.VIEW_ORDER)


def test_closing_an_order_clears_it(open_store):
    asyncio.run(open_store.dispatch("orders/select", 2))
    assert open_store["orders"].get_active()["id"] == 2

    asyncio.run(open_store.dispatch("orders/cancel"))

    assert open_store.fsm.is_state(st.IDLE)
    assert open_store["orders"].get_active() is None


def test_load_applies_every_streamed_page(make_store):
    store = make_store(page_size=2)
    seen = []
    store["orders"].state.watch("all", lambda new, old: seen.append([order["id"] for order in new]))

    asyncio.run(store["orders"].load({"id": 1}))

    assert seen == [[1, 2], [1, 2, 4], [1, 2, 4]]
