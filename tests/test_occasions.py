# tests/test_occasions.py
"""
Test cases for the occasions store module.
"""

import asyncio
from datetime import date

import pytest

from config.constants import GENERIC_INVALID_INPUT
from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from services.api import ApiError


class OrdersStub:
    def __init__(self, count):
        self._count = count

    def count(self):
        return self._count


@pytest.mark.parametrize("active, order_count, deletable", [
    (None, 0, False),
    ({"id": 1, "closed": False}, 0, True),
    ({"id": 1, "closed": True}, 0, False),
    ({"id": 1, "closed": False}, 2, False),
])
def test_is_deletable(store, active, order_count, deletable):
    occasions = store["occasions"]
    occasions.connect(orders=OrdersStub(order_count))
    occasions.set_new_active(active)

    assert occasions.is_deletable() is deletable


@pytest.mark.parametrize("active, order_count, closable, reopenable", [
    (None, 3, False, False),
    ({"id": 1, "closed": False}, 3, True, False),
    ({"id": 1, "closed": False}, 0, False, False),
    ({"id": 1, "closed": True}, 3, False, True),
])
def test_close_and_reopen_availability(store, active, order_count, closable, reopenable):
    occasions = store["occasions"]
    occasions.connect(orders=OrdersStub(order_count))
    occasions.set_new_active(active)

    assert occasions.is_closable() is closable
    assert occasions.is_reopenable() is reopenable


class TestOccasionLoading:
    """Test cases for picking, loading and creating occasions."""

    def test_login_shows_the_picker(self, loaded_store):
        assert loaded_store.fsm.is_state(st.OCCASIONS)
        assert loaded_store.state["fsm"] == st.OCCASIONS.value

    def test_login_skips_the_picker_with_an_active_occasion(self, store):
        occasions = store["occasions"]
        asyncio.run(occasions.load())
        occasions.set_active(1)

        asyncio.run(store.load())

        assert store.fsm.is_state(st.IDLE)

    def test_get_loads_the_orders(self, open_store):
        occasions = open_store["occasions"]

        assert open_store.fsm.is_state(st.IDLE)
        assert occasions.get_title() == "Open"
        assert open_store["orders"].count() == 3
        loaded = open_store.services.feedback.get_list()[-1]
        assert loaded.message == "Occasion.LoadedOccasion"
        assert loaded.data == {"args": ["Open"]}

    def test_get_without_id_creates_an_occasion(self, loaded_store):
        asyncio.run(loaded_store.dispatch("occasions/get", {"title": "Board meeting", "occasion_date": "2026-10-20"}))

        occasions = loaded_store["occasions"]
        assert loaded_store.fsm.is_state(st.IDLE)
        assert occasions.get_active()["id"] == 4
        assert occasions.get_active()["occasion_date"] == date(2026, 10, 20)
        assert occasions.get_item_by_id(4)["title"] == "Board meeting"
        assert loaded_store["orders"].count() == 0
        assert loaded_store.services.feedback.messages()[-2:] == ["Occasion.CreatedOccasion", "Occasion.LoadedOccasion"]

    def test_invalid_new_occasion_is_rejected(self, loaded_store):
        with pytest.raises(ApiError) as excinfo:
            asyncio.run(loaded_store.dispatch("occasions/get", {"title": "Broken", "occasion_date": "someday"}))

        assert excinfo.value.reason == GENERIC_INVALID_INPUT
        assert loaded_store.fsm.is_state(st.OCCASIONS)

    def test_failed_load_keeps_the_picker(self, loaded_store):
        async def broken(*args, **kwargs):
            raise ApiError("Generic.Error.NotFound")

        loaded_store.api.orders.get = broken

        with pytest.raises(ApiError):
            asyncio.run(loaded_store.dispatch("occasions/get", {"id": 1}))

        assert loaded_store.fsm.is_state(st.OCCASIONS)
        assert loaded_store["occasions"].get_active() is None

    def test_edit_needs_an_active_occasion(self, loaded_store):
        asyncio.run(loaded_store.fsm.do(tr.SELECT_OCCASION))

        with pytest.raises(TransitionRejection) as excinfo:
            asyncio.run(loaded_store.dispatch("occasions/edit"))

        assert excinfo.value.reason == "Occasion.Error.NoOccasion"
        assert loaded_store.fsm.is_state(st.VIEW_OCCASION)


class TestOccasionEditing:
    """Test cases for editing, closing and deleting the active occasion."""

    @pytest.fixture(autouse=True)
    def setup(self, open_store):
        self.store = open_store
        self.occasions = open_store["occasions"]
        asyncio.run(self.occasions.start())

    def test_start_opens_the_active_occasion(self):
        assert self.store.fsm.is_state(st.VIEW_OCCASION)
        assert self.occasions.is_closable()
        assert not self.occasions.is_deletable()

    def test_save_edits(self):
        asyncio.run(self.occasions.edit())
        asyncio.run(self.occasions.patch({"title": "  Renamed "}))

        assert self.occasions.get_active()["title"] == "Renamed"
        assert self.occasions.is_submittable()

        asyncio.run(self.occasions.update())

        assert self.store.fsm.is_state(st.VIEW_OCCASION)
        assert self.occasions.get_item_by_id(1)["title"] == "Renamed"
        assert self.store.api.occasions.records[1].title == "Renamed"

    def test_invalid_date_blocks_the_save(self):
        asyncio.run(self.occasions.edit())
        asyncio.run(self.occasions.patch({"occasion_date": "not a date"}))

        assert [item.message for item in self.occasions.get_feedback()] == ["Occasion.Error.InvalidOccasionDate"]
        with pytest.raises(TransitionRejection):
            asyncio.run(self.occasions.update())
        assert self.store.fsm.is_state(st.EDIT_OCCASION)

    def test_cancel_restores_the_occasion(self):
        asyncio.run(self.occasions.edit())
        asyncio.run(self.occasions.patch({"title": ""}))

        asyncio.run(self.occasions.cancel())

        assert self.store.fsm.is_state(st.VIEW_OCCASION)
        assert self.occasions.get_title() == "Open"
        assert self.occasions.get_feedback() == []

    def test_close_and_reopen(self):
        asyncio.run(self.occasions.close())

        assert self.occasions.is_closed()
        assert self.occasions.get_item_by_id(1)["closed"] is True
        assert self.occasions.is_reopenable()

        asyncio.run(self.occasions.reopen())

        assert not self.occasions.is_closed()
        assert self.store.fsm.is_state(st.VIEW_OCCASION)


def test_delete_an_empty_occasion(loaded_store):
    occasions = loaded_store["occasions"]
    asyncio.run(loaded_store.dispatch("occasions/get", {"id": 3}))
    asyncio.run(occasions.start())
    assert occasions.is_deletable()

    asyncio.run(occasions.maybe_delete())
    assert loaded_store.fsm.is_state(st.DELETE_OCCASION)
    asyncio.run(occasions.delete())

    assert loaded_store.fsm.is_state(st.OCCASIONS)
    assert occasions.get_active() is None
    assert 3 not in [o["id"] for o in occasions.get_items()]
    assert 3 not in loaded_store.api.occasions.records


def test_load_applies_every_streamed_page(make_store):
    store = make_store(page_size=1)
    seen = []
    store["occasions"].state.watch("all", lambda new, old: seen.append(len(new)))

    asyncio.run(store["occasions"].load())

    assert seen == [1, 2, 3, 3]
