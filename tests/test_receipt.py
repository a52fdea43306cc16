# tests/test_receipt.py
"""
Test cases for the receipt store module and the order flows built on it.
"""

import asyncio

import pytest

from config.constants import SPENDING_LIMIT_FEEDBACK_ID
from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection


class TestReceiptLines:
    """Test cases for receipt line arithmetic."""

    @pytest.fixture(autouse=True)
    def setup(self, loaded_store):
        self.receipt = loaded_store["receipt"]

    def test_quantities_add_up_and_go_negative(self):
        self.receipt.increment_item(1)
        self.receipt.increment_item({"id": 1})
        assert self.receipt.state.all == [{"id": 1, "quantity": 2}]

        self.receipt.decrement_item({"id": 1, "quantity": 3})
        assert self.receipt.state.all == [{"id": 1, "quantity": -1}]
        assert self.receipt.get_total_quantity() == -1

        self.receipt.increment_item({"id": 1, "quantity": 1})
        assert self.receipt.state.all == []

    def test_decrementing_a_missing_line(self):
        self.receipt.decrement_item({"id": 3, "quantity": 2})
        assert self.receipt.state.all == [{"id": 3, "quantity": -2}]

    def test_payload_is_not_kept(self):
        payload = {"id": 2, "quantity": 3}
        self.receipt.increment_item(payload)
        self.receipt.increment_item(2)

        assert payload == {"id": 2, "quantity": 3}
        assert self.receipt.state.all == [{"id": 2, "quantity": 4}]

    def test_lines_follow_the_catalog(self):
        self.receipt.set_list_items([
            {"id": 1, "title": "Old name", "price": 9.0, "quantity": 2},
            {"id": 42, "title": "Gone", "price": 2.0, "quantity": 1},
        ])

        assert self.receipt.get_items() == [
            {"id": 1, "title": "Coffee", "price": 1.5, "quantity": 2},
            {"id": 42, "title": "Gone", "price": 2.0, "quantity": 1},
        ]
        assert self.receipt.get_total_price() == 5.0
        assert self.receipt.get_total_quantity() == 3


class TestReceiptGuard:
    """Test cases for entering and leaving the receipt without a usable occasion."""

    def test_no_occasion(self, loaded_store):
        asyncio.run(loaded_store.fsm.do(tr.CANCEL_OCCASION))

        with pytest.raises(TransitionRejection) as excinfo:
            asyncio.run(loaded_store.dispatch("receipt/start"))

        error = excinfo.value
        assert error.reason == "Occasion.Error.NoOccasion"
        assert error.action.label == "Occasion.OpenOccasion"
        assert loaded_store.fsm.is_state(st.IDLE)

        asyncio.run(error.action.callback())
        assert loaded_store.fsm.is_state(st.OCCASIONS)

    def test_closed_occasion(self, loaded_store):
        asyncio.run(loaded_store.dispatch("occasions/get", {"id": 2}))

        with pytest.raises(TransitionRejection) as excinfo:
            asyncio.run(loaded_store.dispatch("consumers/select", 5))

        assert excinfo.value.reason == "Order.Error.OccasionClosed"
        assert loaded_store.fsm.is_state(st.IDLE)

    def test_attempt_reports_the_rejection(self, loaded_store):
        asyncio.run(loaded_store.fsm.do(tr.CANCEL_OCCASION))

        assert asyncio.run(loaded_store.attempt("receipt/start")) is None

        reported = loaded_store.services.feedback.get_list()[-1]
        assert reported.message == "Occasion.Error.NoOccasion"
        assert reported.is_error
        assert reported.action.label == "Occasion.OpenOccasion"


class TestReceiptFlows:
    """Test cases for composing, submitting and editing orders."""

    @pytest.fixture(autouse=True)
    def setup(self, open_store, now):
        self.now = now
        self.store = open_store
        self.receipt = open_store["receipt"]
        self.dispatch = lambda path, *args: asyncio.run(open_store.dispatch(path, *args))

    def test_submittable_needs_a_consumer(self):
        self.dispatch("products/select", 1)
        assert self.receipt.is_cancelable()
        assert not self.receipt.is_submittable()

        self.dispatch("consumers/select", 5)
        assert self.receipt.is_submittable()
        assert self.receipt.is_editable()

    def test_spending_limit_feedback(self):
        """Test that the receipt is flagged while it takes the consumer over their limit."""
        self.dispatch("consumers/select", 6)
        self.dispatch("products/select", {"id": 2, "quantity": 1})
        assert not self.receipt.feedback.exists(SPENDING_LIMIT_FEEDBACK_ID)

        self.dispatch("products/select", {"id": 2, "quantity": 1})
        assert self.receipt.feedback.exists(SPENDING_LIMIT_FEEDBACK_ID)
        assert [item.message for item in self.receipt.get_feedback()] == ["Consumer.Error.SpendingLimitReached"]
        assert not self.receipt.is_submittable()

        self.dispatch("products/decrement", {"id": 2, "quantity": 1})
        assert self.receipt.get_feedback() == []
        assert self.receipt.is_submittable()

    def test_submit_creates_an_order(self):
        self.dispatch("consumers/select", 5)
        self.dispatch("products/select", 1)
        self.dispatch("products/select", 1)

        receipt = self.receipt.get_receipt()
        assert receipt == {
            "consumer": 5,
            "id": None,
            "items": [{"id": 1, "title": "Coffee", "price": 1.5, "quantity": 2}],
            "occasion": 1,
        }

        self.dispatch("receipt/submit")

        orders = self.store["orders"]
        created = orders.get_item_by_id(5)
        assert self.store.fsm.is_state(st.IDLE)
        assert created["consumer_name"] == "Jan"
        assert created["total_price"] == 3.0
        assert created["date"] == self.now
        assert orders.count() == 4
        assert self.receipt.state.all == []
        assert self.store["consumers"].get_active() is None
        assert "Order.CreatedOrder" in self.store.services.feedback.messages()

    def test_receipt_snapshot_is_a_copy(self):
        self.dispatch("consumers/select", 5)
        self.dispatch("products/select", 1)

        snapshot = self.receipt.get_receipt()
        snapshot["items"][0]["quantity"] = 10

        assert self.receipt.get_items()[0]["quantity"] == 1

    def test_cancel_discards_the_receipt(self):
        self.dispatch("consumers/select", 5)
        self.dispatch("products/select", 1)

        self.dispatch("receipt/cancel", {"close": True})

        assert self.store.fsm.is_state(st.IDLE)
        assert self.receipt.state.all == []
        assert not self.receipt.is_cancelable()

    def test_selecting_an_order_copies_its_lines(self):
        self.dispatch("orders/select", 2)

        assert self.store.fsm.is_state(st.VIEW_ORDER)
        assert self.receipt.get_items() == [{"id": 3, "title": "Tea", "price": 1.25, "quantity": 4}]
        assert self.store["consumers"].get_active()["id"] == 6

    def test_edit_and_save_an_order(self):
        self.dispatch("orders/select", 1)
        self.dispatch("orders/edit")
        assert self.store.fsm.is_state(st.EDIT_ORDER)

        self.dispatch("products/select", 3)
        self.dispatch("receipt/submit")

        order = self.store["orders"].get_item_by_id(1)
        assert self.store.fsm.is_state(st.VIEW_ORDER)
        assert order["total_quantity"] == 3
        assert order["total_price"] == 4.25
        assert [line["id"] for line in self.receipt.state.all] == [1, 3]
        assert "Order.UpdatedOrder" in self.store.services.feedback.messages()

    def test_cancelling_an_edit_restores_the_order(self):
        self.dispatch("orders/select", 1)
        self.dispatch("orders/edit")
        self.dispatch("products/select", 3)

        self.dispatch("receipt/cancel")

        assert self.store.fsm.is_state(st.VIEW_ORDER)
        assert self.store["orders"].get_item_by_id(1)["total_quantity"] == 2
        assert [line["id"] for line in self.receipt.state.all] == [1]
