# store/receipt.py
"""
Receipt store module: the order being composed or edited.

The receipt is not persisted on its own. Its lines are product ids with a
quantity; submitting turns it into a new order, or saves it onto the order
being edited.
"""

import copy
from typing import Any, Dict, List

from config.constants import SPENDING_LIMIT_FEEDBACK_ID
from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from core.feedback import FeedbackAction
from core.fsm_engine import BEFORE_ANY_TRANSITION, after, enter
from core.list_module import ListModule, action, getter, mutation, normalize_payload, payload_id


class ReceiptModule(ListModule):
    name = "receipt"

    # ---------------------------------------------------------------- getters

    @getter
    def get_items(self) -> List[Dict[str, Any]]:
        items = []
        for line in self.state.all:
            product = self.ports["products"].get_item_by_id(line["id"]) or {}
            merged = {**line, **{k: v for k, v in product.items() if v is not None}}
            items.append({
                "id": line["id"],
                "title": merged.get("title", ""),
                "price": merged.get("price", 0),
                "quantity": line["quantity"],
            })
        return items

    @getter
    def get_total_price(self) -> float:
        return sum(item["price"] * item["quantity"] for item in self.get_items())

    @getter
    def get_total_quantity(self) -> int:
        return sum(item["quantity"] for item in self.get_items())

    @getter
    def get_receipt(self) -> Dict[str, Any]:
        """Snapshot of the receipt as an order payload."""
        return copy.deepcopy({
            "consumer": payload_id(self.ports["consumers"].get_active()),
            "id": payload_id(self.ports["orders"].get_active()),
            "items": self.get_items(),
            "occasion": payload_id(self.ports["occasions"].get_active()),
        })

    @getter
    def is_editable(self) -> bool:
        occasions = self.ports["occasions"]
        return (
            bool(self.state.all)
            and bool(self.ports["consumers"].get_active())
            and bool(occasions.get_active())
            and not occasions.is_closed()
            and not self.ports["orders"].is_active_item_locked()
            and not self.feedback.has_errors()
        )

    @getter
    def is_submittable(self) -> bool:
        return (
            bool(self.state.all)
            and bool(self.ports["consumers"].get_active())
            and bool(self.ports["occasions"].get_active())
            and not self.feedback.has_errors()
        )

    @getter
    def is_cancelable(self) -> bool:
        return bool(self.state.all) or bool(self.ports["consumers"].get_active())

    # -------------------------------------------------------------- mutations

    def _set_quantity(self, item_id: Any, quantity: int) -> None:
        # Lines go away only at exactly zero, negative quantities are kept
        if quantity == 0:
            self.state.all = [line for line in self.state.all if line["id"] != item_id]
        else:
            self.state.all = [{**line, "quantity": quantity} if line["id"] == item_id else line for line in self.state.all]

    @mutation
    def increment_item(self, payload: Any) -> None:
        payload = normalize_payload(payload)
        quantity = payload.get("quantity") or 1
        line = next((i for i in self.state.all if i["id"] == payload["id"]), None)
        if line is None:
            self.state.all = self.state.all + [{"id": payload["id"], "quantity": quantity}]
        else:
            self._set_quantity(payload["id"], line["quantity"] + quantity)

    @mutation
    def decrement_item(self, payload: Any) -> None:
        payload = normalize_payload(payload)
        quantity = payload.get("quantity") or 1
        line = next((i for i in self.state.all if i["id"] == payload["id"]), None)
        if line is None:
            self.state.all = self.state.all + [{"id": payload["id"], "quantity": -abs(quantity)}]
        else:
            self._set_quantity(payload["id"], line["quantity"] - quantity)

    @mutation
    def reset_feedback(self) -> None:
        """Flag the receipt when it would take the consumer over their spending limit."""
        if not self.ports["consumers"].is_within_spending_limit(None, self.get_total_price()):
            self.feedback.add(
                {"is_error": True, "message": "Consumer.Error.SpendingLimitReached"},
                item_id=SPENDING_LIMIT_FEEDBACK_ID,
            )
        else:
            self.feedback.remove(SPENDING_LIMIT_FEEDBACK_ID)
        self.state.feedback = list(self.feedback.get_list())

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        self.observe(BEFORE_ANY_TRANSITION, self._guard_receipt)
        self.observe([after(tr.SELECT_ORDER), enter(st.VIEW_ORDER)], self._copy_order_lines)
        self.observe(after(tr.SELECT_CONSUMER), lambda lifecycle, payload: self.reset_feedback())
        self.observe(after(tr.INCREMENT_PRODUCT), self._increment)
        self.observe(after(tr.DECREMENT_PRODUCT), self._decrement)
        self.observe(enter(st.IDLE), self._reset)

    def _guard_receipt(self, lifecycle, payload):
        if st.RECEIPT not in (lifecycle.from_state, lifecycle.to_state):
            return
        occasions = self.ports["occasions"]
        if not occasions.get_active():
            raise TransitionRejection(
                "Occasion.Error.NoOccasion",
                action=FeedbackAction(label="Occasion.OpenOccasion", callback=lambda: self.fsm.do(tr.START_OCCASION)),
            )
        if occasions.is_closed():
            raise TransitionRejection("Order.Error.OccasionClosed")

    def _copy_order_lines(self, lifecycle, payload):
        order = self.ports["orders"].get_active()
        if order:
            self.set_list_items(copy.deepcopy(order.get("items", [])))

    def _increment(self, lifecycle, payload):
        self.increment_item(payload)
        self.reset_feedback()

    def _decrement(self, lifecycle, payload):
        self.decrement_item(payload)
        self.reset_feedback()

    def _reset(self, lifecycle, payload):
        self.clear_list()
        self.clear_feedback()

    @action
    async def start(self):
        return await self.fsm.do(tr.START_RECEIPT)

    @action
    async def toggle_settings(self):
        return await self.fsm.do(tr.TOGGLE_SETTINGS)

    @action
    async def submit(self):
        return await self.fsm.do([tr.SAVE_ORDER, tr.SUBMIT_RECEIPT], self.get_receipt())

    @action
    async def cancel(self, payload: Any = None):
        if isinstance(payload, dict) and payload.get("close"):
            return await self.fsm.do([tr.CLOSE_ITEM, tr.CANCEL_RECEIPT])
        return await self.fsm.do([tr.CANCEL_EDIT, tr.CLOSE_ITEM, tr.CANCEL_RECEIPT])
