# store/consumers.py
"""
Consumers store module.

Lists consumers together with consumer types, tracks the active consumer for
the receipt, and aggregates spending over the orders of the active occasion.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from core.fsm_engine import after, before, enter
from core.list_module import (
    ListModule, ListState, action, getter, mutation, normalize_payload, payload_id, submittable_getter,
)
from core.sanitization import is_number, sanitize_price
from config.constants import GENERIC_INVALID_INPUT
from utils.logger import log_decision


@dataclass
class ConsumersState(ListState):
    types: List[Dict[str, Any]] = field(default_factory=list)


def validate_spending_limit(value, context):
    # No limit at all is allowed
    if value is None:
        return True
    if not is_number(value):
        return False
    if value < 0:
        return "Consumer.Error.SpendingLimitShouldBeZeroOrHigher"
    return True


def validate_show(value, context):
    return isinstance(value, bool)


class ConsumersModule(ListModule):
    name = "consumers"
    state_class = ConsumersState
    search_field = "name"
    sanitizers = {
        "spending_limit": sanitize_price,
        "show": bool,
    }
    validators = {
        "spending_limit": validate_spending_limit,
        "show": validate_show,
    }

    # ---------------------------------------------------------------- getters

    @getter
    def get_items(self) -> List[Dict[str, Any]]:
        return self.state.all + self.state.types

    @getter
    def get_consumers(self) -> List[Dict[str, Any]]:
        return self.state.all

    @getter
    def get_types(self) -> List[Dict[str, Any]]:
        return self.state.types

    @getter
    def is_editable(self) -> bool:
        return bool(self.state.active) and not self.state.active.get("is_consumer_type", False)

    is_submittable = submittable_getter([st.EDIT_CONSUMER])

    def _orders_of(self, consumer: Any = None) -> List[Dict[str, Any]]:
        return self.ports["orders"].get_items_by_consumer(consumer)

    @getter
    def get_order_count(self, consumer: Any = None) -> int:
        return len(self._orders_of(consumer))

    @getter
    def get_total_product_quantity(self, consumer: Any = None) -> int:
        return sum(order["total_quantity"] for order in self._orders_of(consumer))

    @getter
    def get_total_consumed_value(self, consumer: Any = None) -> float:
        return sum(order["total_price"] for order in self._orders_of(consumer))

    @getter
    def is_within_spending_limit(self, consumer: Any = None, next_order_value: float = 0) -> bool:
        """
        Whether the consumer's spending stays within its limit.

        `consumer` is a consumer dict or id and defaults to the active consumer.
        A missing or zero limit means no limit.
        """
        if isinstance(consumer, dict) and consumer.get("id") is not None:
            subject = consumer
        elif consumer is not None:
            subject = self.get_item_by_id(consumer)
        else:
            subject = self.state.active

        if not subject or not subject.get("spending_limit"):
            return True
        spent = self.get_total_consumed_value(subject)
        return spent + float(next_order_value or 0) <= subject["spending_limit"]

    # -------------------------------------------------------------- mutations

    def _find_active_candidate(self, item_id: Any) -> Optional[Dict[str, Any]]:
        return next((i for i in self.state.all + self.state.types if i.get("id") == item_id), None)

    @mutation
    def set_types(self, types) -> None:
        self.state.types = list(types)

    @mutation
    def toggle_show(self, payload: Any) -> None:
        consumer_id = payload_id(payload)
        self.state.all = [{**i, "show": not i.get("show", True)} if i.get("id") == consumer_id else i for i in self.state.all]

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        # Committed before the transition so that after observers see the new consumer
        self.observe(before(tr.SELECT_CONSUMER), lambda lifecycle, payload: self.set_active(payload))
        self.observe(before(tr.SAVE_CONSUMER), self._save)
        self.observe_edit_cancel(st.EDIT_CONSUMER)
        self.observe(enter(st.SETTINGS), self._leave_context)
        self.observe(enter(st.IDLE), self._enter_idle)
        self.observe([after(tr.SELECT_ORDER), enter(st.VIEW_ORDER)], self._select_order_consumer)

    async def _save(self, lifecycle, payload):
        if self.validate_into_feedback(payload):
            raise TransitionRejection(GENERIC_INVALID_INPUT)
        resp = await self.api.consumers.update(payload)
        log_decision(self.logger, self.name, "consumer.updated", "saved edits", {"id": resp["id"]})
        self.services.feedback.add(["Consumer.UpdatedConsumer", resp["name"]])
        await self.set_active_item_in_list(resp)

    def _leave_context(self, lifecycle, payload):
        self.clear_active()
        self.clear_feedback()

    def _enter_idle(self, lifecycle, payload):
        # Closing an order keeps its consumer selected
        if lifecycle.from_state == st.VIEW_ORDER and payload is not None and self.state.active:
            order = self.ports["orders"].get_item_by_id(payload_id(payload))
            if order and order["consumer"]["id"] == self.state.active.get("id"):
                return
        self.clear_active()

    def _select_order_consumer(self, lifecycle, payload):
        order = self.ports["orders"].get_active()
        if order:
            self.set_active({"id": order["consumer"], "name": order.get("consumer_data", {}).get("name", "")})

    @action
    async def load(self, payload: Any = None) -> None:
        types, consumers = await asyncio.gather(
            self.api.consumer_types.get(None, self.set_types),
            self.api.consumers.get(None, self.set_list_items),
        )
        self.set_types(types)
        self.set_list_items(consumers)
        log_decision(self.logger, self.name, "consumers.loaded", "catalog loaded", {"consumers": len(consumers), "types": len(types)})

    @action
    async def select(self, payload: Any):
        if self.fsm.is_state([st.IDLE, st.RECEIPT, st.EDIT_ORDER]):
            # Open the receipt first when starting from idle
            if self.fsm.is_state(st.IDLE):
                await self.fsm.do(tr.START_RECEIPT)
        return await self.fsm.do(tr.SELECT_CONSUMER, normalize_payload(payload))

    @action
    async def edit(self):
        return await self.fsm.do(tr.EDIT_ITEM)

    @action
    async def patch(self, payload: Dict[str, Any]) -> None:
        self.patch_active(payload)

    @action
    async def update(self):
        return await self.fsm.do(tr.SAVE_CONSUMER, self.state.active)

    @action
    async def cancel(self):
        return await self.fsm.do([tr.CANCEL_EDIT, tr.CLOSE_ITEM, tr.CANCEL_RECEIPT])

    @action
    async def close(self):
        return await self.fsm.do(tr.CLOSE_ITEM)
