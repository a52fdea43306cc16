# store/orders.py
"""
Orders store module: the orders of the active occasion.

Raw order records reference their consumer by id; `get_items` joins them with
the consumers and products catalogs and adds per-order totals.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from core.fsm_engine import before, enter
from core.list_module import ListModule, action, getter, normalize_payload, payload_id
from utils.logger import log_decision


def _as_utc(value: Any) -> Optional[datetime]:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        return None
    # Naive dates are stored in UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class OrdersModule(ListModule):
    name = "orders"
    search_field = "consumer_name"

    # ---------------------------------------------------------------- getters

    def _decorate(self, order: Dict[str, Any]) -> Dict[str, Any]:
        consumers = self.ports.get("consumers")
        products = self.ports.get("products")

        consumer = consumers.get_item_by_id(order["consumer"]) if consumers else None
        if consumer is None:
            consumer = {
                "id": order["consumer"],
                "name": self.services.l10n.get("Consumer.UnknownName"),
                **{k: v for k, v in (order.get("consumer_data") or {}).items() if v not in (None, "")},
            }

        lines = []
        for line in order.get("items", []):
            product = products.get_item_by_id(line["id"]) if products else None
            lines.append({**line, "title": line.get("title") or (product or {}).get("title", "")})

        return {
            "id": order["id"],
            "date": order.get("date"),
            "occasion": order.get("occasion"),
            "consumer": consumer,
            "consumer_name": consumer.get("name", ""),
            "items": lines,
            "total_quantity": sum(line["quantity"] for line in lines),
            "total_price": sum(line["price"] * line["quantity"] for line in lines),
        }

    @getter
    def get_items(self) -> List[Dict[str, Any]]:
        return [self._decorate(order) for order in self.state.all]

    @getter
    def get_new_item(self) -> Dict[str, Any]:
        return {"consumer": {"id": 0}, "items": []}

    @getter
    def count(self) -> int:
        return len(self.state.all)

    @getter
    def get_items_by_consumer(self, consumer: Any = None) -> List[Dict[str, Any]]:
        """Orders of `consumer` (dict or id), defaulting to the active consumer."""
        if not consumer and self.ports.get("consumers"):
            consumer = self.ports["consumers"].get_active()
        consumer_id = payload_id(consumer)
        if consumer_id is None:
            return []
        return [order for order in self.get_items() if order["consumer"]["id"] == consumer_id]

    @getter
    def get_total_price(self) -> float:
        return sum(order["total_price"] for order in self.get_items())

    @getter
    def get_total_quantity(self) -> int:
        return sum(order["total_quantity"] for order in self.get_items())

    @getter
    def is_item_locked(self, order: Any) -> bool:
        """Whether the order's edit window (settings.order_time_lock minutes) has passed."""
        lock_minutes = self.settings.order_time_lock if self.settings else 0
        if not order or not lock_minutes:
            return False
        if not isinstance(order, dict) or "date" not in order:
            order = next((i for i in self.state.all if i.get("id") == payload_id(order)), None)
            if order is None:
                return False
        ordered_at = _as_utc(order.get("date"))
        if ordered_at is None:
            return False
        return self.services.clock() > ordered_at + timedelta(minutes=lock_minutes)

    @getter
    def is_active_item_locked(self) -> bool:
        return bool(self.state.active) and self.is_item_locked(self.state.active)

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        self.observe(before(tr.SELECT_ORDER), lambda lifecycle, payload: self.set_active(payload))
        self.observe(before(tr.EDIT_ITEM), self._guard_edit)
        self.observe(before(tr.SAVE_ORDER), self._save)
        self.observe(before(tr.SUBMIT_RECEIPT), self._submit)
        self.observe_edit_cancel(st.EDIT_ORDER, clear_feedback=False)
        self.observe(enter(st.IDLE), lambda lifecycle, payload: self.clear_active())

    def _guard_edit(self, lifecycle, payload):
        if lifecycle.to_state != st.EDIT_ORDER:
            return
        occasions = self.ports.get("occasions")
        if occasions and occasions.is_closed():
            raise TransitionRejection("Order.Error.OccasionClosedEditing")
        if self.is_active_item_locked():
            raise TransitionRejection("Order.Error.TimeLocked")

    async def _save(self, lifecycle, payload):
        resp = await self.api.orders.update(payload)
        self.services.feedback.add(["Order.UpdatedOrder", resp["consumer_data"]["name"]])
        await self.set_active_item_in_list(resp)
        log_decision(self.logger, self.name, "order.updated", "receipt saved onto order", {"id": resp["id"]})

    async def _submit(self, lifecycle, payload):
        resp = await self.api.orders.create(payload)
        self.services.feedback.add(["Order.CreatedOrder", resp["consumer_data"]["name"]])
        self.add_item_to_list(resp)
        log_decision(self.logger, self.name, "order.created", "receipt submitted", {"id": resp["id"]})

    @action
    async def load(self, payload: Any = None) -> None:
        """Load the orders of an occasion, or take them from `payload["items"]`."""
        payload = normalize_payload(payload) or {}
        if "items" in payload:
            items = payload["items"]
        else:
            occasion_id = payload.get("occasion", payload.get("id"))
            items = await self.api.orders.get({"occasion": occasion_id}, self.set_list_items)
        self.set_list_items(items)
        log_decision(self.logger, self.name, "orders.loaded", "occasion orders loaded", {"count": len(items)})

    @action
    async def select(self, payload: Any):
        return await self.fsm.do(tr.SELECT_ORDER, normalize_payload(payload))

    @action
    async def edit(self):
        return await self.fsm.do(tr.EDIT_ITEM)

    @action
    async def cancel(self):
        return await self.fsm.do(tr.CLOSE_ITEM, payload_id(self.state.active))
