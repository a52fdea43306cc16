# store/occasions.py
"""
Occasions store module.

The active occasion scopes the order list: getting an occasion loads its
orders, creating one starts with an empty order list. Close, reopen, edit and
delete act on the active occasion.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from config.constants import GENERIC_INVALID_INPUT
from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from core.fsm_engine import before, enter
from core.list_module import ListModule, action, getter, normalize_payload, submittable_getter
from services.api import ApiError
from utils.logger import log_decision

NO_OCCASION = "Occasion.Error.NoOccasion"


def sanitize_occasion_date(value: Any) -> Any:
    """Parse ISO dates, leaving anything unparseable for the validator to flag."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


def validate_title(value, context):
    if not value:
        return "Occasion.Error.TitleIsEmpty"
    return True


def validate_occasion_date(value, context):
    if not isinstance(value, date):
        return "Occasion.Error.InvalidOccasionDate"
    return True


class OccasionsModule(ListModule):
    name = "occasions"
    sanitizers = {
        "title": lambda value: str(value or "").strip(),
        "occasion_date": sanitize_occasion_date,
        "occasion_type": lambda value: str(value).strip() if value not in (None, "") else None,
    }

    def __init__(self, fsm, api=None, services=None, settings=None):
        self.validators = {
            "title": validate_title,
            "occasion_date": validate_occasion_date,
            "occasion_type": self._validate_occasion_type,
        }
        super().__init__(fsm, api, services, settings)

    def _validate_occasion_type(self, value, context):
        types = self.settings.occasion_types if self.settings else {}
        if not types:
            return True
        if not value:
            return "Occasion.Error.NoOccasionType"
        if value not in types:
            return "Occasion.Error.UnavailableOccasionType"
        return True

    # ---------------------------------------------------------------- getters

    def _has_orders(self) -> bool:
        return self.ports["orders"].count() > 0

    @getter
    def get_title(self) -> Optional[str]:
        return self.state.active.get("title") if self.state.active else None

    @getter
    def is_closed(self) -> bool:
        return bool(self.state.active) and bool(self.state.active.get("closed"))

    @getter
    def is_editable(self) -> bool:
        return bool(self.state.active)

    is_submittable = submittable_getter([st.EDIT_OCCASION])

    @getter
    def is_deletable(self) -> bool:
        return bool(self.state.active) and not self.state.active.get("closed") and not self._has_orders()

    @getter
    def is_closable(self) -> bool:
        return bool(self.state.active) and not self.state.active.get("closed") and self._has_orders()

    @getter
    def is_reopenable(self) -> bool:
        return bool(self.state.active) and bool(self.state.active.get("closed"))

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        self.fsm.filter(tr.CLOSE_LOGIN, self._login_destination, owner=self.name)
        self.observe(before(tr.GET_OCCASION), self._get)
        self.observe(before(tr.EDIT_ITEM), self._require_occasion)
        self.observe(before(tr.SAVE_OCCASION), self._save)
        self.observe(before(tr.DELETE_OCCASION), self._trash)
        self.observe(before(tr.CLOSE_OCCASION), self._close)
        self.observe(before(tr.REOPEN_OCCASION), self._reopen)
        self.observe_edit_cancel(st.EDIT_OCCASION, transitions=(tr.CANCEL_EDIT,))
        self.observe(enter(st.OCCASIONS), lambda lifecycle, payload: self.clear_feedback())

    def _login_destination(self, to, lifecycle):
        # Skip the occasion picker when an occasion is already active
        return st.IDLE if self.state.active else to

    async def _get(self, lifecycle, payload):
        payload = normalize_payload(payload) or {}
        if payload.get("id"):
            await self._load_occasion({"id": payload["id"]})
        else:
            await self._create_occasion(payload)

    async def _create_occasion(self, payload: Dict[str, Any]) -> None:
        resp = await self.api.occasions.create(payload)
        self.services.feedback.add(["Occasion.CreatedOccasion", resp["title"]])
        self.add_item_to_list(resp)
        # A new occasion has no orders yet
        await self._load_occasion({"id": resp["id"], "items": []})

    async def _load_occasion(self, payload: Dict[str, Any]) -> None:
        try:
            await asyncio.gather(
                self.ports["orders"].load(payload),
                self.services.delay(self.settings.min_load_duration_ms if self.settings else 0),
            )
        except Exception as error:
            log_decision(self.logger, self.name, "occasion.load_failed", repr(error), {"id": payload.get("id")},
                         level=logging.WARNING)
            raise
        self.set_active({"id": payload["id"]})
        self.services.feedback.add(["Occasion.LoadedOccasion", self.get_title() or ""])
        log_decision(self.logger, self.name, "occasion.loaded", "orders loaded", {"id": payload["id"]})

    def _require_occasion(self, lifecycle, payload):
        if lifecycle.from_state == st.VIEW_OCCASION and not self.state.active:
            raise TransitionRejection(NO_OCCASION)

    async def _save(self, lifecycle, payload):
        if not self.state.active:
            raise TransitionRejection(NO_OCCASION)
        payload = {**(normalize_payload(payload) or self.state.active), "id": self.state.active["id"]}
        if self.validate_into_feedback(payload):
            raise TransitionRejection(GENERIC_INVALID_INPUT)
        resp = await self.api.occasions.update(payload)
        self.services.feedback.add(["Occasion.UpdatedOccasion", resp["title"]])
        await self.set_active_item_in_list(resp)

    async def _trash(self, lifecycle, payload):
        try:
            resp = await self.api.occasions.trash(payload)
        except ApiError as error:
            error.on_after_error = self.cancel
            raise
        self.services.feedback.add(["Occasion.DeletedOccasion", (payload or {}).get("title", "")])
        await self.remove_active_item_from_list(resp)

    async def _close(self, lifecycle, payload):
        if not payload:
            raise TransitionRejection(NO_OCCASION)
        resp = await self.api.occasions.close(payload)
        self.services.feedback.add(["Occasion.ClosedOccasion", resp["title"]])
        await self.set_active_item_in_list(resp)

    async def _reopen(self, lifecycle, payload):
        if not payload:
            raise TransitionRejection(NO_OCCASION)
        resp = await self.api.occasions.reopen(payload)
        self.services.feedback.add(["Occasion.ReopenedOccasion", resp["title"]])
        await self.set_active_item_in_list(resp)

    @action
    async def load(self, payload: Any = None) -> None:
        occasions = await self.api.occasions.get(None, self.set_list_items)
        self.set_list_items(occasions)
        log_decision(self.logger, self.name, "occasions.loaded", "catalog loaded", {"count": len(occasions)})

    @action
    async def start(self, payload: Any = None):
        if (isinstance(payload, dict) and payload.get("start")) or not self.state.active:
            return await self.fsm.do(tr.START_OCCASION)
        return await self.fsm.do(tr.SELECT_OCCASION)

    @action
    async def get(self, payload: Any = None):
        """Load the occasion with the payload's id, or create one from the payload."""
        return await self.fsm.do(tr.GET_OCCASION, normalize_payload(payload) or {})

    @action
    async def edit(self):
        return await self.fsm.do(tr.EDIT_ITEM)

    @action
    async def patch(self, payload: Dict[str, Any]) -> None:
        self.patch_active(payload)

    @action
    async def update(self, payload: Optional[Dict[str, Any]] = None):
        return await self.fsm.do(tr.SAVE_OCCASION, payload if payload is not None else self.state.active)

    @action
    async def maybe_delete(self):
        return await self.fsm.do(tr.DELETE_ITEM, self.state.active)

    @action
    async def delete(self):
        return await self.fsm.do(tr.DELETE_OCCASION, self.state.active)

    @action
    async def close(self):
        return await self.fsm.do(tr.CLOSE_OCCASION, self.state.active)

    @action
    async def reopen(self):
        return await self.fsm.do(tr.REOPEN_OCCASION, self.state.active)

    @action
    async def cancel(self, payload: Any = None):
        if isinstance(payload, dict) and payload.get("close"):
            return await self.fsm.do([tr.CLOSE_ITEM, tr.CANCEL_OCCASION])
        return await self.fsm.do([tr.CANCEL_DELETE, tr.CANCEL_EDIT, tr.START_OCCASION])

