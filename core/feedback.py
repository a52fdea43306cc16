# core/feedback.py
"""
Feedback channel: an ordered list of user-facing messages.

Each store module owns one persistent channel (items keyed by their message,
duplicates refused); the global feedback service owns a non-persistent one.
Listeners are notified on `add`, `remove` and `clear`.
"""

import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from utils.logger import get_logger

EVENTS = ("add", "remove", "clear")


class FeedbackAction(BaseModel):
    """A follow-up affordance offered next to a message."""
    label: str
    callback: Callable[[], Any]


class FeedbackItem(BaseModel):
    id: Optional[str] = None
    is_error: bool = False
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    action: Optional[FeedbackAction] = None
    on_after_error: Optional[Callable[[], Any]] = None
    auto_remove: bool = False


ItemInput = Union[str, list, tuple, dict, FeedbackItem]


def to_feedback_item(item: ItemInput) -> FeedbackItem:
    """Accept a message, `[message, *args]`, a dict or an item."""
    if isinstance(item, FeedbackItem):
        return item.model_copy()
    if isinstance(item, str):
        return FeedbackItem(message=item, data={"args": []})
    if isinstance(item, (list, tuple)) and item and isinstance(item[0], str):
        return FeedbackItem(message=item[0], data={"args": list(item[1:])})
    if isinstance(item, dict):
        return FeedbackItem(**item)
    raise TypeError(f"Unsupported feedback item: {item!r}")


class Feedback:
    def __init__(self, name: str, persistent: bool = False, default_attributes: Optional[Callable[[], Dict[str, Any]]] = None):
        self.name = f"feedback-{name}"
        self.persistent = persistent
        self.default_attributes = default_attributes
        self._list: List[FeedbackItem] = []
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}
        self.logger = get_logger(f"core.{self.name}")

    def add(self, item: ItemInput, item_id: Optional[str] = None) -> Optional[int]:
        """Add an item and return its list index, or None when refused."""
        feedback_item = to_feedback_item(item)

        if item_id is None:
            item_id = feedback_item.id
        if item_id is None:
            item_id = feedback_item.message if self.persistent else uuid.uuid4().hex

        # Persistent lists keep a single item per id
        if self.persistent and self.exists(item_id):
            return None

        updates = {"id": str(item_id)}
        if self.default_attributes:
            for key, value in self.default_attributes().items():
                if key not in feedback_item.model_fields_set:
                    updates[key] = value
        feedback_item = feedback_item.model_copy(update=updates)

        self._list.append(feedback_item)
        self._trigger("add", feedback_item)
        return len(self._list) - 1

    def exists(self, item_id) -> bool:
        return any(item.id == str(item_id) for item in self._list)

    def get(self, item_id) -> Optional[FeedbackItem]:
        return next((item for item in self._list if item.id == str(item_id)), None)

    def get_list(self) -> List[FeedbackItem]:
        return self._list

    def remove(self, id_or_index: Union[str, int]) -> None:
        """Remove by id (str) or by list index (int). Unknown targets are ignored."""
        if isinstance(id_or_index, str):
            matches = [i for i, item in enumerate(self._list) if item.id == id_or_index]
        else:
            matches = [id_or_index] if 0 <= id_or_index < len(self._list) else []

        if not matches:
            return

        removed = self._list[matches[0]]
        self._list = [item for i, item in enumerate(self._list) if i not in matches]
        self._trigger("remove", removed)

    def clear(self) -> None:
        if not self._list:
            return
        previous = self._list
        self._list = []
        self._trigger("clear", previous)

    def count(self) -> int:
        return len(self._list)

    def error_count(self) -> int:
        return sum(1 for item in self._list if item.is_error)

    def has_errors(self) -> bool:
        return self.error_count() > 0

    def on(self, listeners: Union[Dict[str, Callable], List[str], str], callback: Optional[Callable] = None) -> Callable[[], None]:
        """
        Register listeners and return a function that removes them again.

        Accepts `{"add": fn, ...}`, or event name(s) plus a single callback.
        """
        if isinstance(listeners, dict):
            pairs = list(listeners.items())
        else:
            events = [listeners] if isinstance(listeners, str) else list(listeners)
            pairs = [(event, callback) for event in events]

        for event, fn in pairs:
            if event not in self._listeners:
                raise ValueError(f"Unknown feedback event: {event}")
            self._listeners[event].append(fn)

        def off() -> None:
            for event, fn in pairs:
                if fn in self._listeners[event]:
                    self._listeners[event].remove(fn)

        return off

    def _trigger(self, event: str, payload: Any) -> None:
        self.logger.debug(event, extra={"component": self.name, "event": event})
        for fn in list(self._listeners[event]):
            fn(payload)

    def __len__(self) -> int:
        return len(self._list)

    def __repr__(self) -> str:
        return f"Feedback({self.name}, {len(self._list)} items)"
