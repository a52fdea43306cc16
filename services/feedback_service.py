# services/feedback_service.py
"""
Global feedback surface: messages published for the user, across modules.

Items are removed again after `auto_remove_ms` when that is set and a running
event loop is available to schedule the removal on.
"""

import asyncio
from typing import Callable, Optional, Set

from core.feedback import Feedback, ItemInput
from services.delay import delay as default_delay


class FeedbackService:
    def __init__(self, auto_remove_ms: int = 0, delay: Callable = default_delay):
        self.auto_remove_ms = auto_remove_ms
        self.delay = delay
        self.channel = Feedback("global", default_attributes=lambda: {"auto_remove": self.auto_remove_ms > 0})
        self._tasks: Set[asyncio.Task] = set()

    def add(self, item: ItemInput, item_id: Optional[str] = None) -> Optional[int]:
        index = self.channel.add(item, item_id=item_id)
        if index is None:
            return None

        added = self.channel.get_list()[index]
        if added.auto_remove:
            self._schedule_removal(added.id)
        return index

    def _schedule_removal(self, item_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on: the item stays until removed explicitly
            return
        task = loop.create_task(self._remove_later(item_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _remove_later(self, item_id: str) -> None:
        await self.delay(self.auto_remove_ms)
        self.channel.remove(item_id)

    def remove(self, id_or_index) -> None:
        self.channel.remove(id_or_index)

    def clear(self) -> None:
        self.channel.clear()

    def count(self) -> int:
        return self.channel.count()

    def error_count(self) -> int:
        return self.channel.error_count()

    def exists(self, item_id) -> bool:
        return self.channel.exists(item_id)

    def has_errors(self) -> bool:
        return self.channel.has_errors()

    def get_list(self):
        return self.channel.get_list()

    def on(self, listeners, callback: Optional[Callable] = None) -> Callable[[], None]:
        return self.channel.on(listeners, callback)

    def messages(self):
        return [item.message for item in self.channel.get_list()]
