# tests/test_feedback.py
"""
Test cases for the feedback channel and the global feedback service.
"""

import asyncio

import pytest

from core.feedback import Feedback, FeedbackItem
from services.feedback_service import FeedbackService
from services.l10n import L10nService


class TestFeedback:
    """Test cases for the Feedback channel."""

    def setup_method(self):
        self.feedback = Feedback("test")
        self.persistent = Feedback("test", persistent=True)

    def test_add_returns_index(self):
        assert self.feedback.add("First") == 0
        assert self.feedback.add("Second") == 1
        assert [item.message for item in self.feedback.get_list()] == ["First", "Second"]

    def test_message_with_arguments(self):
        self.feedback.add(["Product.CreatedNewProduct", "Coffee"])

        item = self.feedback.get_list()[0]
        assert item.message == "Product.CreatedNewProduct"
        assert item.data == {"args": ["Coffee"]}
        assert item.is_error is False

    def test_persistent_list_refuses_duplicates(self):
        assert self.persistent.add("Same") == 0
        assert self.persistent.add("Same") is None
        assert self.persistent.count() == 1
        assert self.persistent.exists("Same")

    def test_remove_by_id_and_by_index(self):
        for name in ("a", "b", "c"):
            self.feedback.add({"message": name}, item_id=name)

        self.feedback.remove("b")
        assert [item.id for item in self.feedback.get_list()] == ["a", "c"]

        self.feedback.remove(0)
        assert [item.id for item in self.feedback.get_list()] == ["c"]

        # Unknown targets are ignored
        self.feedback.remove("missing")
        self.feedback.remove(7)
        assert self.feedback.count() == 1

    def test_error_counts(self):
        self.feedback.add({"message": "Broken", "is_error": True})
        self.feedback.add("Informational")

        assert self.feedback.error_count() == 1
        assert self.feedback.has_errors()

    def test_clear_is_idempotent(self):
        cleared = []
        self.persistent.on("clear", lambda items: cleared.append(len(items)))
        self.persistent.add("one")

        self.persistent.clear()
        self.persistent.clear()

        assert self.persistent.get_list() == []
        assert cleared == [1]

    def test_listeners_can_be_removed(self):
        added, removed = [], []
        off = self.feedback.on({"add": added.append, "remove": removed.append})

        self.feedback.add("one", item_id="one")
        self.feedback.remove("one")
        off()
        self.feedback.add("two")

        assert [item.message for item in added] == ["one"]
        assert [item.message for item in removed] == ["one"]

    def test_unknown_event_is_rejected(self):
        with pytest.raises(ValueError):
            self.feedback.on("changed", print)

    def test_items_are_copied_on_add(self):
        item = FeedbackItem(message="Shared")
        self.feedback.add(item, item_id="shared")

        assert self.feedback.get_list()[0] is not item
        assert item.id is None


class TestFeedbackService:
    """Test cases for the global feedback surface."""

    def test_items_stay_without_auto_remove(self):
        service = FeedbackService()
        service.add("Saved")

        assert service.count() == 1
        assert service.get_list()[0].auto_remove is False

    def test_items_are_removed_after_the_delay(self):
        async def scenario():
            service = FeedbackService(auto_remove_ms=1)
            service.add("Saved")
            assert service.count() == 1
            await asyncio.sleep(0.05)
            return service.count()

        assert asyncio.run(scenario()) == 0

    def test_render_uses_arguments(self):
        service = FeedbackService()
        service.add(["Product.CreatedNewProduct", "Coffee"])

        assert L10nService().render(service.get_list()[0]) == "Created product Coffee."


def test_l10n_falls_back_to_the_key():
    l10n = L10nService()
    assert l10n.get("Some.Unknown.Key") == "Some.Unknown.Key"
    assert l10n.get("Consumer.UnknownName") == "Unknown consumer"
