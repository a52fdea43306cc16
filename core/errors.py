# core/errors.py
"""
Exceptions raised across the FSM boundary.

A rejected transition is a raised exception: observers raise
`TransitionRejection` (or any exception) to veto, and the coroutine returned
by `FSMEngine.do` re-raises it unchanged to the caller.
"""

from typing import Any, Callable, Dict, Optional

from core.feedback import FeedbackAction, FeedbackItem


class TransitionRejection(Exception):
    def __init__(
        self,
        reason: Optional[str] = None,
        *,
        is_error: bool = True,
        action: Optional[FeedbackAction] = None,
        on_after_error: Optional[Callable[[], Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.is_error = is_error
        self.action = action
        self.on_after_error = on_after_error
        self.data = data or {}

    def to_feedback_item(self) -> FeedbackItem:
        return FeedbackItem(
            is_error=self.is_error,
            message=self.reason or "",
            data=self.data,
            action=self.action,
            on_after_error=self.on_after_error,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r})"


class TransitionPendingError(TransitionRejection):
    """Raised when a transition is requested while another one is still running."""


class InvalidTransitionError(ValueError):
    """Raised when none of the requested transitions is legal from the current state."""
