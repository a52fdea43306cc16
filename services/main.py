# services/main.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional

from config.settings import Settings
from services.auth import AuthService
from services.delay import delay
from services.feedback_service import FeedbackService
from services.l10n import L10nService


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Services:
    """Collaborators handed to every store module."""
    l10n: L10nService = field(default_factory=L10nService)
    feedback: FeedbackService = field(default_factory=FeedbackService)
    auth: AuthService = field(default_factory=AuthService)
    delay: Callable[..., Awaitable[None]] = delay
    clock: Callable[[], datetime] = utc_now


def build_services(settings: Optional[Settings] = None, capabilities: Optional[Iterable[str]] = None,
                   clock: Optional[Callable[[], datetime]] = None) -> Services:
    settings = settings or Settings()
    return Services(
        l10n=L10nService(),
        feedback=FeedbackService(auto_remove_ms=settings.feedback_auto_remove_ms),
        auth=AuthService(capabilities),
        delay=delay,
        clock=clock or utc_now,
    )
