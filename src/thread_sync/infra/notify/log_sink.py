"""Logging notification sink for thread_sync.

Used when no user-facing sink is wired in, e.g. in scripts and workers.
"""

from thread_sync.interfaces.notifier import NotificationSink
from thread_sync.logging import get_logger

__all__ = [
    "LoggingNotificationSink",
]

logger = get_logger(__name__)


class LoggingNotificationSink(NotificationSink):
    """Writes notifications to the structured log and keeps the last few."""

    def __init__(self, history: int = 20) -> None:
        self._history = history
        self._recent: list[str] = []

    @property
    def recent(self) -> list[str]:
        """Most recent notifications, oldest first."""
        return list(self._recent)

    def show_error(self, message: str) -> None:
        logger.error("user_notification", message=message)
        self._recent.append(message)
        del self._recent[: -self._history]
