"""Notification sink interface for thread_sync."""

from typing import Protocol, runtime_checkable

__all__ = [
    "NotificationSink",
]


@runtime_checkable
class NotificationSink(Protocol):
    """Side channel for user-facing error notifications.

    The synchronization core calls ``show_error`` once per failed fetch
    or send. It never raises transport failures to its callers.
    """

    def show_error(self, message: str) -> None:
        """Display an error message to the user."""
        ...
