"""Notification sink implementations."""

from thread_sync.infra.notify.log_sink import LoggingNotificationSink

__all__ = [
    "LoggingNotificationSink",
]
