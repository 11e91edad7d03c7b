"""Interface contracts for thread_sync.

This module exports all Protocol-based interfaces for dependency injection.
"""

from thread_sync.interfaces.notifier import NotificationSink
from thread_sync.interfaces.transport import MessageTransportInterface

__all__ = [
    "MessageTransportInterface",
    "NotificationSink",
]
