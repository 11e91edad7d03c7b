"""Public data models for thread_sync.

This module exports the wire models exchanged with the messaging API.
"""

from thread_sync.models.message import Message, MessageCreate, MessageDirection, MessageLog
from thread_sync.models.page import PageCursor
from thread_sync.models.thread import Thread, ThreadCreate

__all__ = [
    "Message",
    "MessageCreate",
    "MessageDirection",
    "MessageLog",
    "PageCursor",
    "Thread",
    "ThreadCreate",
]
