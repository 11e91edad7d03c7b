"""Service layer for thread_sync.

This module exports the polling manager and the synchronization controller.
"""

from thread_sync.services.polling import FetchCallback, PollingManager, PollingState
from thread_sync.services.sync import SendResult, SyncSnapshot, ThreadSyncController

__all__ = [
    "FetchCallback",
    "PollingManager",
    "PollingState",
    "SendResult",
    "SyncSnapshot",
    "ThreadSyncController",
]
