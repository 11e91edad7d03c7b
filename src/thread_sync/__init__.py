"""thread_sync - Message synchronization core for AI-agent workflow threads.

This package provides tools for:
- Talking to the workflow messaging API (threads, paginated messages, sends)
- Keeping one thread's messages current with backward pagination
- Bounded background polling for replies after a message is sent
- Stale-response protection when the active thread changes mid-request

Example usage:
    from thread_sync import HttpMessageTransport, ThreadSyncController, ThreadSyncConfig

    config = ThreadSyncConfig()
    async with HttpMessageTransport(config.transport) as transport:
        async with ThreadSyncController.from_config(transport, config) as sync:
            await sync.load_initial(thread_id)
            await sync.load_older()
            result = await sync.send_message("Status update, please")
            for message in sync.sorted_for_display():
                print(message.created_at, message.content)
"""

__version__ = "0.1.0"

from thread_sync.config import PollingSettings, ThreadSyncConfig, TransportSettings
from thread_sync.errors import ErrorDetails, TransportError, describe_error
from thread_sync.infra.http.client import HttpMessageTransport
from thread_sync.infra.notify.log_sink import LoggingNotificationSink
from thread_sync.interfaces.notifier import NotificationSink
from thread_sync.interfaces.transport import MessageTransportInterface
from thread_sync.models.message import Message, MessageCreate, MessageDirection, MessageLog
from thread_sync.models.thread import Thread, ThreadCreate
from thread_sync.services.polling import PollingManager, PollingState
from thread_sync.services.sync import SendResult, SyncSnapshot, ThreadSyncController

__all__ = [  # noqa: RUF022
    # Core
    "ThreadSyncController",
    "PollingManager",
    "PollingState",
    "SendResult",
    "SyncSnapshot",
    # Implementations
    "HttpMessageTransport",
    "LoggingNotificationSink",
    # Interfaces
    "MessageTransportInterface",
    "NotificationSink",
    # Models
    "Message",
    "MessageCreate",
    "MessageDirection",
    "MessageLog",
    "Thread",
    "ThreadCreate",
    # Config and errors
    "ThreadSyncConfig",
    "TransportSettings",
    "PollingSettings",
    "TransportError",
    "ErrorDetails",
    "describe_error",
]
