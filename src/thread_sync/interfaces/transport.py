"""Message transport interface for thread_sync.

This module defines the Protocol for the messaging API. Implementations
are stateless request/response wrappers: no caching, no retries.
"""

from typing import Protocol, runtime_checkable

from thread_sync.models.message import Message, MessageCreate
from thread_sync.models.thread import Thread, ThreadCreate

__all__ = [
    "MessageTransportInterface",
]


@runtime_checkable
class MessageTransportInterface(Protocol):
    """Contract for messaging API access.

    Every method raises TransportError on failure, with the underlying
    exception attached as ``cause``. Retrying is the caller's decision.
    """

    async def list_threads(self, workflow_id: str) -> list[Thread]:
        """List threads belonging to a workflow.

        Args:
            workflow_id: Workflow instance ID

        Returns:
            Threads as returned by the server
        """
        ...

    async def list_messages(self, thread_id: str, page: int, page_size: int) -> list[Message]:
        """Fetch one page of a thread's messages, newest page first.

        Args:
            thread_id: Thread ID
            page: 1-based page number
            page_size: Messages per page

        Returns:
            At most ``page_size`` messages
        """
        ...

    async def send_message(self, thread_id: str, payload: MessageCreate) -> Message:
        """Post a message to a thread.

        Args:
            thread_id: Target thread ID
            payload: Message content and routing

        Returns:
            The created message
        """
        ...

    async def create_thread(self, workflow_id: str, payload: ThreadCreate) -> Thread:
        """Start a new thread on a workflow.

        Args:
            workflow_id: Workflow instance ID
            payload: Thread attributes

        Returns:
            The created thread
        """
        ...

    async def get_thread(self, thread_id: str) -> Thread:
        """Fetch a single thread.

        Args:
            thread_id: Thread ID

        Returns:
            The thread
        """
        ...

    async def delete_thread(self, thread_id: str) -> None:
        """Delete a thread and its messages.

        Args:
            thread_id: Thread ID
        """
        ...
