"""Message models for thread_sync.

Messages are immutable once received. The client never edits one; a
refetch replaces the stored instance wholesale.
"""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Literal

from pydantic import field_validator

from thread_sync.models.base import WireModel, as_utc

__all__ = [
    "MessageDirection",
    "MessageLog",
    "Message",
    "MessageCreate",
]


class MessageDirection(StrEnum):
    """Direction of a message relative to the agent workflow."""

    INCOMING = "Incoming"
    OUTGOING = "Outgoing"
    HANDOVER = "Handover"
    """Server notice that the thread moved to another participant"""


class MessageLog(WireModel):
    """One processing event recorded against a message."""

    event: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Message(WireModel):
    """A single message in a conversation thread.

    Attributes:
        id: Opaque unique identifier
        thread_id: Parent thread ID
        direction: Incoming, Outgoing or Handover
        status: Server-defined delivery/processing status
        created_at: Creation timestamp (naive values are read as UTC)
        created_by: Author identifier
        content: Message text
        metadata: Opaque key-value data; None when the server sent none
        logs: Ordered processing events; None when the server sent none
    """

    id: str
    thread_id: str
    direction: MessageDirection
    status: str = ""
    created_at: datetime
    created_by: str | None = None
    content: str = ""
    metadata: dict[str, Any] | None = None
    logs: list[MessageLog] | None = None

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def has_metadata(self) -> bool:
        """Check if the server attached metadata (even an empty map)."""
        return self.metadata is not None

    @property
    def has_logs(self) -> bool:
        """Check if the server attached a log sequence (even an empty one)."""
        return self.logs is not None

    @property
    def is_handover(self) -> bool:
        return self.direction is MessageDirection.HANDOVER

    def is_recent(self, now: datetime, window: timedelta = timedelta(minutes=1)) -> bool:
        """Check if the message was created less than ``window`` before ``now``."""
        return now - self.created_at < window


class MessageCreate(WireModel):
    """Outgoing message payload.

    ``type`` selects the inbound endpoint: free text goes to ``chat``,
    structured payloads carried in ``metadata`` go to ``data``.
    """

    content: str
    metadata: dict[str, Any] | None = None
    type: Literal["chat", "data"] = "chat"
    participant_id: str | None = None
    workflow_type: str | None = None
    workflow_id: str | None = None
    agent: str | None = None

    def to_request(self, thread_id: str) -> dict[str, Any]:
        """Build the inbound request body for ``thread_id``."""
        body = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"content", "metadata", "type"},
        )
        body.update(threadId=thread_id, text=self.content, data=self.metadata)
        return body
