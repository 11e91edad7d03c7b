"""Thread models for thread_sync."""

from datetime import datetime

from pydantic import field_validator

from thread_sync.models.base import WireModel, as_utc

__all__ = [
    "Thread",
    "ThreadCreate",
]


class Thread(WireModel):
    """A conversation between a participant and an agent workflow.

    Attributes:
        id: Thread ID
        participant_id: ID of the human or agent on the other side
        title: Optional display title
        created_at: Creation timestamp
        updated_at: Last activity timestamp
        is_internal_thread: True for agent-to-agent threads
        workflow_id: Workflow instance the thread belongs to
        workflow_type: Workflow type name
        agent: Agent name
    """

    id: str
    participant_id: str
    title: str | None = None
    created_at: datetime
    updated_at: datetime
    is_internal_thread: bool = False
    workflow_id: str | None = None
    workflow_type: str | None = None
    agent: str | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ThreadCreate(WireModel):
    """Payload for starting a new thread on a workflow."""

    participant_id: str
    title: str | None = None
    workflow_type: str | None = None
    agent: str | None = None
    is_internal_thread: bool = False
