"""In-memory messaging transport for testing."""

import asyncio
from datetime import UTC, datetime, timedelta

from thread_sync.errors import TransportError
from thread_sync.models.message import Message, MessageCreate, MessageDirection
from thread_sync.models.thread import Thread, ThreadCreate

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def make_message(
    thread_id: str,
    index: int,
    direction: MessageDirection = MessageDirection.OUTGOING,
    created_at: datetime | None = None,
    content: str | None = None,
) -> Message:
    """Build a message whose creation time grows with ``index``."""
    return Message(
        id=f"{thread_id}-m{index}",
        thread_id=thread_id,
        direction=direction,
        status="Delivered",
        created_at=created_at or BASE_TIME + timedelta(minutes=index),
        created_by="agent",
        content=content if content is not None else f"message {index}",
    )


class MockMessageTransport:
    """Serves pages from per-thread message lists.

    Pages are cut newest first, like the real API. ``hold(thread_id)``
    parks list_messages calls for that thread until the returned event is
    set; ``fail_with(error)`` makes the next call raise.
    """

    def __init__(self) -> None:
        self.messages: dict[str, list[Message]] = {}
        self.calls: list[tuple[str, str, int, int]] = []
        self.sent: list[tuple[str, MessageCreate]] = []
        self._errors: list[TransportError] = []
        self._gates: dict[str, asyncio.Event] = {}

    def add_messages(self, thread_id: str, count: int, start: int = 0) -> list[Message]:
        created = [make_message(thread_id, i) for i in range(start, start + count)]
        self.messages.setdefault(thread_id, []).extend(created)
        return created

    def hold(self, thread_id: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[thread_id] = gate
        return gate

    def release(self, thread_id: str) -> None:
        gate = self._gates.pop(thread_id, None)
        if gate is not None:
            gate.set()

    def fail_with(self, error: TransportError) -> None:
        self._errors.append(error)

    def page_calls(self, thread_id: str) -> list[int]:
        return [page for _, tid, page, _ in self.calls if tid == thread_id]

    async def list_threads(self, workflow_id: str) -> list[Thread]:
        return []

    async def list_messages(self, thread_id: str, page: int, page_size: int) -> list[Message]:
        self.calls.append(("list_messages", thread_id, page, page_size))
        gate = self._gates.get(thread_id)
        if gate is not None:
            await gate.wait()
        if self._errors:
            raise self._errors.pop(0)
        ordered = sorted(
            self.messages.get(thread_id, []), key=lambda m: m.created_at, reverse=True
        )
        start = (page - 1) * page_size
        return ordered[start : start + page_size]

    async def send_message(self, thread_id: str, payload: MessageCreate) -> Message:
        if self._errors:
            raise self._errors.pop(0)
        self.sent.append((thread_id, payload))
        index = len(self.messages.get(thread_id, [])) + 1000
        message = make_message(
            thread_id, index, direction=MessageDirection.INCOMING, content=payload.content
        )
        self.messages.setdefault(thread_id, []).append(message)
        return message

    async def create_thread(self, workflow_id: str, payload: ThreadCreate) -> Thread:
        raise NotImplementedError

    async def get_thread(self, thread_id: str) -> Thread:
        raise NotImplementedError

    async def delete_thread(self, thread_id: str) -> None:
        self.messages.pop(thread_id, None)
