"""Shared test fixtures for thread_sync.

This module provides pytest fixtures used across all tests.
"""

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from tests.mocks.mock_transport import BASE_TIME, MockMessageTransport
from thread_sync.config import PollingSettings
from thread_sync.models.message import Message, MessageDirection
from thread_sync.models.thread import Thread
from thread_sync.services.sync import ThreadSyncController


@pytest.fixture
def transport() -> MockMessageTransport:
    """In-memory transport with no messages."""
    return MockMessageTransport()


@pytest.fixture
def notifier() -> MagicMock:
    """Notification sink recording show_error calls."""
    return MagicMock()


@pytest.fixture
def polling_settings() -> PollingSettings:
    """Long interval so polling never fires on its own during a test."""
    return PollingSettings(interval=60.0, max_ticks=24)


@pytest_asyncio.fixture
async def controller(
    transport: MockMessageTransport,
    notifier: MagicMock,
    polling_settings: PollingSettings,
) -> AsyncIterator[ThreadSyncController]:
    """Controller with page size 15, closed after the test."""
    sync = ThreadSyncController(
        transport,
        notifier,
        page_size=15,
        polling=polling_settings,
        clock=lambda: BASE_TIME,
    )
    yield sync
    await sync.close()


@pytest.fixture
def sample_message_payload() -> dict:
    """Message as sent by the messaging API."""
    return {
        "id": "msg-1",
        "threadId": "thread-1",
        "direction": "Outgoing",
        "status": "Delivered",
        "createdAt": "2025-01-01T12:00:00Z",
        "createdBy": "workflow-agent",
        "content": "Hello from the agent",
        "metadata": {"source": "workflow"},
        "logs": [{"event": "queued", "timestamp": "2025-01-01T11:59:59Z"}],
    }


@pytest.fixture
def sample_thread_payload() -> dict:
    """Thread as sent by the messaging API."""
    return {
        "id": "thread-1",
        "participantId": "user-42",
        "title": "Invoice follow-up",
        "createdAt": "2025-01-01T10:00:00Z",
        "updatedAt": "2025-01-01T12:00:00Z",
        "isInternalThread": False,
        "workflowId": "wf-7",
        "workflowType": "InvoiceAgent",
        "agent": "billing",
    }


@pytest.fixture
def sample_thread() -> Thread:
    """Thread with workflow routing details."""
    return Thread(
        id="thread-1",
        participant_id="user-42",
        title="Invoice follow-up",
        created_at=datetime(2025, 1, 1, 10, 0, tzinfo=UTC),
        updated_at=datetime(2025, 1, 1, 11, 0, tzinfo=UTC),
        workflow_id="wf-7",
        workflow_type="InvoiceAgent",
        agent="billing",
    )


@pytest.fixture
def sample_message() -> Message:
    """Single outgoing message."""
    return Message(
        id="msg-1",
        thread_id="thread-1",
        direction=MessageDirection.OUTGOING,
        status="Delivered",
        created_at=BASE_TIME,
        created_by="agent",
        content="Hello",
    )
