"""Thread synchronization controller for thread_sync.

This module owns the in-memory message collection of the active thread
and keeps it current from three sources: the initial page, older pages
requested by the user, and page-1 refreshes driven by polling.

Every asynchronous operation records the controller generation before
its request and drops the response if the generation moved on while it
was waiting (thread switch or a newer initial load).
"""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal, Self

from thread_sync.config import DEFAULT_PAGE_SIZE, PollingSettings, ThreadSyncConfig
from thread_sync.errors import TransportError, describe_error
from thread_sync.infra.notify.log_sink import LoggingNotificationSink
from thread_sync.interfaces.notifier import NotificationSink
from thread_sync.interfaces.transport import MessageTransportInterface
from thread_sync.logging import bind_thread, get_logger
from thread_sync.models.message import Message, MessageCreate
from thread_sync.models.page import PageCursor
from thread_sync.models.thread import Thread
from thread_sync.services.polling import PollingManager

__all__ = [
    "ERROR_INITIAL_LOAD",
    "ERROR_LOAD_OLDER",
    "ERROR_POLL",
    "ERROR_SEND",
    "ERROR_THREAD_CONFIG",
    "SendResult",
    "SyncSnapshot",
    "ThreadSyncController",
]

logger = get_logger(__name__)

ERROR_INITIAL_LOAD = "Failed to fetch messages for the selected thread."
ERROR_LOAD_OLDER = "Failed to load more messages."
ERROR_POLL = "Failed to refresh messages."
ERROR_SEND = "Error sending message"
ERROR_NO_THREAD = "No thread selected"
ERROR_THREAD_CONFIG = "Thread is missing required configuration"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _newest_first(messages: Iterable[Message]) -> list[Message]:
    return sorted(messages, key=lambda m: m.created_at, reverse=True)


def _dedupe(messages: Iterable[Message]) -> list[Message]:
    """Drop repeated ids; the last occurrence wins."""
    return list({m.id: m for m in messages}.values())


def _merge(existing: list[Message], incoming: list[Message]) -> list[Message]:
    """Union by id; incoming messages replace stored ones with the same id."""
    incoming = _dedupe(incoming)
    incoming_ids = {m.id for m in incoming}
    return [m for m in existing if m.id not in incoming_ids] + incoming


@dataclass(frozen=True)
class SendResult:
    """Outcome of ThreadSyncController.send_message."""

    success: bool
    message: Message | None = None
    thread_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SyncSnapshot:
    """Read-only view of controller state for the presentation layer."""

    thread_id: str | None
    messages: tuple[Message, ...]
    is_loading: bool
    is_loading_more: bool
    is_sending: bool
    is_polling: bool
    has_more: bool
    page: int
    error: str | None
    last_update_time: datetime | None


class ThreadSyncController:
    """Fetches, paginates and refreshes the messages of one active thread.

    Transport failures never escape: each one becomes an error string on
    the controller plus one ``show_error`` call on the notification sink.

    Example:
        async with ThreadSyncController(transport, notifier) as sync:
            await sync.load_initial(thread_id)
            await sync.load_older()
            sync.start_polling()
            for message in sync.sorted_for_display():
                ...
    """

    def __init__(
        self,
        transport: MessageTransportInterface,
        notifier: NotificationSink | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        polling: PollingSettings | None = None,
        on_handover: Callable[[str], Any] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize controller.

        Args:
            transport: Messaging API transport
            notifier: Error notification sink (defaults to logging)
            page_size: Messages per page
            polling: Polling cadence and bound (defaults from environment)
            on_handover: Called with the thread ID when a new handover message arrives
            clock: Current UTC time, used for handover recency
        """
        self._transport = transport
        self._notifier = notifier or LoggingNotificationSink()
        self._on_handover = on_handover
        self._clock = clock
        self._poller = PollingManager.from_settings(
            self._poll_callback, polling or PollingSettings()
        )

        self._thread_id: str | None = None
        self._thread: Thread | None = None
        self._generation = 0
        self._messages: list[Message] = []
        self._cursor = PageCursor(page_size=page_size)
        self._has_more = True
        self._is_loading = False
        self._is_loading_more = False
        self._is_sending = False
        self._error: str | None = None
        self._last_update_time: datetime | None = None
        self._reported_handovers: set[str] = set()

    @classmethod
    def from_config(
        cls,
        transport: MessageTransportInterface,
        config: ThreadSyncConfig,
        notifier: NotificationSink | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create a controller from ThreadSyncConfig."""
        return cls(
            transport,
            notifier,
            page_size=config.page_size,
            polling=config.polling,
            **kwargs,
        )

    async def close(self) -> None:
        """Stop polling and release the poll timer."""
        await self._poller.close()
        logger.info("thread_sync_closed", thread_id=self._thread_id)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === OBSERVABLE STATE ===

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    @property
    def thread(self) -> Thread | None:
        """Details of the active thread, when selected via select_thread()."""
        return self._thread

    @property
    def messages(self) -> tuple[Message, ...]:
        """Current messages, newest first."""
        return tuple(self.sorted_for_display())

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_loading_more(self) -> bool:
        return self._is_loading_more

    @property
    def is_sending(self) -> bool:
        return self._is_sending

    @property
    def is_polling(self) -> bool:
        return self._poller.is_polling

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def page(self) -> int:
        """Last page successfully fetched for backward pagination."""
        return self._cursor.page

    @property
    def page_size(self) -> int:
        return self._cursor.page_size

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_update_time(self) -> datetime | None:
        """Creation time of the newest message seen in this thread."""
        return self._last_update_time

    @property
    def poller(self) -> PollingManager:
        return self._poller

    def sorted_for_display(self) -> Iterator[Message]:
        """Iterate the current collection newest first.

        Sorted on each call; the collection itself is never kept sorted.
        """
        yield from _newest_first(self._messages)

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            thread_id=self._thread_id,
            messages=self.messages,
            is_loading=self._is_loading,
            is_loading_more=self._is_loading_more,
            is_sending=self._is_sending,
            is_polling=self.is_polling,
            has_more=self._has_more,
            page=self._cursor.page,
            error=self._error,
            last_update_time=self._last_update_time,
        )

    # === LOADING ===

    async def select_thread(self, thread: Thread | None) -> None:
        """Make ``thread`` the active thread and load its newest page.

        Thread details are kept for addressing sends; passing None deselects.
        """
        if thread is None:
            await self.load_initial(None)
            return
        if thread.id != self._thread_id:
            self._switch_thread(thread.id)
        self._thread = thread
        self._last_update_time = thread.updated_at
        await self.load_initial(thread.id)

    async def load_initial(self, thread_id: str | None) -> None:
        """Load page 1 of ``thread_id``, replacing the whole collection.

        Selecting a different thread first discards all state of the
        previous one and stops its polling. A falsy ``thread_id`` only
        deselects.
        """
        if thread_id != self._thread_id:
            self._switch_thread(thread_id)
        if not thread_id:
            return

        generation = self._begin_generation()
        self._is_loading = True
        self._error = None
        logger.info("loading_messages", thread_id=thread_id, page=1)

        try:
            messages = await self._transport.list_messages(thread_id, 1, self.page_size)
        except TransportError as e:
            if self._is_stale(generation, thread_id, "load_initial"):
                return
            self._messages = []
            self._cursor = self._cursor.reset()
            self._has_more = False
            self._report_failure(ERROR_INITIAL_LOAD, e)
        else:
            if self._is_stale(generation, thread_id, "load_initial"):
                return
            self._messages = _newest_first(_dedupe(messages))
            self._cursor = self._cursor.reset()
            self._has_more = self._cursor.is_full(len(messages))
            self._error = None
            self._after_head_fetch(thread_id, messages)
            logger.info(
                "messages_loaded",
                thread_id=thread_id,
                count=len(messages),
                has_more=self._has_more,
            )
        finally:
            if generation == self._generation:
                self._is_loading = False

    async def load_older(self) -> None:
        """Fetch the next older page and append it to the collection.

        No-op when no thread is active, nothing older exists, or any
        load is already in flight. A failure keeps the loaded messages.
        """
        thread_id = self._thread_id
        if not thread_id or not self._has_more or self._is_loading or self._is_loading_more:
            logger.debug(
                "load_older_skipped",
                thread_id=thread_id,
                has_more=self._has_more,
                is_loading=self._is_loading,
                is_loading_more=self._is_loading_more,
            )
            return

        generation = self._generation
        next_cursor = self._cursor.next()
        self._is_loading_more = True
        self._error = None
        logger.info("loading_older_messages", thread_id=thread_id, page=next_cursor.page)

        try:
            older = await self._transport.list_messages(
                thread_id, next_cursor.page, next_cursor.page_size
            )
        except TransportError as e:
            if self._is_stale(generation, thread_id, "load_older"):
                return
            self._report_failure(ERROR_LOAD_OLDER, e)
        else:
            if self._is_stale(generation, thread_id, "load_older"):
                return
            if older:
                self._messages = _merge(self._messages, older)
                self._cursor = next_cursor
                self._has_more = next_cursor.is_full(len(older))
            else:
                self._has_more = False
            logger.info(
                "older_messages_loaded",
                thread_id=thread_id,
                page=self._cursor.page,
                count=len(older),
                has_more=self._has_more,
            )
        finally:
            if generation == self._generation:
                self._is_loading_more = False

    async def poll_tick(self, thread_id: str | None) -> None:
        """Refresh page 1 of ``thread_id`` in the background.

        While only page 1 is loaded the fresh page replaces the collection.
        Once older pages are loaded it is merged by id instead, so the
        paginated history stays in place. Ticks for a thread that is no
        longer active are ignored.
        """
        if not thread_id or thread_id != self._thread_id:
            logger.debug("poll_tick_ignored", thread_id=thread_id, active=self._thread_id)
            return
        if self._is_loading:
            logger.debug("poll_tick_skipped", thread_id=thread_id, reason="initial load pending")
            return

        generation = self._generation
        logger.debug("polling_messages", thread_id=thread_id)

        try:
            fresh = await self._transport.list_messages(thread_id, 1, self.page_size)
        except TransportError as e:
            if self._is_stale(generation, thread_id, "poll_tick"):
                return
            self._report_failure(ERROR_POLL, e)
            return

        if self._is_stale(generation, thread_id, "poll_tick"):
            return

        if self._cursor.page == 1:
            self._messages = _newest_first(_dedupe(fresh))
            self._has_more = self._cursor.is_full(len(fresh))
        else:
            self._messages = _merge(self._messages, fresh)
        self._error = None
        self._after_head_fetch(thread_id, fresh)
        logger.debug("messages_polled", thread_id=thread_id, count=len(fresh))

    async def refresh(self) -> None:
        """Reload page 1 of the active thread (e.g. after an error)."""
        if self._thread_id:
            await self.load_initial(self._thread_id)

    # === POLLING ===

    def start_polling(self, thread_id: str | None = None) -> None:
        """Open a polling window for ``thread_id`` (default: active thread)."""
        self._poller.start(thread_id or self._thread_id)

    def stop_polling(self) -> None:
        self._poller.stop()

    def trigger_polling(self, thread_id: str | None = None) -> None:
        """Restart the polling window now, e.g. after an action that yields new data."""
        self._poller.trigger(thread_id or self._thread_id)

    async def _poll_callback(self, thread_id: str, is_polling: bool) -> None:
        await self.poll_tick(thread_id)

    # === SENDING ===

    async def send_message(
        self,
        content: str,
        metadata: dict[str, Any] | None = None,
        type: Literal["chat", "data"] = "chat",
    ) -> SendResult:
        """Send a message to the active thread, then refresh and poll for replies.

        The thread must have been selected with select_thread() and carry a
        participant, workflow type and workflow ID; otherwise nothing is sent.

        Args:
            content: Message text
            metadata: Structured payload for ``data`` messages
            type: ``chat`` or ``data``

        Returns:
            SendResult describing the outcome (failures are also notified)
        """
        thread_id = self._thread_id
        if not thread_id:
            self._notifier.show_error(ERROR_NO_THREAD)
            return SendResult(success=False, error=ERROR_NO_THREAD)

        thread = self._thread
        if (
            thread is None
            or not thread.participant_id
            or not thread.workflow_type
            or not thread.workflow_id
        ):
            logger.warning("send_message_refused", thread_id=thread_id, reason="thread config")
            self._notifier.show_error(f"{ERROR_SEND}: {ERROR_THREAD_CONFIG}")
            return SendResult(success=False, thread_id=thread_id, error=ERROR_THREAD_CONFIG)

        payload = MessageCreate(
            content=content,
            metadata=metadata,
            type=type,
            participant_id=thread.participant_id,
            workflow_type=thread.workflow_type,
            workflow_id=thread.workflow_id,
            agent=thread.agent,
        )

        self._is_sending = True
        logger.info("sending_message", thread_id=thread_id, type=type)
        try:
            message = await self._transport.send_message(thread_id, payload)
        except TransportError as e:
            details = describe_error(e, ERROR_SEND)
            logger.warning("send_message_failed", thread_id=thread_id, error=details.technical)
            self._notifier.show_error(f"{ERROR_SEND}: {details.description}")
            return SendResult(success=False, thread_id=thread_id, error=details.description)
        finally:
            self._is_sending = False

        if thread_id == self._thread_id:
            self.trigger_polling(thread_id)
            await self.load_initial(thread_id)

        return SendResult(success=True, message=message, thread_id=thread_id)

    # === INTERNALS ===

    def _switch_thread(self, thread_id: str | None) -> None:
        """Discard everything belonging to the previous thread."""
        self._poller.stop()
        self._begin_generation()
        self._thread_id = thread_id
        self._thread = None
        self._messages = []
        self._cursor = self._cursor.reset()
        self._has_more = True
        self._error = None
        self._is_loading = False
        self._last_update_time = None
        self._reported_handovers = set()
        bind_thread(thread_id)
        logger.info("thread_selected", thread_id=thread_id)

    def _begin_generation(self) -> int:
        """Invalidate in-flight initial and older-page loads."""
        self._generation += 1
        # An orphaned older-page request can no longer clear its own flag
        self._is_loading_more = False
        return self._generation

    def _is_stale(self, generation: int, thread_id: str, operation: str) -> bool:
        if generation == self._generation and thread_id == self._thread_id:
            return False
        logger.info(
            "stale_response_discarded",
            operation=operation,
            thread_id=thread_id,
            active_thread_id=self._thread_id,
        )
        return True

    def _report_failure(self, title: str, error: TransportError) -> None:
        details = describe_error(error, title)
        self._error = title
        logger.warning(
            "message_fetch_failed",
            thread_id=self._thread_id,
            error=details.description,
            technical=details.technical,
        )
        self._notifier.show_error(details.summary)

    def _after_head_fetch(self, thread_id: str, messages: list[Message]) -> None:
        """Track the newest timestamp and report new handovers."""
        if not messages:
            return

        newest = max(messages, key=lambda m: m.created_at)
        if self._last_update_time is None or newest.created_at > self._last_update_time:
            self._last_update_time = newest.created_at

        now = self._clock()
        handovers = [
            m
            for m in messages
            if m.is_handover and m.id not in self._reported_handovers and m.is_recent(now)
        ]
        # Oldest first, once per message id
        for handover in sorted(handovers, key=lambda m: m.created_at):
            self._reported_handovers.add(handover.id)
            logger.info("thread_handover_detected", thread_id=thread_id, message_id=handover.id)
            if self._on_handover is not None:
                self._on_handover(thread_id)
