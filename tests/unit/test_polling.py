"""Unit tests for PollingManager."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from thread_sync.services.polling import PollingManager, PollingState

INTERVAL = 0.01


async def _wait_idle(poller: PollingManager, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while poller.is_polling:
            await asyncio.sleep(INTERVAL)

    await asyncio.wait_for(_poll(), timeout)


class TestPollingLifecycle:
    """Tests for start/stop/trigger semantics."""

    @pytest.mark.asyncio
    async def test_stop_before_first_interval_means_no_fetch(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=0.05, max_ticks=3)

        poller.start("thread-1")
        assert poller.state is PollingState.POLLING
        poller.stop()
        await asyncio.sleep(0.15)

        fetch.assert_not_called()
        assert poller.state is PollingState.IDLE

    @pytest.mark.asyncio
    async def test_first_tick_waits_one_interval(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=0.1, max_ticks=3)

        poller.start("thread-1")
        await asyncio.sleep(0.02)

        fetch.assert_not_called()
        await poller.close()

    @pytest.mark.asyncio
    async def test_stops_after_max_ticks(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=3)

        poller.start("thread-1")
        await _wait_idle(poller)
        await asyncio.sleep(0.05)

        assert fetch.await_count == 3
        assert poller.state is PollingState.IDLE
        await poller.close()

    @pytest.mark.asyncio
    async def test_callback_receives_key_and_polling_flag(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=1)

        poller.start("thread-1")
        await _wait_idle(poller)
        await poller.close()

        fetch.assert_awaited_once_with("thread-1", True)

    @pytest.mark.asyncio
    async def test_stops_after_max_duration(self) -> None:
        now = [0.0]

        def fetch(key: str, is_polling: bool) -> None:
            now[0] += 4.0

        spy = MagicMock(side_effect=fetch)
        poller = PollingManager(
            spy, interval=INTERVAL, max_ticks=None, max_duration=10.0, clock=lambda: now[0]
        )

        poller.start("thread-1")
        await _wait_idle(poller)

        # Elapsed 0, 4 and 8 seconds are within the window; 12 is not
        assert spy.call_count == 3

    @pytest.mark.asyncio
    async def test_falsy_key_goes_idle(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=5)

        poller.start(None)
        await _wait_idle(poller)

        fetch.assert_not_called()
        assert poller.state is PollingState.IDLE

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        poller = PollingManager(AsyncMock(), interval=INTERVAL, max_ticks=3)

        poller.stop()
        poller.start("thread-1")
        poller.stop()
        poller.stop()

        assert poller.state is PollingState.IDLE

    @pytest.mark.asyncio
    async def test_trigger_opens_fresh_window(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=2)

        poller.start("thread-1")
        await _wait_idle(poller)
        assert fetch.await_count == 2

        poller.trigger("thread-1")
        assert poller.tick_count == 0
        await _wait_idle(poller)

        assert fetch.await_count == 4
        await poller.close()

    @pytest.mark.asyncio
    async def test_restart_replaces_running_loop(self) -> None:
        fetch = AsyncMock()
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=2)

        poller.start("thread-1")
        poller.start("thread-2")
        await _wait_idle(poller)
        await poller.close()

        keys = [call.args[0] for call in fetch.await_args_list]
        assert keys == ["thread-2", "thread-2"]
        assert poller.key == "thread-2"

    @pytest.mark.asyncio
    async def test_stop_from_inside_callback(self) -> None:
        poller: PollingManager

        def fetch(key: str, is_polling: bool) -> None:
            poller.stop()

        spy = MagicMock(side_effect=fetch)
        poller = PollingManager(spy, interval=INTERVAL, max_ticks=5)

        poller.start("thread-1")
        await asyncio.sleep(0.1)

        assert spy.call_count == 1
        assert poller.state is PollingState.IDLE


class TestPollingFailures:
    """A failing tick must not end the polling window."""

    @pytest.mark.asyncio
    async def test_async_failures_keep_polling(self) -> None:
        fetch = AsyncMock(side_effect=RuntimeError("server down"))
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=3)

        poller.start("thread-1")
        await _wait_idle(poller)
        await poller.close()

        assert fetch.await_count == 3

    @pytest.mark.asyncio
    async def test_sync_failures_keep_polling(self) -> None:
        fetch = MagicMock(side_effect=RuntimeError("boom"))
        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=3)

        poller.start("thread-1")
        await _wait_idle(poller)

        assert fetch.call_count == 3


class TestPollingTeardown:
    """Tests for close()."""

    @pytest.mark.asyncio
    async def test_close_cancels_outstanding_fetch(self) -> None:
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def fetch(key: str, is_polling: bool) -> None:
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        poller = PollingManager(fetch, interval=INTERVAL, max_ticks=10)
        poller.start("thread-1")
        await asyncio.wait_for(started.wait(), 1.0)

        await poller.close()

        assert cancelled.is_set()
        assert poller.state is PollingState.IDLE

    def test_requires_a_bound(self) -> None:
        with pytest.raises(ValueError):
            PollingManager(AsyncMock(), max_ticks=None, max_duration=None)

    def test_requires_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            PollingManager(AsyncMock(), interval=0)
