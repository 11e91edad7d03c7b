#!/usr/bin/env python
"""Watch a conversation thread against a running messaging API.

Loads the newest page of a thread, optionally pages back through its
history, sends a message and prints replies as polling picks them up.

Usage:
    python scripts/watch_thread.py <thread_id> [message]

Environment variables (via .env):
    THREAD_SYNC_API_BASE_URL=http://localhost:5000
    THREAD_SYNC_API_TENANT_ID=default
    THREAD_SYNC_API_API_KEY=your_token
    THREAD_SYNC_POLLING_INTERVAL=5
    THREAD_SYNC_POLLING_MAX_TICKS=24
"""

import asyncio
import logging
import sys

from thread_sync import ThreadSyncConfig, ThreadSyncController
from thread_sync.infra.http import HttpMessageTransport
from thread_sync.logging import configure_logging, get_logger
from thread_sync.models import Message

configure_logging(level=logging.INFO)
logger = get_logger(__name__)


def print_message(message: Message) -> None:
    stamp = message.created_at.strftime("%Y-%m-%d %H:%M:%S")
    print(f"  [{stamp}] {message.direction:<8} {message.created_by or '-'}: {message.content}")


async def watch(thread_id: str, text: str | None) -> None:
    config = ThreadSyncConfig()

    print("\n" + "=" * 60)
    print(f"Connecting to {config.transport.base_url} (tenant {config.transport.tenant_id})")
    print("=" * 60)

    async with HttpMessageTransport(config.transport) as transport:
        thread = await transport.get_thread(thread_id)
        seen: set[str] = set()

        def announce_handover(handover_thread_id: str) -> None:
            print(f"\n>> Thread {handover_thread_id} was handed over")

        async with ThreadSyncController.from_config(
            transport, config, on_handover=announce_handover
        ) as sync:
            await sync.select_thread(thread)
            print(f"\nThread: {thread.title or thread.id} ({thread.participant_id})")
            if sync.error:
                print(f"ERROR: {sync.error}")
                return

            while sync.has_more and len(sync.messages) < 3 * sync.page_size:
                await sync.load_older()
                if sync.error:
                    print(f"ERROR: {sync.error} (showing what was loaded)")
                    break

            for message in reversed(sync.messages):
                print_message(message)
                seen.add(message.id)

            if text:
                result = await sync.send_message(text)
                if not result.success:
                    print(f"ERROR: {result.error}")
                    return
            else:
                sync.start_polling()

            print("\nPolling for new messages (Ctrl+C to stop)...")
            while sync.is_polling:
                await asyncio.sleep(config.polling.interval)
                for message in reversed(sync.messages):
                    if message.id not in seen:
                        print_message(message)
                        seen.add(message.id)

            print(f"\nPolling window ended. Last update: {sync.last_update_time}")


async def main() -> None:
    """Main entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    thread_id = sys.argv[1]
    text = " ".join(sys.argv[2:]) or None
    try:
        await watch(thread_id, text)
    except Exception:
        logger.exception("watch_failed", thread_id=thread_id)
        raise


if __name__ == "__main__":
    asyncio.run(main())
