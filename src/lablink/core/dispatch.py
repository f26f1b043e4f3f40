"""Dispatch gate: fire-and-forget delivery of notification decisions.

Request handlers only enqueue; a single background worker drains the queue and
talks to Slack. The webhook response therefore never waits on Slack, and a
delivery failure is logged and dropped without a retry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from lablink.core.config import DispatchConfig
from lablink.core.models import NotificationDecision
from lablink.core.ports import ChatSenderPort

LOGGER = logging.getLogger(__name__)


class DispatchGate:
    """Bounded queue of pending notifications with one delivery worker."""

    def __init__(self, sender: ChatSenderPort, config: DispatchConfig) -> None:
        self._sender = sender
        self._queue: asyncio.Queue[NotificationDecision] = asyncio.Queue(maxsize=config.queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()
        self.delivered = 0
        self.failed = 0
        self.dropped = 0

    def start(self) -> None:
        """Start the delivery worker on the running event loop."""

        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run(), name="dispatch-gate")

    async def stop(self) -> None:
        """Stop the worker.

        Queued notifications are abandoned. A delivery already talking to Slack
        is neither awaited nor cancelled.
        """

        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        if not self._queue.empty():
            LOGGER.warning("Dispatch gate stopped with %s undelivered notifications", self._queue.qsize())

    def submit(self, decision: NotificationDecision) -> bool:
        """Enqueue a decision without blocking. Returns False if it was dropped."""

        try:
            self._queue.put_nowait(decision)
        except asyncio.QueueFull:
            self.dropped += 1
            LOGGER.error(
                "Dispatch queue full, dropping notification for %s",
                decision.recipient.gitlab_username,
            )
            return False
        return True

    async def join(self) -> None:
        """Wait until every enqueued decision has been attempted."""

        await self._queue.join()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            decision = await self._queue.get()
            delivery = loop.create_task(self._deliver(decision))
            self._in_flight.add(delivery)
            delivery.add_done_callback(self._delivery_done)
            # Cancelling the worker must not cancel the delivery it waits on.
            await asyncio.shield(delivery)

    def _delivery_done(self, delivery: asyncio.Task) -> None:
        self._in_flight.discard(delivery)
        self._queue.task_done()

    async def _deliver(self, decision: NotificationDecision) -> None:
        LOGGER.info("Sending slack message to %s: %s", decision.recipient.gitlab_username, decision.text)
        try:
            await self._sender.post_message(decision.recipient.chat_id, decision.text, decision.attachment)
        except Exception:
            self.failed += 1
            LOGGER.exception("Failed to deliver notification to %s", decision.recipient.gitlab_username)
            return
        self.delivered += 1
