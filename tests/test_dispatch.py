from __future__ import annotations

import asyncio
import logging

from lablink.core.config import DispatchConfig
from lablink.core.dispatch import DispatchGate
from lablink.core.models import NotificationDecision
from fakes import ALICE, BOB, FakeSender


def test_submitted_decisions_are_delivered() -> None:
    sender = FakeSender()

    async def scenario() -> DispatchGate:
        gate = DispatchGate(sender, DispatchConfig(queue_size=10))
        gate.start()
        gate.submit(NotificationDecision(recipient=ALICE, text="hello", attachment="note"))
        gate.submit(NotificationDecision(recipient=BOB, text="pipeline"))
        await gate.join()
        await gate.stop()
        return gate

    gate = asyncio.run(scenario())

    assert sender.sent == [("C1", "hello", "note"), ("C2", "pipeline", None)]
    assert gate.delivered == 2


def test_submit_does_not_wait_for_delivery() -> None:
    sender = FakeSender()

    async def scenario() -> None:
        gate = DispatchGate(sender, DispatchConfig(queue_size=10))
        gate.start()
        assert gate.submit(NotificationDecision(recipient=ALICE, text="hello"))
        # Nothing is sent until the worker gets a turn on the loop.
        assert sender.sent == []
        await gate.join()
        await gate.stop()

    asyncio.run(scenario())
    assert len(sender.sent) == 1


def test_delivery_failure_is_logged_and_swallowed(caplog) -> None:
    sender = FakeSender(fail_for=["C1"])

    async def scenario() -> DispatchGate:
        gate = DispatchGate(sender, DispatchConfig(queue_size=10))
        gate.start()
        gate.submit(NotificationDecision(recipient=ALICE, text="lost"))
        gate.submit(NotificationDecision(recipient=BOB, text="kept"))
        await gate.join()
        await gate.stop()
        return gate

    with caplog.at_level(logging.ERROR, logger="lablink.core.dispatch"):
        gate = asyncio.run(scenario())

    assert sender.sent == [("C2", "kept", None)]
    assert gate.failed == 1
    assert gate.delivered == 1
    assert "Failed to deliver notification to alice" in caplog.text


def test_full_queue_drops_notification() -> None:
    sender = FakeSender()

    async def scenario() -> DispatchGate:
        gate = DispatchGate(sender, DispatchConfig(queue_size=1))
        # Worker not started yet, so the queue cannot drain.
        assert gate.submit(NotificationDecision(recipient=ALICE, text="first"))
        assert not gate.submit(NotificationDecision(recipient=BOB, text="second"))
        gate.start()
        await gate.join()
        await gate.stop()
        return gate

    gate = asyncio.run(scenario())

    assert sender.sent == [("C1", "first", None)]
    assert gate.dropped == 1


def test_stop_without_start_is_noop() -> None:
    gate = DispatchGate(FakeSender(), DispatchConfig(queue_size=1))
    asyncio.run(gate.stop())


def test_stop_leaves_in_flight_delivery_running() -> None:
    class BlockingSender(FakeSender):
        def __init__(self) -> None:
            super().__init__()
            self.started = asyncio.Event()
            self.release = asyncio.Event()

        async def post_message(self, channel, text, attachment=None) -> None:
            self.started.set()
            await self.release.wait()
            await super().post_message(channel, text, attachment)

    async def scenario() -> tuple[BlockingSender, DispatchGate]:
        sender = BlockingSender()
        gate = DispatchGate(sender, DispatchConfig(queue_size=10))
        gate.start()
        gate.submit(NotificationDecision(recipient=ALICE, text="hello"))
        await sender.started.wait()

        await gate.stop()
        sender.release.set()
        await gate.join()
        return sender, gate

    sender, gate = asyncio.run(scenario())

    assert sender.sent == [("C1", "hello", None)]
    assert gate.delivered == 1
