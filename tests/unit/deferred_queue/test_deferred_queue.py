"""Tests for deferred_queue module."""

import asyncio
import logging

import pytest

from availability_monitor.deferred_queue import DeferredQueue
from availability_monitor.errors import CircuitOpenError, NotifyError, ValidationError


class Recorder:
    """Delivery callable with scripted failures."""

    def __init__(self) -> None:
        self.delivered = []
        self.calls = 0
        self.failures = []

    async def __call__(self, payload) -> None:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        self.delivered.append(payload)


def make_queue(clock, deliver, **kwargs) -> DeferredQueue:
    options = {"max_capacity": 50, "max_redeliveries": 3, "redelivery_delay": 60.0, "clock": clock}
    options.update(kwargs)
    return DeferredQueue(deliver, **options)


class TestEnqueue:
    def test_accepts_until_capacity(self, clock) -> None:
        queue = make_queue(clock, Recorder())

        results = [queue.enqueue(f"alert-{index}") for index in range(50)]

        assert all(result.accepted for result in results)
        assert len(queue) == 50

    def test_rejects_newest_when_full(self, clock, caplog) -> None:
        queue = make_queue(clock, Recorder())
        for index in range(50):
            queue.enqueue(f"alert-{index}")

        with caplog.at_level(logging.ERROR):
            result = queue.enqueue("alert-overflow")

        assert result.accepted is False
        assert result.entry_id is None
        assert len(queue) == 50
        assert [entry.payload for entry in queue.entries()][0] == "alert-0"
        assert "full" in caplog.text
        assert queue.get_status().total_rejected == 1

    def test_entry_fields(self, clock) -> None:
        queue = make_queue(clock, Recorder(), initial_delay=5.0)

        result = queue.enqueue("alert")

        entry = queue.entries()[0]
        assert entry.entry_id == result.entry_id
        assert entry.attempt_count == 0
        assert entry.enqueued_at == clock.now
        assert entry.next_attempt_at == clock.now + 5.0

    def test_rejects_invalid_capacity(self, clock) -> None:
        with pytest.raises(ValidationError):
            make_queue(clock, Recorder(), max_capacity=0)


class TestProcessDue:
    @pytest.mark.asyncio
    async def test_empty_queue_is_noop(self, clock) -> None:
        deliver = Recorder()
        queue = make_queue(clock, deliver)

        result = await queue.process_due()

        assert result.attempted == 0
        assert deliver.calls == 0

    @pytest.mark.asyncio
    async def test_delivered_entry_is_removed_and_not_redelivered(self, clock) -> None:
        deliver = Recorder()
        queue = make_queue(clock, deliver)
        queue.enqueue("alert")

        first = await queue.process_due()
        second = await queue.process_due()

        assert len(first.delivered) == 1
        assert second.attempted == 0
        assert deliver.delivered == ["alert"]
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_entries_not_yet_due_are_left_alone(self, clock) -> None:
        deliver = Recorder()
        queue = make_queue(clock, deliver, initial_delay=30.0)
        queue.enqueue("alert")

        result = await queue.process_due()

        assert result.attempted == 0
        assert deliver.calls == 0

    @pytest.mark.asyncio
    async def test_failure_reschedules_with_backoff(self, clock) -> None:
        deliver = Recorder()
        deliver.failures = [NotifyError("down"), NotifyError("down")]
        queue = make_queue(clock, deliver)
        queue.enqueue("alert")

        await queue.process_due()
        entry = queue.entries()[0]
        assert entry.attempt_count == 1
        assert entry.next_attempt_at == clock.now + 60.0

        clock.advance(60.0)
        await queue.process_due()
        assert queue.entries()[0].attempt_count == 2
        assert queue.entries()[0].next_attempt_at == clock.now + 120.0

    @pytest.mark.asyncio
    async def test_dropped_after_max_redeliveries(self, clock) -> None:
        deliver = Recorder()
        deliver.failures = [NotifyError("down")] * 3
        queue = make_queue(clock, deliver)
        queue.enqueue("alert")

        dropped = []
        for _ in range(3):
            result = await queue.process_due()
            dropped.extend(result.dropped)
            clock.advance(1000.0)

        assert deliver.calls == 3
        assert len(queue) == 0
        assert len(dropped) == 1
        assert dropped[0].entry.attempt_count == 3
        assert queue.get_status().total_dropped == 1

    @pytest.mark.asyncio
    async def test_circuit_open_does_not_consume_attempt(self, clock) -> None:
        deliver = Recorder()
        deliver.failures = [CircuitOpenError("open", next_attempt_at=clock.now + 250.0)]
        queue = make_queue(clock, deliver)
        queue.enqueue("alert")

        result = await queue.process_due()

        entry = queue.entries()[0]
        assert len(result.rescheduled) == 1
        assert entry.attempt_count == 0
        assert entry.next_attempt_at == clock.now + 250.0

    @pytest.mark.asyncio
    async def test_concurrent_pass_is_skipped(self, clock) -> None:
        release = asyncio.Event()

        async def slow_deliver(payload) -> None:
            await release.wait()

        queue = make_queue(clock, slow_deliver)
        queue.enqueue("alert")

        first = asyncio.create_task(queue.process_due())
        await asyncio.sleep(0)
        second = await queue.process_due()
        release.set()
        first_result = await first

        assert second.skipped is True
        assert len(first_result.delivered) == 1

    @pytest.mark.asyncio
    async def test_enqueue_during_pass_is_kept(self, clock) -> None:
        queue_ref = {}

        async def deliver(payload) -> None:
            if payload == "first":
                queue_ref["queue"].enqueue("second")

        queue = make_queue(clock, deliver)
        queue_ref["queue"] = queue
        queue.enqueue("first")

        result = await queue.process_due()

        assert len(result.delivered) == 1
        assert [entry.payload for entry in queue.entries()] == ["second"]
