"""Tests for periodic_task module."""

import asyncio

import pytest

from availability_monitor.periodic_task import PeriodicTask


class TestPeriodicTask:
    @pytest.mark.asyncio
    async def test_runs_repeatedly_until_stopped(self) -> None:
        calls = []

        async def action() -> None:
            calls.append(len(calls))

        task = PeriodicTask("tick", action, interval_seconds=0.01)
        task.start()
        await asyncio.sleep(0.05)
        await task.stop()

        assert len(calls) >= 2
        assert task.iterations == len(calls)
        assert task.is_running() is False

    @pytest.mark.asyncio
    async def test_failing_iteration_does_not_end_loop(self, caplog) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("first iteration fails")

        task = PeriodicTask("flaky", action, interval_seconds=0.01)
        task.start()
        await asyncio.sleep(0.05)
        await task.stop()

        assert calls >= 2
        assert "flaky iteration failed" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_during_initial_delay_skips_action(self) -> None:
        calls = 0

        async def action() -> None:
            nonlocal calls
            calls += 1

        task = PeriodicTask("delayed", action, interval_seconds=0.01, initial_delay=10.0)
        task.start()
        await asyncio.sleep(0)
        await task.stop()

        assert calls == 0

    @pytest.mark.asyncio
    async def test_overrunning_iteration_is_cancelled_on_stop(self) -> None:
        started = asyncio.Event()

        async def action() -> None:
            started.set()
            await asyncio.sleep(10)

        task = PeriodicTask("slow", action, interval_seconds=1.0)
        task.start()
        await started.wait()
        await task.stop(timeout=0.01)

        assert task.is_running() is False

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_loop(self) -> None:
        async def action() -> None:
            return None

        task = PeriodicTask("once", action, interval_seconds=1.0)
        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()
