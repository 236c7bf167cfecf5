"""Tests for error_log module."""

from datetime import date, timedelta, timezone
from unittest.mock import AsyncMock

import orjson
import pytest

from availability_monitor.error_log import ERROR_LOG_NAME, ErrorRecorder
from availability_monitor.errors import ErrorKind, NetworkError, PersistenceError
from availability_monitor.log_lifecycle import LogLifecycleManager

DAY_OF_BASE_TIME = date(2023, 11, 14)


@pytest.fixture
def lifecycle(tmp_path, clock):
    return LogLifecycleManager(tmp_path / "logs", clock=clock)


class TestRecord:
    @pytest.mark.asyncio
    async def test_classifies_counts_and_persists(self, lifecycle, clock):
        recorder = ErrorRecorder(lifecycle, clock=clock, tz=timezone.utc)
        error = NetworkError("connection reset", url="https://shop.example.com")
        error.attempts = 3

        kind = await recorder.record(error, context="check_tick", metadata={"tick": 7})

        assert kind is ErrorKind.NETWORK
        assert recorder.total == 1
        assert recorder.counts_by_kind() == {"network": 1}
        assert recorder.last_error_at == clock.now

        lines = lifecycle.path_for(ERROR_LOG_NAME).read_bytes().splitlines()
        entry = orjson.loads(lines[0])
        assert entry["kind"] == "network"
        assert entry["context"] == "check_tick"
        assert entry["error_type"] == "NetworkError"
        assert entry["details"] == {"tick": 7, "url": "https://shop.example.com", "attempts": 3}

    @pytest.mark.asyncio
    async def test_kind_override(self, clock):
        recorder = ErrorRecorder(clock=clock)

        kind = await recorder.record(RuntimeError("lock"), context="check_tick", kind=ErrorKind.LOCK_TIMEOUT)

        assert kind is ErrorKind.LOCK_TIMEOUT
        assert recorder.counts_by_kind() == {"lock_timeout": 1}

    @pytest.mark.asyncio
    async def test_persist_failure_is_logged_not_raised(self, clock, caplog):
        lifecycle = AsyncMock(spec=LogLifecycleManager)
        lifecycle.append.side_effect = PersistenceError("disk full")
        recorder = ErrorRecorder(lifecycle, clock=clock)

        kind = await recorder.record(ValueError("bad"), context="summary_tick")

        assert kind is ErrorKind.VALIDATION
        assert recorder.total == 1
        assert "Failed to persist error record" in caplog.text


class TestDailySummary:
    @pytest.mark.asyncio
    async def test_counts_are_grouped_by_local_day(self, clock):
        recorder = ErrorRecorder(clock=clock, tz=timezone.utc)
        await recorder.record(NetworkError("a"), context="check_tick")
        await recorder.record(NetworkError("b"), context="check_tick")
        clock.advance(86400)
        await recorder.record(ValueError("c"), context="check_tick")

        first = recorder.daily_summary(DAY_OF_BASE_TIME)
        second = recorder.daily_summary(DAY_OF_BASE_TIME + timedelta(days=1))

        assert first == {"date": "2023-11-14", "total_errors": 2, "by_kind": {"network": 2}}
        assert second["by_kind"] == {"validation": 1}

    def test_empty_day(self, clock):
        recorder = ErrorRecorder(clock=clock)

        assert recorder.daily_summary(DAY_OF_BASE_TIME)["total_errors"] == 0

    @pytest.mark.asyncio
    async def test_write_daily_summary_prunes_older_days(self, clock, tmp_path):
        recorder = ErrorRecorder(clock=clock, tz=timezone.utc)
        await recorder.record(NetworkError("a"), context="check_tick")
        clock.advance(86400)
        await recorder.record(NetworkError("b"), context="check_tick")
        next_day = DAY_OF_BASE_TIME + timedelta(days=1)

        path = recorder.write_daily_summary(next_day, tmp_path / "summaries")

        assert path.name == "daily-errors-2023-11-15.json"
        assert orjson.loads(path.read_bytes())["total_errors"] == 1
        assert recorder.daily_summary(DAY_OF_BASE_TIME)["total_errors"] == 0
        assert recorder.total == 2
