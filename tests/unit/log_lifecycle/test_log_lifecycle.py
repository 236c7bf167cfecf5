"""Tests for log_lifecycle module."""

import asyncio
import os

import pytest

from availability_monitor.errors import PersistenceError, ValidationError
from availability_monitor.log_lifecycle import LogLifecycleManager

DAY = 86400


@pytest.fixture
def manager(tmp_path, clock):
    return LogLifecycleManager(tmp_path, max_bytes=100, managed=["monitor"], clock=clock)


class TestAppend:
    @pytest.mark.asyncio
    async def test_appends_lines_with_newline(self, manager, tmp_path):
        await manager.append("monitor", "first")
        await manager.append("monitor", "second\n")

        assert (tmp_path / "monitor.log").read_text() == "first\nsecond\n"

    @pytest.mark.asyncio
    async def test_unmanaged_name_is_adopted(self, manager, tmp_path):
        await manager.append("error", "boom")

        assert "error" in manager.managed_names
        assert (tmp_path / "error.log").exists()

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path, clock):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        manager = LogLifecycleManager(blocker / "logs", clock=clock)

        with pytest.raises(PersistenceError):
            await manager.append("monitor", "line")


class TestRotate:
    @pytest.mark.asyncio
    async def test_small_file_is_not_rotated(self, manager, tmp_path):
        await manager.append("monitor", "short")

        archived = await manager.rotate()

        assert archived == []
        assert (tmp_path / "monitor.log").read_text() == "short\n"

    @pytest.mark.asyncio
    async def test_large_file_is_archived_and_recreated(self, manager, tmp_path):
        await manager.append("monitor", "x" * 150)

        archived = await manager.rotate("monitor")

        assert len(archived) == 1
        assert archived[0].name.startswith("monitor-")
        assert archived[0].read_text() == "x" * 150 + "\n"
        assert (tmp_path / "monitor.log").exists()
        assert (tmp_path / "monitor.log").stat().st_size == 0

    @pytest.mark.asyncio
    async def test_archive_names_do_not_collide(self, manager):
        await manager.append("monitor", "x" * 150)
        first = await manager.rotate()
        await manager.append("monitor", "y" * 150)
        second = await manager.rotate()

        assert first[0] != second[0]
        assert first[0].exists()
        assert second[0].exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_ignored(self, manager):
        assert await manager.rotate() == []

    @pytest.mark.asyncio
    async def test_concurrent_appends_survive_rotation(self, tmp_path, clock):
        manager = LogLifecycleManager(tmp_path, max_bytes=50, managed=["monitor"], clock=clock)
        expected = [f"line-{index:03d}" for index in range(200)]
        operations = []
        for index, line in enumerate(expected):
            operations.append(manager.append("monitor", line))
            if index % 10 == 9:
                operations.append(manager.rotate("monitor"))

        results = await asyncio.gather(*operations)

        archives = [path for batch in results if isinstance(batch, list) for path in batch]
        written = []
        for path in sorted(tmp_path.glob("monitor*.log")):
            written.extend(path.read_text().splitlines())
        assert archives
        assert len(written) == len(expected)
        assert sorted(written) == expected


class TestCleanup:
    @pytest.mark.asyncio
    async def test_removes_only_archives_past_retention(self, manager, tmp_path, clock):
        old_archive = tmp_path / "monitor-20230101T000000000000Z.log"
        recent_archive = tmp_path / "monitor-20231110T000000000000Z.log"
        active = tmp_path / "monitor.log"
        for path in (old_archive, recent_archive, active):
            path.write_text("data\n")
        os.utime(old_archive, (clock.now - 31 * DAY, clock.now - 31 * DAY))
        os.utime(recent_archive, (clock.now - 2 * DAY, clock.now - 2 * DAY))
        os.utime(active, (clock.now - 90 * DAY, clock.now - 90 * DAY))

        removed = await manager.cleanup(retention_days=30)

        assert removed == [old_archive]
        assert not old_archive.exists()
        assert recent_archive.exists()
        assert active.exists()

    @pytest.mark.asyncio
    async def test_negative_retention_rejected(self, manager):
        with pytest.raises(ValidationError):
            await manager.cleanup(retention_days=-1)


class TestDescribe:
    @pytest.mark.asyncio
    async def test_lists_active_and_archived_files(self, manager):
        await manager.append("monitor", "x" * 150)
        await manager.rotate()
        await manager.append("monitor", "fresh")

        descriptors = manager.describe()

        assert [descriptor.archived for descriptor in descriptors] == [False, True]
        assert descriptors[0].size_bytes == len("fresh\n")
        assert descriptors[1].size_bytes == 151


def test_rejects_non_positive_max_bytes(tmp_path):
    with pytest.raises(ValidationError):
        LogLifecycleManager(tmp_path, max_bytes=0)
