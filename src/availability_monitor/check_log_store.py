"""JSON-lines persistence of check records."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Deque, List

import orjson

from .capabilities import CheckLog, CheckRecord
from .errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_LIMIT = 500


class JsonLinesCheckLog:
    """Appends one JSON object per check to a local file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def append(self, record: CheckRecord) -> None:
        line = orjson.dumps(record.to_dict(), option=orjson.OPT_APPEND_NEWLINE)
        async with self._lock:
            try:
                await asyncio.to_thread(self._write, line)
            except OSError as exc:
                raise PersistenceError(f"Failed to write check record to {self.path}", path=str(self.path)) from exc

    async def get_all(self) -> List[CheckRecord]:
        """Every readable record in file order; malformed lines are skipped."""
        async with self._lock:
            try:
                raw = await asyncio.to_thread(self._read)
            except OSError as exc:
                raise PersistenceError(f"Failed to read check records from {self.path}", path=str(self.path)) from exc
        return _parse_lines(raw, self.path)

    async def get_since(self, timestamp: float) -> List[CheckRecord]:
        """Records with ``timestamp <= record.timestamp``, newest first."""
        records = [record for record in await self.get_all() if timestamp <= record.timestamp]
        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records

    def size_bytes(self) -> int:
        return self.path.stat().st_size if self.path.exists() else 0

    def _write(self, line: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("ab") as handle:
            handle.write(line)

    def _read(self) -> bytes:
        if not self.path.exists():
            return b""
        return self.path.read_bytes()


def _parse_lines(raw: bytes, path: Path) -> List[CheckRecord]:
    records: List[CheckRecord] = []
    for number, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(CheckRecord.from_dict(orjson.loads(line)))
        except (orjson.JSONDecodeError, KeyError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed check record %s:%s (%s)", path.name, number, exc)
    return records


class BufferedCheckLog:
    """
    Wraps a check log and keeps records in memory while the store is failing.

    Buffered records are flushed, oldest first, ahead of the next record once
    the store accepts writes again. The buffer is bounded; the oldest records
    are discarded when it overflows.
    """

    def __init__(self, store: CheckLog, *, buffer_limit: int = DEFAULT_BUFFER_LIMIT) -> None:
        self.store = store
        self._buffer: Deque[CheckRecord] = deque(maxlen=buffer_limit)
        self.last_error: PersistenceError | None = None

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def healthy(self) -> bool:
        return self.last_error is None

    async def append(self, record: CheckRecord) -> None:
        """
        Persist ``record``, buffering on failure.

        Raises:
            PersistenceError: After buffering, so callers can record the failure
        """
        try:
            await self._flush()
            await self.store.append(record)
        except PersistenceError as exc:
            if len(self._buffer) == self._buffer.maxlen:
                logger.error("Check record buffer full; discarding oldest buffered record")
            self._buffer.append(record)
            self.last_error = exc
            logger.error("Check record buffered in memory (%s pending): %s", len(self._buffer), exc)
            raise
        self.last_error = None

    async def _flush(self) -> None:
        while self._buffer:
            await self.store.append(self._buffer[0])
            self._buffer.popleft()
        if self.last_error is not None:
            logger.info("Check record store recovered; buffer flushed")

    async def get_all(self) -> List[CheckRecord]:
        persisted = await self.store.get_all()
        return persisted + list(self._buffer)

    async def get_since(self, timestamp: float) -> List[CheckRecord]:
        records = [record for record in await self.get_all() if timestamp <= record.timestamp]
        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records


__all__ = ["BufferedCheckLog", "DEFAULT_BUFFER_LIMIT", "JsonLinesCheckLog"]
