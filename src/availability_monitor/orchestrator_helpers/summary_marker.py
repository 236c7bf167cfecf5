"""Persists the date of the last daily summary that was delivered."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import orjson

from ..errors import PersistenceError

logger = logging.getLogger(__name__)

SUMMARY_MARKER_FILENAME = "summary_sent.json"


class SummaryMarker:
    """Single JSON file holding the summarized date and when it was sent."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    async def load(self) -> Optional[date]:
        """
        Read the stored date.

        Returns:
            The last summarized date, or None when no marker exists or it is unreadable
        """
        try:
            raw = await asyncio.to_thread(self._read)
        except OSError as exc:
            raise PersistenceError(f"Failed to read summary marker {self.path}", path=str(self.path)) from exc
        if raw is None:
            return None
        try:
            return date.fromisoformat(orjson.loads(raw)["date"])
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed summary marker %s (%s)", self.path, exc)
            return None

    async def save(self, day: date, sent_at: float) -> None:
        payload = orjson.dumps({"date": day.isoformat(), "sent_at": sent_at})
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as exc:
            raise PersistenceError(f"Failed to write summary marker {self.path}", path=str(self.path)) from exc

    def _read(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def _write(self, payload: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_suffix(".tmp")
        staging.write_bytes(payload)
        staging.replace(self.path)


__all__ = ["SUMMARY_MARKER_FILENAME", "SummaryMarker"]
