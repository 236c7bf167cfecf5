"""Structured error recording with per-kind and per-day counters."""

from __future__ import annotations

import logging
import time
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, DefaultDict, Dict, Mapping, Optional

import orjson

from .error_classifier import classify_error
from .errors import ErrorKind, MonitorError, PersistenceError
from .log_lifecycle import LogLifecycleManager

logger = logging.getLogger(__name__)

ERROR_LOG_NAME = "error"


class ErrorRecorder:
    """
    Records failures to the application log and to ``error.log``.

    Each record is one JSON line written through the LogLifecycleManager so it
    participates in rotation. Counts are kept in memory for status reports and
    the daily error summary.
    """

    def __init__(
        self,
        lifecycle: Optional[LogLifecycleManager] = None,
        *,
        clock: Callable[[], float] = time.time,
        tz=timezone.utc,
    ) -> None:
        self._lifecycle = lifecycle
        self._clock = clock
        self._tz = tz
        self._totals: Counter[str] = Counter()
        self._daily: DefaultDict[date, Counter[str]] = defaultdict(Counter)
        self._last_error_at: Optional[float] = None
        if lifecycle is not None:
            lifecycle.manage(ERROR_LOG_NAME)

    @property
    def total(self) -> int:
        return sum(self._totals.values())

    @property
    def last_error_at(self) -> Optional[float]:
        return self._last_error_at

    def counts_by_kind(self) -> Dict[str, int]:
        return dict(self._totals)

    async def record(
        self,
        error: BaseException,
        *,
        context: str,
        kind: Optional[ErrorKind] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ErrorKind:
        """
        Log and persist a failure.

        Args:
            error: The exception being recorded
            context: Where it happened (e.g. ``check_tick``)
            kind: Override for the classified kind
            metadata: Extra fields stored with the record

        Returns:
            The kind the error was recorded under
        """
        resolved = kind or classify_error(error)
        now = self._clock()
        self._totals[resolved.value] += 1
        self._daily[self._day_of(now)][resolved.value] += 1
        self._last_error_at = now

        details: Dict[str, Any] = dict(metadata or {})
        if isinstance(error, MonitorError) and error.context:
            details.update({key: _jsonable(value) for key, value in error.context.items()})
        attempts = getattr(error, "attempts", None)
        if attempts is not None:
            details["attempts"] = attempts

        logger.error("[%s] %s: %s %s", resolved.value.upper(), context, error, details if details else "")

        if self._lifecycle is not None:
            entry = {
                "timestamp": datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
                "kind": resolved.value,
                "context": context,
                "error_type": type(error).__name__,
                "message": str(error),
                "details": details,
            }
            try:
                await self._lifecycle.append(ERROR_LOG_NAME, orjson.dumps(entry, default=str).decode("utf-8"))
            except PersistenceError as exc:
                logger.error("Failed to persist error record: %s", exc)
        return resolved

    def daily_summary(self, day: date) -> Dict[str, Any]:
        """Counts per kind for one calendar day."""
        counts = dict(self._daily.get(day, Counter()))
        return {
            "date": day.isoformat(),
            "total_errors": sum(counts.values()),
            "by_kind": counts,
        }

    def write_daily_summary(self, day: date, directory: Path) -> Path:
        """Write ``daily-errors-<date>.json`` and forget counts for older days."""
        path = Path(directory) / f"daily-errors-{day.isoformat()}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_bytes(orjson.dumps(self.daily_summary(day), option=orjson.OPT_INDENT_2))
        except OSError as exc:
            raise PersistenceError(f"Failed to write daily error summary {path}", path=str(path)) from exc
        for stale in [known for known in self._daily if known < day]:
            del self._daily[stale]
        return path

    def _day_of(self, timestamp: float) -> date:
        return datetime.fromtimestamp(timestamp, tz=self._tz).date()


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


__all__ = ["ERROR_LOG_NAME", "ErrorRecorder"]
