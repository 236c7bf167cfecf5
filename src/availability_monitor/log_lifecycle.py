"""Size-based rotation and age-based pruning of the monitor's log files."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_RETENTION_DAYS = 30
_SECONDS_PER_DAY = 86400
_ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"


@dataclass(frozen=True)
class LogFileDescriptor:
    path: Path
    size_bytes: int
    created_at: float
    archived: bool


class LogLifecycleManager:
    """
    Owns a set of named log files under one directory.

    ``name`` maps to ``<log_dir>/<name>.log``; archives are named
    ``<name>-<UTC timestamp>.log``. Appends and rotation share one lock so a
    line is written either to the old file before the rename or to the fresh
    file after it.
    """

    def __init__(
        self,
        log_dir: Path,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        managed: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_bytes < 1:
            raise ValidationError(f"max_bytes must be positive (got {max_bytes})", field="max_bytes")
        self.log_dir = Path(log_dir)
        self.max_bytes = max_bytes
        self._clock = clock
        self._lock = asyncio.Lock()
        self._managed: Dict[str, Path] = {}
        for name in managed:
            self.manage(name)

    def manage(self, name: str) -> Path:
        """Start tracking ``name``; returns the active file path."""
        path = self.path_for(name)
        self._managed[name] = path
        return path

    def path_for(self, name: str) -> Path:
        return self.log_dir / f"{name}.log"

    @property
    def managed_names(self) -> List[str]:
        return list(self._managed)

    async def append(self, name: str, line: str) -> None:
        """Append one line to the named file, creating it if needed."""
        path = self._managed.get(name) or self.manage(name)
        text = line if line.endswith("\n") else f"{line}\n"
        async with self._lock:
            try:
                await asyncio.to_thread(_append_text, path, text)
            except OSError as exc:
                raise PersistenceError(f"Failed to append to {path}", path=str(path)) from exc

    async def rotate(self, name: Optional[str] = None) -> List[Path]:
        """
        Archive active files that have grown past ``max_bytes``.

        Args:
            name: Only consider this file; all managed files when omitted

        Returns:
            Paths of the archives created
        """
        names = [name] if name is not None else list(self._managed)
        archived: List[Path] = []
        async with self._lock:
            for current in names:
                path = self._managed.get(current) or self.manage(current)
                try:
                    archive = await asyncio.to_thread(self._rotate_file, current, path)
                except OSError as exc:
                    raise PersistenceError(f"Failed to rotate {path}", path=str(path)) from exc
                if archive is not None:
                    archived.append(archive)
                    logger.info("Rotated %s to %s", path.name, archive.name)
        return archived

    async def cleanup(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> List[Path]:
        """
        Delete archives older than the retention window.

        Args:
            retention_days: Archives last modified before now minus this many days are removed

        Returns:
            Paths that were deleted
        """
        if retention_days < 0:
            raise ValidationError(f"retention_days must be non-negative (got {retention_days})", field="retention_days")
        cutoff = self._clock() - retention_days * _SECONDS_PER_DAY
        async with self._lock:
            removed = await asyncio.to_thread(self._remove_archives_before, cutoff)
        if removed:
            logger.info("Removed %s log archives older than %s days", len(removed), retention_days)
        return removed

    def describe(self) -> List[LogFileDescriptor]:
        """Describe active files and archives that currently exist."""
        descriptors: List[LogFileDescriptor] = []
        for name, path in self._managed.items():
            if path.exists():
                descriptors.append(_descriptor(path, archived=False))
            for archive in self._archives(name):
                descriptors.append(_descriptor(archive, archived=True))
        return descriptors

    def _rotate_file(self, name: str, path: Path) -> Optional[Path]:
        if not path.exists() or path.stat().st_size <= self.max_bytes:
            return None
        stamp = datetime.fromtimestamp(self._clock(), tz=timezone.utc).strftime(_ARCHIVE_TIMESTAMP_FORMAT)
        archive = self.log_dir / f"{name}-{stamp}.log"
        suffix = 1
        while archive.exists():
            archive = self.log_dir / f"{name}-{stamp}-{suffix}.log"
            suffix += 1
        path.rename(archive)
        path.touch()
        return archive

    def _archives(self, name: str) -> List[Path]:
        if not self.log_dir.exists():
            return []
        return sorted(self.log_dir.glob(f"{name}-*.log"))

    def _remove_archives_before(self, cutoff: float) -> List[Path]:
        removed: List[Path] = []
        for name in self._managed:
            for archive in self._archives(name):
                try:
                    if archive.stat().st_mtime < cutoff:
                        archive.unlink()
                        removed.append(archive)
                except FileNotFoundError:
                    logger.debug("Archive %s disappeared during cleanup", archive)
        return removed


def _append_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(text)


def _descriptor(path: Path, *, archived: bool) -> LogFileDescriptor:
    stat = path.stat()
    return LogFileDescriptor(path=path, size_bytes=stat.st_size, created_at=stat.st_ctime, archived=archived)


__all__ = ["DEFAULT_MAX_BYTES", "DEFAULT_RETENTION_DAYS", "LogFileDescriptor", "LogLifecycleManager"]
