"""Wires settings, adapters and the orchestrator into a long-running service."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .capabilities import Checker, Notifier
from .check_log_store import BufferedCheckLog, JsonLinesCheckLog
from .checkers import HttpAvailabilityChecker
from .config import MonitorSettings
from .error_log import ErrorRecorder
from .log_lifecycle import LogLifecycleManager
from .notifiers import LogNotifier, TelegramClient, TelegramNotifier
from .orchestrator import Orchestrator
from .orchestrator_helpers import OrchestratorConfig
from .periodic_task import PeriodicTask

logger = logging.getLogger(__name__)

SERVICE_NAME = "availability_monitor"
CHECK_LOG_FILENAME = "checks.jsonl"
MAINTENANCE_INTERVAL_SECONDS = 24 * 60 * 60


def build_checker(settings: MonitorSettings) -> Checker:
    return HttpAvailabilityChecker(settings.available_marker, timeout_seconds=settings.http_timeout_seconds)


def build_notifier(settings: MonitorSettings, *, dry_run: bool = False) -> Notifier:
    if dry_run:
        return LogNotifier(tz=settings.tzinfo)
    telegram = settings.require_telegram()
    client = TelegramClient(telegram.bot_token, timeout_seconds=telegram.timeout_seconds)
    return TelegramNotifier(client, telegram.chat_ids, tz=settings.tzinfo)


def build_orchestrator(
    settings: MonitorSettings,
    *,
    checker: Optional[Checker] = None,
    notifier: Optional[Notifier] = None,
    service_name: str = SERVICE_NAME,
    dry_run: bool = False,
) -> Orchestrator:
    """Construct an orchestrator with file-backed stores under the configured directories."""
    lifecycle = LogLifecycleManager(settings.log_dir, max_bytes=settings.log_max_bytes, managed=[service_name])
    check_log = BufferedCheckLog(JsonLinesCheckLog(settings.data_dir / CHECK_LOG_FILENAME))
    config = OrchestratorConfig.from_settings(settings)
    return Orchestrator(
        config,
        checker=checker or build_checker(settings),
        notifier=notifier or build_notifier(settings, dry_run=dry_run),
        check_log=check_log,
        lifecycle=lifecycle,
        error_recorder=ErrorRecorder(lifecycle, tz=config.tz),
    )


class MonitorService:
    """Runs the check, summary, redelivery and maintenance loops around one orchestrator."""

    def __init__(self, settings: MonitorSettings, orchestrator: Optional[Orchestrator] = None) -> None:
        self.settings = settings
        self.orchestrator = orchestrator or build_orchestrator(settings)
        self._tasks: List[PeriodicTask] = [
            PeriodicTask("check", self._check, settings.check_interval_seconds),
            PeriodicTask("summary", self._summary, settings.summary_poll_seconds),
            PeriodicTask(
                "deferred-drain",
                self.orchestrator.drain_deferred,
                settings.queue.drain_interval_seconds,
                initial_delay=settings.queue.drain_interval_seconds,
            ),
            PeriodicTask("maintenance", self.orchestrator.run_maintenance, MAINTENANCE_INTERVAL_SECONDS),
        ]

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks)

    async def _check(self) -> None:
        result = await self.orchestrator.check_tick()
        if result.errors:
            logger.info(
                "Check tick finished with %s errors (%s)",
                len(result.errors),
                ", ".join(kind.value for kind in result.error_kinds),
            )

    async def _summary(self) -> None:
        result = await self.orchestrator.summary_tick()
        if not result.success and not result.skipped:
            logger.warning("Daily summary for %s not sent; will retry on the next poll", result.date)

    async def start(self) -> None:
        self.orchestrator.startup()
        await self.orchestrator.restore_state()
        for task in self._tasks:
            task.start()
        logger.info("Monitoring %s every %.0fs", self.settings.target_name, self.settings.check_interval_seconds)

    async def stop(self) -> bool:
        """Drain in-flight ticks, then stop every loop; True if ticks finished within the grace period."""
        drained = await self.orchestrator.shutdown(self.settings.shutdown_grace_seconds)
        await asyncio.gather(*(task.stop() for task in self._tasks))
        logger.info("Monitor stopped%s", "" if drained else " (in-flight work abandoned)")
        return drained

    async def run(self, stop_event: asyncio.Event) -> None:
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()


__all__ = ["CHECK_LOG_FILENAME", "MonitorService", "SERVICE_NAME", "build_checker", "build_notifier", "build_orchestrator"]
