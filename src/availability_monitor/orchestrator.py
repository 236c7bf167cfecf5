"""
Orchestrator - runs check and summary ticks over the resilience components.

A check tick holds the state lock for its whole duration: it runs the checker
through the retry executor, records the observation, and on a transition into
AVAILABLE sends an alert, retrying each call through the circuit breaker and
falling back to the deferred queue. A summary tick is keyed by calendar date
and marks its date, in memory and in the summary marker, only after a
successful send. restore_state reloads what earlier runs persisted. Every
failure is recorded and returned inside the tick result rather than raised.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from .capabilities import (
    AlertContext,
    AvailabilityStatus,
    CheckLog,
    Checker,
    CheckRecord,
    CheckResult,
    DeliveryReceipt,
    Notifier,
    SummaryStats,
)
from .check_log_store import BufferedCheckLog
from .circuit_breaker import CircuitBreaker
from .deferred_queue import DeferredQueue
from .deferred_queue_helpers import ProcessResult
from .error_log import ErrorRecorder
from .errors import ErrorKind, LockTimeoutError, MonitorError, ShutdownInProgressError
from .health import HealthAggregator, HealthReport
from .health import probes
from .log_lifecycle import LogLifecycleManager
from .orchestrator_helpers import (
    CheckTickResult,
    MaintenanceResult,
    OrchestratorConfig,
    StatusReport,
    SUMMARY_MARKER_FILENAME,
    SummaryMarker,
    SummaryTickResult,
    TickError,
    build_summary_stats,
    day_window,
    due_summary_date,
    is_status_change,
    should_alert,
)
from .retry_executor import RetryExecutor, SleepFn
from .state_store import MonitoringState, StateStore

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns the monitor state and coordinates one target's checks and notifications."""

    def __init__(
        self,
        config: OrchestratorConfig,
        *,
        checker: Checker,
        notifier: Notifier,
        check_log: CheckLog,
        lifecycle: Optional[LogLifecycleManager] = None,
        error_recorder: Optional[ErrorRecorder] = None,
        clock: Callable[[], float] = time.time,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self.config = config
        self.checker = checker
        self.notifier = notifier
        self.check_log = check_log
        self.lifecycle = lifecycle
        self._clock = clock

        self.state = StateStore(default_lock_timeout=config.lock_timeout, clock=clock)
        self.retry = RetryExecutor(config.check_policy, sleep=sleep)
        self.breaker = CircuitBreaker(
            "notifier",
            threshold=config.breaker_threshold,
            cooldown_seconds=config.breaker_cooldown,
            clock=clock,
        )
        self.queue: DeferredQueue[AlertContext] = DeferredQueue(
            self._redeliver_alert,
            name="alerts",
            max_capacity=config.queue_capacity,
            max_redeliveries=config.queue_max_redeliveries,
            redelivery_delay=config.queue_redelivery_delay,
            clock=clock,
        )
        self.health = HealthAggregator(default_timeout=config.probe_timeout, clock=clock)
        self.errors = error_recorder or ErrorRecorder(lifecycle, clock=clock, tz=config.tz)
        self.summary_marker = SummaryMarker(config.data_dir / SUMMARY_MARKER_FILENAME) if config.data_dir is not None else None

        self._started_at = clock()
        self._accepting = True
        self._inflight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._summary_lock = asyncio.Lock()
        self._soft_failures = 0

    # ------------------------------------------------------------------ lifecycle

    def startup(self) -> None:
        """Reset state and register the built-in health probes; follow with ``restore_state``."""
        self.state.reset()
        self._accepting = True
        self._started_at = self._clock()
        self.register_default_probes()
        logger.info("Orchestrator started for %s (%s)", self.config.target_name, self.config.target_url)

    async def restore_state(self) -> MonitoringState:
        """
        Seed state from what earlier runs persisted.

        The last observed status and check time come from the newest successful
        check record; the summarized date comes from the summary marker. Storage
        failures are recorded and leave the corresponding fields at their defaults.
        """
        latest: Optional[CheckRecord] = None
        try:
            records = await self.check_log.get_all()
        except MonitorError as exc:
            await self.errors.record(exc, context="restore_state")
        else:
            latest = max((record for record in records if record.success), key=lambda record: record.timestamp, default=None)

        sent_for: Optional[date] = None
        if self.summary_marker is not None:
            try:
                sent_for = await self.summary_marker.load()
            except MonitorError as exc:
                await self.errors.record(exc, context="restore_state")

        def seed(current: MonitoringState) -> MonitoringState:
            if latest is not None:
                current = replace(current, last_observed_status=latest.status, last_check_timestamp=latest.timestamp)
            return replace(current, daily_summary_sent_for=sent_for)

        state = self.state.update(seed)
        logger.info(
            "Restored state: last status %s, summary sent for %s",
            state.last_observed_status.value,
            state.daily_summary_sent_for or "none",
        )
        return state

    def register_default_probes(self) -> None:
        self.health.register_check("application_state", probes.application_state_probe(self.state), core=True)
        self.health.register_check("circuit_breaker", probes.circuit_breaker_probe(self.breaker))
        self.health.register_check("deferred_queue", probes.deferred_queue_probe(self.queue))
        self.health.register_check("memory", probes.memory_probe())
        if isinstance(self.check_log, BufferedCheckLog):
            self.health.register_check("check_log", probes.check_log_probe(self.check_log), core=True)
        if self.config.data_dir is not None:
            self.health.register_check("disk_space", probes.disk_space_probe(self.config.data_dir), core=True)

    @property
    def accepting_ticks(self) -> bool:
        return self._accepting

    @property
    def soft_failures(self) -> int:
        return self._soft_failures

    async def shutdown(self, grace_period: float) -> bool:
        """
        Stop accepting ticks and wait for in-flight ones.

        Args:
            grace_period: Seconds to wait for running ticks

        Returns:
            True if everything finished within the grace period
        """
        self._accepting = False
        logger.info("Orchestrator shutting down; waiting up to %.0fs for %s in-flight ticks", grace_period, self._inflight)
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=grace_period)
            drained = True
        except asyncio.TimeoutError:
            drained = False
            logger.warning("Shutdown grace period elapsed with %s ticks still running", self._inflight)

        if self.state.read().in_progress:
            logger.warning("Clearing stale in-progress flag during shutdown")
            self.state.update(lambda current: replace(current, in_progress=False))
        return drained

    @asynccontextmanager
    async def _track(self) -> AsyncIterator[None]:
        self._inflight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._inflight -= 1
            if self._inflight == 0:
                self._idle.set()

    # ----------------------------------------------------------------- check tick

    async def check_tick(self) -> CheckTickResult:
        """Run one availability check; never raises for monitor errors."""
        previous = self.state.read().last_observed_status
        if not self._accepting:
            return self._refused(previous, ShutdownInProgressError("Monitor is shutting down; check skipped"))

        async with self._track():
            if not await self.state.acquire_lock(self.config.lock_timeout):
                self._soft_failures += 1
                error = LockTimeoutError(
                    f"Previous check still running; lock not acquired within {self.config.lock_timeout:.1f}s",
                    timeout=self.config.lock_timeout,
                )
                kind = await self.errors.record(error, context="check_tick")
                return CheckTickResult(
                    timestamp=self._clock(),
                    success=False,
                    previous_status=previous,
                    new_status=previous,
                    was_blocked=True,
                    skipped=True,
                    errors=[TickError.from_exception(error, kind)],
                )

            try:
                # shutdown may have started while this tick waited for the lock
                if not self._accepting:
                    return self._refused(
                        self.state.read().last_observed_status,
                        ShutdownInProgressError("Monitor is shutting down; check skipped"),
                    )
                self.state.update(lambda current: replace(current, in_progress=True))
                try:
                    return await self._run_check()
                finally:
                    self.state.update(lambda current: replace(current, in_progress=False))
            finally:
                self.state.release_lock()

    async def _run_check(self) -> CheckTickResult:
        previous = self.state.read().last_observed_status
        errors: List[TickError] = []

        try:
            result: CheckResult = await self.retry.execute(
                lambda: self.checker.check(self.config.target_url),
                self.config.check_policy,
                context=f"availability check of {self.config.target_name}",
                category="check",
            )
        except Exception as exc:
            return await self._record_failed_check(previous, exc, errors)

        new_status = result.status
        changed = is_status_change(previous, new_status)
        self.state.update(
            lambda current: replace(
                current,
                last_observed_status=new_status,
                last_check_timestamp=result.timestamp,
                consecutive_failures=0,
                check_count=current.check_count + 1,
            )
        )
        if changed:
            logger.info("%s changed: %s -> %s", self.config.target_name, previous.value, new_status.value)

        sent = queued = False
        if should_alert(previous, new_status, alert_on_first_check=self.config.alert_on_first_check):
            context = AlertContext(
                target_name=self.config.target_name,
                target_url=self.config.target_url,
                previous_status=previous,
                new_status=new_status,
                observed_at=result.timestamp,
                detail=result.detail,
            )
            sent, queued = await self._send_alert(context, errors)

        record = CheckRecord(
            timestamp=result.timestamp,
            status=new_status,
            success=True,
            previous_status=previous,
            status_changed=changed,
            notification_sent=sent,
            notification_queued=queued,
            detail=result.detail,
        )
        await self._persist(record, errors)
        return CheckTickResult(
            timestamp=result.timestamp,
            success=True,
            previous_status=previous,
            new_status=new_status,
            status_changed=changed,
            notification_sent=sent,
            notification_queued=queued,
            errors=errors,
        )

    async def _record_failed_check(self, previous: AvailabilityStatus, exc: Exception, errors: List[TickError]) -> CheckTickResult:
        kind = await self.errors.record(exc, context="check_tick", metadata={"target": self.config.target_name})
        errors.append(TickError.from_exception(exc, kind))
        now = self._clock()
        state = self.state.update(
            lambda current: replace(
                current,
                last_check_timestamp=now,
                consecutive_failures=current.consecutive_failures + 1,
                error_count=current.error_count + 1,
                last_error_timestamp=now,
                check_count=current.check_count + 1,
            )
        )
        logger.warning("Check of %s failed (%s consecutive failures)", self.config.target_name, state.consecutive_failures)

        record = CheckRecord(
            timestamp=now,
            status=AvailabilityStatus.UNKNOWN,
            success=False,
            previous_status=previous,
            error_kind=kind.value,
            error=str(exc),
        )
        await self._persist(record, errors)
        return CheckTickResult(timestamp=now, success=False, previous_status=previous, new_status=previous, errors=errors)

    async def _send_alert(self, context: AlertContext, errors: List[TickError]) -> tuple[bool, bool]:
        try:
            receipt = await self._deliver(lambda: self.notifier.send_alert(context), "availability alert")
        except Exception as exc:
            kind = await self.errors.record(exc, context="send_alert")
            errors.append(TickError.from_exception(exc, kind))
            enqueued = self.queue.enqueue(context)
            if not enqueued.accepted:
                errors.append(
                    TickError(
                        kind=ErrorKind.NOTIFY,
                        message="Deferred queue full; alert dropped",
                        context={"queue_size": enqueued.queue_size},
                    )
                )
            return False, enqueued.accepted

        logger.info("Availability alert sent for %s (message %s)", self.config.target_name, receipt.message_id)
        return True, False

    async def _deliver(self, send: Callable[[], Awaitable[DeliveryReceipt]], label: str) -> DeliveryReceipt:
        """Retry ``send`` under the notify policy; every attempt passes through the breaker."""
        return await self.retry.execute(
            lambda: self.breaker.execute(send),
            self.config.notify_policy,
            context=label,
            category="notify",
        )

    async def _redeliver_alert(self, context: AlertContext) -> None:
        await self.breaker.execute(lambda: self.notifier.send_alert(context))

    async def _persist(self, record: CheckRecord, errors: List[TickError]) -> None:
        try:
            await self.check_log.append(record)
        except MonitorError as exc:
            kind = await self.errors.record(exc, context="persist_check")
            errors.append(TickError.from_exception(exc, kind))

    def _refused(self, previous: AvailabilityStatus, error: MonitorError) -> CheckTickResult:
        logger.info("%s", error)
        return CheckTickResult(
            timestamp=self._clock(),
            success=False,
            previous_status=previous,
            new_status=previous,
            skipped=True,
            errors=[TickError.from_exception(error, error.kind)],
        )

    # ------------------------------------------------------------- deferred drain

    async def drain_deferred(self) -> ProcessResult:
        """Redeliver due alerts; permanently failed ones are recorded."""
        result = await self.queue.process_due()
        for dropped in result.dropped:
            await self.errors.record(
                dropped.error,
                context="deferred_delivery",
                metadata={"entry_id": dropped.entry.entry_id, "attempts": dropped.entry.attempt_count},
            )
        return result

    # --------------------------------------------------------------- summary tick

    async def summary_tick(self, for_date: Optional[date] = None) -> SummaryTickResult:
        """
        Send the daily summary once per date.

        Args:
            for_date: Summarize this day instead of the one currently due
        """
        if not self._accepting:
            error = ShutdownInProgressError("Monitor is shutting down; summary skipped")
            return SummaryTickResult(success=False, date=for_date, skipped=True, errors=[TickError.from_exception(error, error.kind)])
        if self._summary_lock.locked():
            logger.debug("Summary tick already running; skipping")
            return SummaryTickResult(success=False, date=for_date, skipped=True)

        async with self._summary_lock, self._track():
            day = for_date or due_summary_date(self._clock(), self.config.tz, self.config.summary_time)
            if day is None:
                return SummaryTickResult(success=True, date=None, due=False)
            if self.state.read().daily_summary_sent_for == day:
                logger.debug("Summary for %s already sent", day)
                return SummaryTickResult(success=True, date=day, already_sent=True)

            try:
                stats = await self.build_summary(day)
                await self._deliver(lambda: self.notifier.send_summary(stats), f"daily summary for {day}")
            except Exception as exc:
                kind = await self.errors.record(exc, context="summary_tick", metadata={"date": day.isoformat()})
                return SummaryTickResult(success=False, date=day, errors=[TickError.from_exception(exc, kind)])

            self.state.update(lambda current: replace(current, daily_summary_sent_for=day))
            logger.info("Daily summary for %s sent (%s checks)", day, stats.total_checks)
            errors: List[TickError] = []
            if self.summary_marker is not None:
                try:
                    await self.summary_marker.save(day, self._clock())
                except MonitorError as exc:
                    kind = await self.errors.record(exc, context="summary_marker", metadata={"date": day.isoformat()})
                    errors.append(TickError.from_exception(exc, kind))
            return SummaryTickResult(success=True, date=day, notification_sent=True, errors=errors)

    async def build_summary(self, day: date) -> SummaryStats:
        window_start, _ = day_window(day, self.config.tz)
        records = await self.check_log.get_since(window_start)
        return build_summary_stats(records, day, self.config.tz, self.config.target_name)

    # ---------------------------------------------------------------- maintenance

    async def run_health_checks(self) -> HealthReport:
        return await self.health.run_checks(self.config.probe_timeout)

    async def run_maintenance(self) -> MaintenanceResult:
        """Rotate and prune logs, run health checks and write yesterday's error summary."""
        errors: List[TickError] = []
        rotated = []
        removed = []
        if self.lifecycle is not None:
            try:
                rotated = await self.lifecycle.rotate()
                removed = await self.lifecycle.cleanup(self.config.log_retention_days)
            except MonitorError as exc:
                kind = await self.errors.record(exc, context="log_maintenance")
                errors.append(TickError.from_exception(exc, kind))

        report = await self.run_health_checks()

        summary_path = None
        if self.config.error_summary_dir is not None:
            yesterday = datetime.fromtimestamp(self._clock(), tz=self.config.tz).date() - timedelta(days=1)
            try:
                summary_path = self.errors.write_daily_summary(yesterday, self.config.error_summary_dir)
            except MonitorError as exc:
                kind = await self.errors.record(exc, context="error_summary")
                errors.append(TickError.from_exception(exc, kind))

        logger.info(
            "Maintenance complete: %s rotated, %s removed, health %s",
            len(rotated),
            len(removed),
            report.overall.value,
        )
        return MaintenanceResult(rotated=rotated, removed=removed, health=report, error_summary_path=summary_path, errors=errors)

    # --------------------------------------------------------------------- status

    def read_state(self) -> MonitoringState:
        return self.state.read()

    def get_status(self) -> StatusReport:
        return StatusReport(
            state=self.state.read(),
            breaker=self.breaker.get_status(),
            queue=self.queue.get_status(),
            health=self.health.last_report,
            uptime_seconds=self._clock() - self._started_at,
            accepting_ticks=self._accepting,
            errors_by_kind=self.errors.counts_by_kind(),
        )


__all__ = ["Orchestrator"]
