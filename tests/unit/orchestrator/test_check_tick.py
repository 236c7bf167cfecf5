"""Tests for Orchestrator.check_tick and deferred redelivery."""

import asyncio

import pytest

from availability_monitor.backoff_helpers import NOTIFY_RETRY_POLICY
from availability_monitor.capabilities import AvailabilityStatus, CheckResult
from availability_monitor.circuit_breaker import CircuitState
from availability_monitor.errors import ErrorKind, NetworkError, PersistenceError, ValidationError

AVAILABLE = AvailabilityStatus.AVAILABLE
UNAVAILABLE = AvailabilityStatus.UNAVAILABLE
UNKNOWN = AvailabilityStatus.UNKNOWN


class BlockingChecker:
    """Checker that waits until released, signalling when a check has started."""

    def __init__(self, clock):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0
        self._clock = clock

    async def check(self, target):
        self.calls += 1
        self.entered.set()
        await self.release.wait()
        return CheckResult(status=UNAVAILABLE, timestamp=self._clock())


class TestStatusTransitions:
    @pytest.mark.asyncio
    async def test_first_check_records_status_without_alert(self, make_orchestrator, checker, notifier, check_log):
        orchestrator = make_orchestrator()
        checker.script(AVAILABLE)

        result = await orchestrator.check_tick()

        assert result.success is True
        assert result.previous_status is UNKNOWN
        assert result.new_status is AVAILABLE
        assert result.status_changed is False
        assert result.notification_sent is False
        assert notifier.alert_calls == 0
        assert orchestrator.read_state().last_observed_status is AVAILABLE
        assert len(check_log.records) == 1

    @pytest.mark.asyncio
    async def test_first_check_alerts_when_configured(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator(alert_on_first_check=True)
        checker.script(AVAILABLE)

        result = await orchestrator.check_tick()

        assert result.notification_sent is True
        assert len(notifier.alerts) == 1

    @pytest.mark.asyncio
    async def test_transition_to_available_sends_exactly_one_alert(self, make_orchestrator, checker, notifier, check_log):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, AVAILABLE)

        await orchestrator.check_tick()
        result = await orchestrator.check_tick()

        assert result.status_changed is True
        assert result.notification_sent is True
        assert notifier.alert_calls == 1
        alert = notifier.alerts[0]
        assert alert.previous_status is UNAVAILABLE
        assert alert.new_status is AVAILABLE
        assert alert.target_name == "Example Widget"
        assert check_log.records[-1].notification_sent is True

    @pytest.mark.asyncio
    async def test_staying_available_sends_nothing(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, AVAILABLE, AVAILABLE, AVAILABLE)

        for _ in range(4):
            await orchestrator.check_tick()

        assert notifier.alert_calls == 1

    @pytest.mark.asyncio
    async def test_becoming_unavailable_changes_status_without_alert(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, AVAILABLE, UNAVAILABLE)

        for _ in range(2):
            await orchestrator.check_tick()
        result = await orchestrator.check_tick()

        assert result.status_changed is True
        assert result.notification_sent is False
        assert notifier.alert_calls == 1

    @pytest.mark.asyncio
    async def test_state_counters(self, make_orchestrator, checker, clock):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, UNAVAILABLE)

        await orchestrator.check_tick()
        await orchestrator.check_tick()

        state = orchestrator.read_state()
        assert state.check_count == 2
        assert state.last_check_timestamp == clock.now
        assert state.in_progress is False


class TestCheckFailures:
    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, make_orchestrator, checker, fake_sleep):
        orchestrator = make_orchestrator()
        checker.script(NetworkError("reset"), UNAVAILABLE)

        result = await orchestrator.check_tick()

        assert result.success is True
        assert checker.calls == 2
        assert fake_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_record_failure(self, make_orchestrator, checker, check_log, fake_sleep):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE)
        await orchestrator.check_tick()
        checker.script(NetworkError("down"), NetworkError("down"), NetworkError("down"))

        result = await orchestrator.check_tick()

        assert result.success is False
        assert result.new_status is UNAVAILABLE
        assert result.error_kinds == [ErrorKind.NETWORK]
        assert result.errors[0].context["attempts"] == 3
        assert checker.calls == 4
        assert fake_sleep.delays == [1.0, 2.0]

        state = orchestrator.read_state()
        assert state.last_observed_status is UNAVAILABLE
        assert state.consecutive_failures == 1
        assert state.error_count == 1
        assert state.in_progress is False

        record = check_log.records[-1]
        assert record.status is UNKNOWN
        assert record.success is False
        assert record.error_kind == "network"

    @pytest.mark.asyncio
    async def test_fatal_failure_is_not_retried(self, make_orchestrator, checker):
        orchestrator = make_orchestrator()
        checker.script(ValidationError("HTTP 404"))

        result = await orchestrator.check_tick()

        assert checker.calls == 1
        assert result.error_kinds == [ErrorKind.VALIDATION]

    @pytest.mark.asyncio
    async def test_unexpected_exception_still_clears_in_progress(self, make_orchestrator, checker):
        orchestrator = make_orchestrator()
        checker.script(RuntimeError("parser bug"))

        result = await orchestrator.check_tick()

        assert result.success is False
        assert result.error_kinds == [ErrorKind.APPLICATION]
        assert orchestrator.read_state().in_progress is False
        assert orchestrator.state.locked is False

    @pytest.mark.asyncio
    async def test_success_resets_consecutive_failures(self, make_orchestrator, checker):
        orchestrator = make_orchestrator()
        checker.script(ValidationError("bad"), ValidationError("bad"), UNAVAILABLE)

        await orchestrator.check_tick()
        await orchestrator.check_tick()
        assert orchestrator.read_state().consecutive_failures == 2

        await orchestrator.check_tick()
        assert orchestrator.read_state().consecutive_failures == 0
        assert orchestrator.read_state().error_count == 2

    @pytest.mark.asyncio
    async def test_persist_failure_is_reported_not_raised(self, make_orchestrator, checker, check_log):
        orchestrator = make_orchestrator()
        check_log.fail_with = PersistenceError("disk full")
        checker.script(UNAVAILABLE)

        result = await orchestrator.check_tick()

        assert result.success is True
        assert result.error_kinds == [ErrorKind.PERSISTENCE]
        assert orchestrator.read_state().last_observed_status is UNAVAILABLE


class TestLocking:
    @pytest.mark.asyncio
    async def test_tick_skipped_when_lock_held(self, make_orchestrator, checker):
        orchestrator = make_orchestrator()
        assert await orchestrator.state.acquire_lock()

        result = await orchestrator.check_tick()

        orchestrator.state.release_lock()
        assert result.was_blocked is True
        assert result.skipped is True
        assert result.error_kinds == [ErrorKind.LOCK_TIMEOUT]
        assert checker.calls == 0
        assert orchestrator.soft_failures == 1

    @pytest.mark.asyncio
    async def test_overlapping_ticks_run_one_check(self, make_orchestrator, clock):
        orchestrator = make_orchestrator()
        blocking = BlockingChecker(clock)
        orchestrator.checker = blocking

        first = asyncio.create_task(orchestrator.check_tick())
        await blocking.entered.wait()
        assert orchestrator.read_state().in_progress is True

        second = await orchestrator.check_tick()
        blocking.release.set()
        first_result = await first

        assert second.was_blocked is True
        assert first_result.success is True
        assert blocking.calls == 1
        assert orchestrator.read_state().in_progress is False


class TestNotificationFailures:
    @pytest.mark.asyncio
    async def test_failed_alert_is_queued(self, make_orchestrator, checker, notifier, check_log):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, AVAILABLE)
        notifier.fail_next()

        await orchestrator.check_tick()
        result = await orchestrator.check_tick()

        assert result.success is True
        assert result.notification_sent is False
        assert result.notification_queued is True
        assert result.error_kinds == [ErrorKind.NOTIFY]
        assert len(orchestrator.queue) == 1
        assert check_log.records[-1].notification_queued is True

    @pytest.mark.asyncio
    async def test_queued_alert_is_redelivered_once(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator()
        checker.script(UNAVAILABLE, AVAILABLE)
        notifier.fail_next()
        await orchestrator.check_tick()
        await orchestrator.check_tick()

        first = await orchestrator.drain_deferred()
        second = await orchestrator.drain_deferred()

        assert len(first.delivered) == 1
        assert second.attempted == 0
        assert len(notifier.alerts) == 1
        assert len(orchestrator.queue) == 0

    @pytest.mark.asyncio
    async def test_redelivery_gives_up_after_max_attempts(self, make_orchestrator, checker, notifier, clock):
        orchestrator = make_orchestrator(breaker_threshold=50)
        checker.script(UNAVAILABLE, AVAILABLE)
        notifier_error = NetworkError("telegram down")
        notifier.always_fail = notifier_error
        await orchestrator.check_tick()
        await orchestrator.check_tick()

        dropped = []
        for _ in range(3):
            result = await orchestrator.drain_deferred()
            dropped.extend(result.dropped)
            clock.advance(10_000)

        assert len(dropped) == 1
        assert dropped[0].error is notifier_error
        assert len(orchestrator.queue) == 0
        assert orchestrator.errors.counts_by_kind()["network"] >= 1

    @pytest.mark.asyncio
    async def test_breaker_opens_after_threshold_and_fails_fast(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator()
        notifier.always_fail = NetworkError("telegram down")

        for _ in range(5):
            checker.script(UNAVAILABLE, AVAILABLE)
            await orchestrator.check_tick()
            await orchestrator.check_tick()

        assert notifier.alert_calls == 5
        assert orchestrator.breaker.get_status().state is CircuitState.OPEN

        checker.script(UNAVAILABLE, AVAILABLE)
        await orchestrator.check_tick()
        result = await orchestrator.check_tick()

        assert notifier.alert_calls == 5
        assert result.error_kinds == [ErrorKind.CIRCUIT_OPEN]
        assert result.notification_queued is True

    @pytest.mark.asyncio
    async def test_every_notifier_attempt_counts_toward_threshold(self, make_orchestrator, checker, notifier, fake_sleep):
        orchestrator = make_orchestrator()
        assert orchestrator.config.notify_policy == NOTIFY_RETRY_POLICY
        notifier.always_fail = NetworkError("telegram down")

        while notifier.alert_calls < 5:
            checker.script(UNAVAILABLE, AVAILABLE)
            await orchestrator.check_tick()
            await orchestrator.check_tick()

        status = orchestrator.breaker.get_status()
        assert notifier.alert_calls == 5
        assert status.state is CircuitState.OPEN
        assert status.failure_count == 5
        assert fake_sleep.delays == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_retried_alert_succeeds_within_one_tick(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator()
        notifier.fail_next(error=NetworkError("reset by peer"))
        checker.script(UNAVAILABLE, AVAILABLE)

        await orchestrator.check_tick()
        result = await orchestrator.check_tick()

        assert result.notification_sent is True
        assert result.notification_queued is False
        assert notifier.alert_calls == 2
        assert orchestrator.breaker.get_status().failure_count == 0

    @pytest.mark.asyncio
    async def test_open_breaker_defers_redelivery_until_cooldown(self, make_orchestrator, checker, notifier, clock):
        orchestrator = make_orchestrator(breaker_threshold=1)
        notifier.fail_next()
        checker.script(UNAVAILABLE, AVAILABLE)
        await orchestrator.check_tick()
        await orchestrator.check_tick()
        assert orchestrator.breaker.is_open()

        blocked = await orchestrator.drain_deferred()
        assert blocked.rescheduled
        assert notifier.alert_calls == 1
        assert orchestrator.queue.entries()[0].attempt_count == 0

        clock.advance(301)
        delivered = await orchestrator.drain_deferred()

        assert len(delivered.delivered) == 1
        assert len(notifier.alerts) == 1
        assert orchestrator.breaker.get_status().state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_full_queue_reports_dropped_alert(self, make_orchestrator, checker, notifier):
        orchestrator = make_orchestrator(queue_capacity=1, breaker_threshold=50)
        notifier.always_fail = NetworkError("telegram down")

        for _ in range(2):
            checker.script(UNAVAILABLE, AVAILABLE)
            await orchestrator.check_tick()
            result = await orchestrator.check_tick()

        assert result.notification_queued is False
        assert result.errors[-1].message == "Deferred queue full; alert dropped"
        assert len(orchestrator.queue) == 1
