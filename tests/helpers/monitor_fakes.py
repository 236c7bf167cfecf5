"""In-memory stand-ins for the monitor's collaborators."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Union

from availability_monitor.capabilities import (
    AlertContext,
    AvailabilityStatus,
    CheckRecord,
    CheckResult,
    DeliveryReceipt,
    SummaryStats,
)
from availability_monitor.errors import NotifyError

BASE_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self, clock: Optional[FakeClock] = None) -> None:
        self.delays: List[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


Outcome = Union[AvailabilityStatus, BaseException]


class FakeChecker:
    """Returns scripted statuses or raises scripted errors, one per call."""

    def __init__(self, outcomes: Sequence[Outcome] = (), clock: Optional[Callable[[], float]] = None) -> None:
        self.outcomes: List[Outcome] = list(outcomes)
        self.calls = 0
        self._clock = clock or (lambda: BASE_TIME)
        self.default: Outcome = AvailabilityStatus.UNAVAILABLE

    def script(self, *outcomes: Outcome) -> None:
        self.outcomes.extend(outcomes)

    async def check(self, target: str) -> CheckResult:
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return CheckResult(status=outcome, timestamp=self._clock(), detail=f"fake check of {target}")


class FakeNotifier:
    """Counts deliveries; ``fail_next`` scripts failures."""

    def __init__(self) -> None:
        self.alerts: List[AlertContext] = []
        self.summaries: List[SummaryStats] = []
        self.alert_calls = 0
        self.summary_calls = 0
        self.failures: List[BaseException] = []
        self.always_fail: Optional[BaseException] = None

    def fail_next(self, count: int = 1, error: Optional[BaseException] = None) -> None:
        for _ in range(count):
            self.failures.append(error or NotifyError("delivery failed"))

    def _maybe_fail(self) -> None:
        if self.always_fail is not None:
            raise self.always_fail
        if self.failures:
            raise self.failures.pop(0)

    async def send_alert(self, context: AlertContext) -> DeliveryReceipt:
        self.alert_calls += 1
        self._maybe_fail()
        self.alerts.append(context)
        return DeliveryReceipt(message_id=f"alert-{len(self.alerts)}")

    async def send_summary(self, stats: SummaryStats) -> DeliveryReceipt:
        self.summary_calls += 1
        self._maybe_fail()
        self.summaries.append(stats)
        return DeliveryReceipt(message_id=f"summary-{len(self.summaries)}")


class InMemoryCheckLog:
    """CheckLog kept in a list."""

    def __init__(self) -> None:
        self.records: List[CheckRecord] = []
        self.fail_with: Optional[BaseException] = None

    async def append(self, record: CheckRecord) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.records.append(record)

    async def get_all(self) -> List[CheckRecord]:
        return list(self.records)

    async def get_since(self, timestamp: float) -> List[CheckRecord]:
        matching = [record for record in self.records if timestamp <= record.timestamp]
        return sorted(matching, key=lambda record: record.timestamp, reverse=True)
