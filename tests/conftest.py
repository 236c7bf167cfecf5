"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from typing import Any

import pytest

from availability_monitor.backoff_helpers import RetryPolicy
from availability_monitor.orchestrator import Orchestrator
from availability_monitor.orchestrator_helpers import OrchestratorConfig
from tests.helpers.monitor_fakes import FakeChecker, FakeClock, FakeNotifier, InMemoryCheckLog, RecordingSleep

# Set required environment variables for tests
os.environ.setdefault("MONITOR_TARGET_URL", "https://shop.example.com/product/123")
os.environ.setdefault("MONITOR_TARGET_NAME", "Example Widget")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def checker(clock: FakeClock) -> FakeChecker:
    return FakeChecker(clock=clock)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def check_log() -> InMemoryCheckLog:
    return InMemoryCheckLog()


@pytest.fixture
def make_orchestrator(clock, fake_sleep, checker, notifier, check_log):
    """Factory building an orchestrator over the fakes; keyword args override config fields."""

    def _make(**overrides: Any) -> Orchestrator:
        settings = {
            "target_url": "https://shop.example.com/product/123",
            "target_name": "Example Widget",
            "lock_timeout": 0.05,
            "check_policy": RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=4.0),
            "breaker_threshold": 5,
            "breaker_cooldown": 300.0,
            "queue_capacity": 50,
            "queue_max_redeliveries": 3,
            "queue_redelivery_delay": 60.0,
        }
        settings.update(overrides)
        orchestrator = Orchestrator(
            OrchestratorConfig(**settings),
            checker=checker,
            notifier=notifier,
            check_log=check_log,
            clock=clock,
            sleep=fake_sleep,
        )
        orchestrator.startup()
        return orchestrator

    return _make
