"""
Pytest configuration and fixtures for the recovery engine tests.
"""

from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

from recovery_engine import (
    ErrorCategory,
    ErrorRecoveryEngine,
    ErrorReport,
    ErrorSeverity,
    RecoveryOptions,
    SystemErrorRecord,
)
from recovery_engine.error_handling import CircuitBreakerManager, ErrorStore
from recovery_engine.events import EventBus
from recovery_engine.recovery import (
    ActionDispatcher,
    RecoveryExecutor,
    StrategyRegistry,
)


class EventRecorder:
    """Collects event payloads per topic."""

    def __init__(self):
        self.events: Dict[str, List[Any]] = {}

    def listener(self, topic: str):
        def record(payload):
            self.events.setdefault(topic, []).append(payload)

        return record

    def of(self, topic: str) -> List[Any]:
        return self.events.get(topic, [])


@pytest.fixture
def options():
    """Options with background health polling off so tests control every tick."""
    return RecoveryOptions(enable_health_checks=False)


@pytest.fixture
def sleep_mock():
    """Backoff sleep that returns immediately and records the requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def engine(options, sleep_mock):
    """Engine with built-in strategies and an instant backoff sleep."""
    return ErrorRecoveryEngine(options, sleep=sleep_mock)


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def plugin_load_report():
    """The report used by the plugin-load recovery scenarios."""
    return ErrorReport(
        severity=ErrorSeverity.MEDIUM,
        category=ErrorCategory.PLUGIN_LOAD,
        message="Plugin failed to load",
        source="plugin-loader",
        plugin="x",
        context={},
    )


@pytest.fixture
def make_error():
    """Factory for stored-style error records."""

    def _make(**overrides) -> SystemErrorRecord:
        fields = {
            "severity": ErrorSeverity.MEDIUM,
            "category": ErrorCategory.PLUGIN_LOAD,
            "message": "Plugin failed to load",
            "source": "plugin-loader",
            "plugin": "x",
        }
        fields.update(overrides)
        return SystemErrorRecord(**fields)

    return _make


@pytest.fixture
def executor_parts(options, sleep_mock):
    """Executor wired to fresh components, for tests that bypass the engine facade."""
    event_bus = EventBus()
    store = ErrorStore()
    registry = StrategyRegistry()
    breakers = CircuitBreakerManager()
    dispatcher = ActionDispatcher(event_bus, options)
    executor = RecoveryExecutor(
        store, registry, breakers, dispatcher, event_bus, options, sleep=sleep_mock
    )
    return {
        "event_bus": event_bus,
        "store": store,
        "registry": registry,
        "breakers": breakers,
        "dispatcher": dispatcher,
        "executor": executor,
    }
