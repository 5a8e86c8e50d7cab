"""
Tests for error storage and circuit breaker protection.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from recovery_engine.error_handling import (
    CircuitBreaker,
    CircuitBreakerManager,
    CircuitBreakerState,
    ErrorStore,
)


class TestErrorStore:
    """Test the in-memory error store."""

    def test_put_resets_resolution_state(self, make_error):
        """Inserted errors are unresolved with zero retries."""
        store = ErrorStore()
        error = make_error(resolved=True, retry_count=4, resolution_method="x")
        stored = store.put(error)
        assert stored.resolved is False
        assert stored.retry_count == 0
        assert stored.resolution_method is None
        assert store.get(error.id) is stored

    def test_list_is_insertion_ordered(self, make_error):
        """Listing preserves report order."""
        store = ErrorStore()
        ids = [store.put(make_error()).id for _ in range(5)]
        assert [e.id for e in store.list()] == ids
        assert len(store) == 5
        assert ids[0] in store

    def test_mark_resolved(self, make_error):
        """Resolution sets the flag, timestamp and method."""
        store = ErrorStore()
        error = store.put(make_error())
        store.mark_resolved(error.id, "Plugin Load Retry")
        assert error.resolved is True
        assert error.resolved_at is not None
        assert error.resolution_method == "Plugin Load Retry"
        assert store.resolved_count() == 1

    def test_mark_resolved_unknown_id(self):
        """Unknown ids raise KeyError."""
        with pytest.raises(KeyError):
            ErrorStore().mark_resolved("missing", "m")

    def test_increment_retry(self, make_error):
        """Each increment returns the new count."""
        store = ErrorStore()
        error = store.put(make_error())
        assert store.increment_retry(error.id) == 1
        assert store.increment_retry(error.id) == 2
        assert error.retry_count == 2

    def test_older_than(self, make_error):
        """Entries older than the cutoff are listed, nothing is evicted."""
        store = ErrorStore()
        old = store.put(make_error(timestamp=datetime.now() - timedelta(days=10)))
        store.put(make_error())
        cutoff = datetime.now() - timedelta(days=7)
        assert store.older_than(cutoff) == [old.id]
        assert len(store) == 2

    def test_clear(self, make_error):
        """Clearing empties the store."""
        store = ErrorStore()
        store.put(make_error())
        store.clear()
        assert len(store) == 0


class TestCircuitBreaker:
    """Test circuit breaker state transitions."""

    def test_initialization(self):
        """Breakers start closed with default thresholds."""
        cb = CircuitBreaker(id="component:db")
        assert cb.state == CircuitBreakerState.CLOSED
        assert cb.failure_threshold == 5
        assert cb.recovery_timeout == 60.0
        assert cb.failure_count == 0
        assert cb.next_attempt_time is None

    def test_half_open_failure_at_threshold_reopens(self):
        """A failed half-open probe at the threshold re-opens with a fresh deadline."""
        opened_at = datetime(2024, 1, 1, 12, 0, 0)
        cb = CircuitBreaker.for_component("db", failure_threshold=2, recovery_timeout=30)
        cb.record_failure(opened_at)
        cb.record_failure(opened_at)
        probe_time = opened_at + timedelta(seconds=30)
        assert cb.can_proceed(probe_time) is True
        assert cb.state == CircuitBreakerState.HALF_OPEN

        failed_at = probe_time + timedelta(seconds=1)
        cb.record_failure(failed_at)
        assert cb.state == CircuitBreakerState.OPEN
        assert cb.failure_count == 3
        assert cb.next_attempt_time == failed_at + timedelta(seconds=30)
        assert cb.can_proceed(failed_at + timedelta(seconds=29)) is False

    def test_half_open_failure_below_threshold_stays_half_open(self):
        """Below the threshold a half-open failure only counts."""
        now = datetime(2024, 1, 1, 12, 0, 0)
        cb = CircuitBreaker(
            id="component:db",
            component="db",
            state=CircuitBreakerState.HALF_OPEN,
            failure_count=1,
            failure_threshold=3,
        )

        cb.record_failure(now)
        assert cb.state == CircuitBreakerState.HALF_OPEN
        assert cb.failure_count == 2
        assert cb.next_attempt_time is None
        assert cb.can_proceed(now) is True

    def test_factories(self):
        """Plugin and component breakers use prefixed ids."""
        assert CircuitBreaker.for_plugin("x").id == "plugin:x"
        component = CircuitBreaker.for_component("db", failure_threshold=2)
        assert component.id == "component:db"
        assert component.component == "db"
        assert component.failure_threshold == 2

    def test_opens_exactly_at_threshold(self):
        """CLOSED moves to OPEN when failures reach the threshold."""
        cb = CircuitBreaker.for_component("db", failure_threshold=3)
        now = datetime(2024, 1, 1, 12, 0, 0)

        cb.record_failure(now)
        cb.record_failure(now)
        assert cb.state == CircuitBreakerState.CLOSED
        assert cb.can_proceed(now) is True

        cb.record_failure(now)
        assert cb.state == CircuitBreakerState.OPEN
        assert cb.failure_count == 3
        assert cb.last_failure_time == now
        assert cb.next_attempt_time == now + timedelta(seconds=60)

    def test_open_blocks_until_next_attempt_time(self):
        """OPEN blocks attempts until the deadline, then derives HALF_OPEN."""
        cb = CircuitBreaker.for_component("db", failure_threshold=1, recovery_timeout=30)
        now = datetime(2024, 1, 1, 12, 0, 0)
        cb.record_failure(now)

        assert cb.can_proceed(now + timedelta(seconds=29)) is False
        assert cb.state == CircuitBreakerState.OPEN
        assert cb.time_until_retry(now + timedelta(seconds=10)) == pytest.approx(20.0)

        assert cb.can_proceed(now + timedelta(seconds=30)) is True
        assert cb.state == CircuitBreakerState.HALF_OPEN

    def test_half_open_closes_after_three_successes(self):
        """Only successes observed while half-open count towards closing."""
        cb = CircuitBreaker.for_component("db", failure_threshold=1)
        cb.record_success()
        cb.record_success()
        now = datetime(2024, 1, 1)
        cb.record_failure(now)
        cb.can_proceed(now + timedelta(seconds=61))
        assert cb.success_count == 0

        cb.record_success()
        cb.record_success()
        assert cb.state == CircuitBreakerState.HALF_OPEN
        cb.record_success()
        assert cb.state == CircuitBreakerState.CLOSED
        assert cb.next_attempt_time is None

    def test_success_decays_failures(self):
        """Successes decrement the failure count instead of resetting it."""
        cb = CircuitBreaker.for_component("db")
        for _ in range(3):
            cb.record_failure()
        cb.record_success()
        assert cb.failure_count == 2
        assert cb.request_count == 4
        assert cb.success_count == 1

    def test_failure_count_never_negative(self):
        """Decay stops at zero."""
        cb = CircuitBreaker.for_component("db")
        cb.record_success()
        assert cb.failure_count == 0

    def test_open_always_has_deadline(self):
        """An OPEN breaker built without a deadline gets one."""
        cb = CircuitBreaker(id="component:db", state=CircuitBreakerState.OPEN)
        assert cb.next_attempt_time is not None

    def test_logs_transitions(self):
        """Opening and half-opening are logged."""
        with patch("recovery_engine.error_handling.circuit_breaker.logger") as mock_logger:
            cb = CircuitBreaker.for_component("db", failure_threshold=1)
            now = datetime(2024, 1, 1)
            cb.record_failure(now)
            mock_logger.warning.assert_called_once()
            assert "opened" in mock_logger.warning.call_args[0][0]

            cb.can_proceed(now + timedelta(seconds=61))
            assert "half-open" in mock_logger.info.call_args[0][0]


class TestCircuitBreakerManager:
    """Test breaker lookup and bookkeeping."""

    def test_plugin_breaker_preferred(self, make_error):
        """Errors map to their plugin breaker before their component breaker."""
        manager = CircuitBreakerManager()
        manager.add(CircuitBreaker.for_plugin("x"))
        manager.add(CircuitBreaker.for_component("loader"))
        error = make_error(plugin="x", component="loader")
        assert manager.for_error(error).id == "plugin:x"

    def test_component_fallback(self, make_error):
        """Without a plugin breaker the component breaker applies."""
        manager = CircuitBreakerManager()
        manager.add(CircuitBreaker.for_component("loader"))
        error = make_error(plugin="x", component="loader")
        assert manager.for_error(error).id == "component:loader"

    def test_unguarded_error(self, make_error):
        """Errors with no breaker are never gated."""
        manager = CircuitBreakerManager()
        error = make_error(plugin=None, component=None)
        assert manager.for_error(error) is None
        assert manager.allows(error) is True

    def test_add_keeps_copy(self):
        """Mutating the caller's breaker does not reach the manager."""
        manager = CircuitBreakerManager()
        breaker = CircuitBreaker.for_plugin("x")
        manager.add(breaker)
        breaker.record_failure()
        assert manager.get("plugin:x").failure_count == 0

    def test_record_failure_and_allows(self, make_error):
        """Failures open the mapped breaker and block attempts."""
        manager = CircuitBreakerManager()
        manager.add(CircuitBreaker.for_plugin("x", failure_threshold=2))
        error = make_error(plugin="x")
        manager.record_failure(error)
        assert manager.allows(error) is True
        manager.record_failure(error)
        assert manager.allows(error) is False

    def test_state_counts(self, make_error):
        """Counts are keyed by state value."""
        manager = CircuitBreakerManager()
        manager.add(CircuitBreaker.for_plugin("a"))
        manager.add(CircuitBreaker.for_plugin("b", failure_threshold=1))
        manager.record_failure(make_error(plugin="b"))
        assert manager.state_counts() == {"closed": 1, "open": 1, "half_open": 0}

    def test_remove(self):
        """Removal reports whether a breaker existed."""
        manager = CircuitBreakerManager()
        manager.add(CircuitBreaker.for_plugin("x"))
        assert manager.remove("plugin:x") is True
        assert manager.remove("plugin:x") is False
