"""
Tests for error, strategy and health check models.
"""

import re

import pytest
from pydantic import ValidationError

from recovery_engine.models import (
    ActionType,
    BackoffStrategy,
    ErrorCategory,
    ErrorReport,
    ErrorSeverity,
    HealthCheck,
    HealthCheckResult,
    RecoveryAction,
    RecoveryStrategy,
    SystemErrorRecord,
    generate_error_id,
)


def _strategy(**overrides) -> RecoveryStrategy:
    fields = {
        "id": "s1",
        "name": "Strategy One",
        "applicable_categories": {ErrorCategory.NETWORK},
        "applicable_severities": {ErrorSeverity.LOW},
        "max_retries": 1,
        "actions": [RecoveryAction(type=ActionType.RESTART, target="net")],
    }
    fields.update(overrides)
    return RecoveryStrategy(**fields)


class TestErrorReport:
    """Test collaborator error reports."""

    def test_minimal_report(self):
        """Only severity, category, message and source are required."""
        report = ErrorReport(
            severity="high", category="network", message="timeout", source="http"
        )
        assert report.severity == ErrorSeverity.HIGH
        assert report.category == ErrorCategory.NETWORK
        assert report.context == {}
        assert report.plugin is None

    def test_text_is_stripped(self):
        """Message and source are stripped of surrounding whitespace."""
        report = ErrorReport(
            severity="low", category="unknown", message="  boom  ", source=" svc "
        )
        assert report.message == "boom"
        assert report.source == "svc"

    @pytest.mark.parametrize("field", ["message", "source"])
    def test_blank_text_rejected(self, field):
        """Whitespace-only message or source is malformed input."""
        fields = {"severity": "low", "category": "unknown", "message": "m", "source": "s"}
        fields[field] = "   "
        with pytest.raises(ValidationError):
            ErrorReport(**fields)

    def test_unknown_category_rejected(self):
        """Categories form a closed set."""
        with pytest.raises(ValidationError):
            ErrorReport(severity="low", category="cosmic-rays", message="m", source="s")

    def test_camel_case_input(self):
        """camelCase keys map onto snake_case fields."""
        report = ErrorReport.model_validate(
            {
                "severity": "medium",
                "category": "plugin_load",
                "message": "m",
                "source": "s",
                "userId": "u1",
                "sessionId": "sess",
            }
        )
        assert report.user_id == "u1"
        assert report.session_id == "sess"

    def test_identity_fields_rejected(self):
        """Reports cannot carry ids or resolution state."""
        with pytest.raises(ValidationError):
            ErrorReport.model_validate(
                {
                    "severity": "low",
                    "category": "unknown",
                    "message": "m",
                    "source": "s",
                    "retryCount": 2,
                }
            )


class TestSystemErrorRecord:
    """Test stored error records."""

    def test_generated_id_format(self):
        """Ids look like error_<epoch ms>_<9 chars>."""
        assert re.fullmatch(r"error_\d{13,}_[0-9a-f]{9}", generate_error_id())

    def test_ids_are_unique(self):
        """Consecutive ids differ."""
        assert len({generate_error_id() for _ in range(100)}) == 100

    def test_from_report(self):
        """A record starts unresolved with no retries."""
        report = ErrorReport(
            severity="critical",
            category="memory",
            message="oom",
            source="allocator",
            context={"memoryUsage": 97},
        )
        record = SystemErrorRecord.from_report(report)
        assert record.id.startswith("error_")
        assert record.resolved is False
        assert record.resolved_at is None
        assert record.resolution_method is None
        assert record.retry_count == 0
        assert record.context == {"memoryUsage": 97}

    def test_from_report_copies_context(self):
        """Mutating the report afterwards does not reach the record."""
        report = ErrorReport(
            severity="low", category="unknown", message="m", source="s", context={"a": 1}
        )
        record = SystemErrorRecord.from_report(report)
        report.context["a"] = 2
        assert record.context == {"a": 1}

    def test_log_format(self):
        """One-line summary with severity and category."""
        record = SystemErrorRecord(
            severity="high", category="database", message="deadlock", source="db"
        )
        assert record.to_log_format() == "[HIGH] database: deadlock"

    def test_serialises_with_camel_case(self):
        """Dumping by alias yields collaborator-facing keys."""
        record = SystemErrorRecord(
            severity="low", category="unknown", message="m", source="s"
        )
        dumped = record.model_dump(by_alias=True)
        assert "retryCount" in dumped
        assert "resolutionMethod" in dumped


class TestRecoveryStrategy:
    """Test strategy descriptors."""

    def test_defaults(self):
        """Backoff, priority and timeout have defaults."""
        strategy = _strategy()
        assert strategy.backoff_strategy == BackoffStrategy.EXPONENTIAL
        assert strategy.priority == 0
        assert strategy.timeout == 30.0
        assert strategy.conditions == []

    @pytest.mark.parametrize("field", ["applicable_categories", "applicable_severities"])
    def test_empty_applicability_rejected(self, field):
        """A strategy must apply to at least one category and severity."""
        with pytest.raises(ValidationError):
            _strategy(**{field: set()})

    def test_requires_actions(self):
        """A strategy without actions is rejected."""
        with pytest.raises(ValidationError):
            _strategy(actions=[])

    def test_negative_retries_rejected(self):
        """max_retries cannot be negative."""
        with pytest.raises(ValidationError):
            _strategy(max_retries=-1)

    def test_unknown_action_type_rejected(self):
        """Action types form a closed set."""
        with pytest.raises(ValidationError):
            RecoveryAction(type="reboot-universe", target="x")

    def test_strategy_is_immutable(self):
        """Strategies are frozen once built."""
        strategy = _strategy()
        with pytest.raises(ValidationError):
            strategy.priority = 99

    def test_nested_rollback_action(self):
        """An action may carry the action that undoes it."""
        action = RecoveryAction(
            type=ActionType.RELOAD,
            target="cfg",
            timeout=2.0,
            rollback_action=RecoveryAction(type=ActionType.ROLLBACK, target="cfg"),
        )
        assert action.rollback_action.type == ActionType.ROLLBACK


class TestHealthModels:
    """Test health check models."""

    def test_health_check_defaults(self):
        """Defaults come from configuration."""
        check = HealthCheck(id="db", component="database")
        assert check.enabled is True
        assert check.consecutive_failures == 0
        assert check.max_consecutive_failures == 3
        assert check.timeout == 5.0
        assert check.last_result is None

    def test_assignment_is_validated(self):
        """Counters cannot be set below zero."""
        check = HealthCheck(id="db", component="database")
        with pytest.raises(ValidationError):
            check.consecutive_failures = -1

    def test_result_metrics(self):
        """Results may carry numeric metrics."""
        result = HealthCheckResult(healthy=True, response_time=0.2, metrics={"latency": 12.0})
        assert result.metrics == {"latency": 12.0}
