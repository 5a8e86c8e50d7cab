"""
Data models for errors, recovery strategies and health checks.
"""

from .error_models import (
    ErrorCategory,
    ErrorReport,
    ErrorSeverity,
    SystemErrorRecord,
    generate_error_id,
)
from .health_models import HealthCheck, HealthCheckResult
from .protocols import ActionHandler, EventCallback, HealthProbe
from .strategy_models import (
    ActionType,
    BackoffStrategy,
    ConditionOperator,
    RecoveryAction,
    RecoveryCondition,
    RecoveryStrategy,
)

__all__ = [
    "ErrorCategory",
    "ErrorReport",
    "ErrorSeverity",
    "SystemErrorRecord",
    "generate_error_id",
    "HealthCheck",
    "HealthCheckResult",
    "ActionHandler",
    "EventCallback",
    "HealthProbe",
    "ActionType",
    "BackoffStrategy",
    "ConditionOperator",
    "RecoveryAction",
    "RecoveryCondition",
    "RecoveryStrategy",
]
