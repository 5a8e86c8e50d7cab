"""
Self-healing error recovery engine.

Collects error reports, matches them against prioritized recovery strategies,
executes recovery behind circuit breakers and polls component health.
"""

from .config import RecoveryOptions
from .engine import ErrorRecoveryEngine
from .error_handling import CircuitBreaker, CircuitBreakerState
from .events import EventType
from .exceptions import (
    ActionExecutionError,
    ConfigurationError,
    EngineErrorType,
    EngineShutdownError,
    HealthCheckTimeoutError,
    MaxRetriesExceededError,
    RecoveryEngineError,
    RecoveryTimeoutError,
    UnknownStrategyError,
)
from .models import (
    ActionType,
    BackoffStrategy,
    ConditionOperator,
    ErrorCategory,
    ErrorReport,
    ErrorSeverity,
    HealthCheck,
    HealthCheckResult,
    RecoveryAction,
    RecoveryCondition,
    RecoveryStrategy,
    SystemErrorRecord,
)

__version__ = "1.0.0"

__all__ = [
    "ErrorRecoveryEngine",
    "RecoveryOptions",
    "CircuitBreaker",
    "CircuitBreakerState",
    "EventType",
    "ActionExecutionError",
    "ConfigurationError",
    "EngineErrorType",
    "EngineShutdownError",
    "HealthCheckTimeoutError",
    "MaxRetriesExceededError",
    "RecoveryEngineError",
    "RecoveryTimeoutError",
    "UnknownStrategyError",
    "ActionType",
    "BackoffStrategy",
    "ConditionOperator",
    "ErrorCategory",
    "ErrorReport",
    "ErrorSeverity",
    "HealthCheck",
    "HealthCheckResult",
    "RecoveryAction",
    "RecoveryCondition",
    "RecoveryStrategy",
    "SystemErrorRecord",
]
