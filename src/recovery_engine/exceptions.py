"""
Custom exception classes for the self-healing error recovery engine.
"""

from typing import Any, Dict, Optional
from enum import Enum


class EngineErrorType(str, Enum):
    """Types of errors the engine itself can raise."""

    CONFIGURATION = "configuration"
    UNKNOWN_STRATEGY = "unknown_strategy"
    ACTION_EXECUTION = "action_execution"
    RECOVERY_TIMEOUT = "recovery_timeout"
    MAX_RETRIES = "max_retries"
    HEALTH_CHECK_TIMEOUT = "health_check_timeout"
    SHUTDOWN = "shutdown"


class RecoveryEngineError(Exception):
    """Base exception for all recovery engine errors."""

    def __init__(
        self,
        message: str,
        error_type: EngineErrorType = EngineErrorType.CONFIGURATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}


class ConfigurationError(RecoveryEngineError):
    """Raised when a strategy or handler configuration is invalid."""

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        super().__init__(
            f"Invalid configuration for '{setting}': {reason}",
            EngineErrorType.CONFIGURATION,
            {"setting": setting},
        )


class UnknownStrategyError(RecoveryEngineError):
    """Raised when a strategy id is not registered."""

    def __init__(self, strategy_id: str):
        self.strategy_id = strategy_id
        super().__init__(
            f"Recovery strategy '{strategy_id}' is not registered",
            EngineErrorType.UNKNOWN_STRATEGY,
            {"strategy_id": strategy_id},
        )


class ActionExecutionError(RecoveryEngineError):
    """Raised when a recovery action fails."""

    def __init__(self, action_type: str, target: str, reason: str):
        self.action_type = action_type
        self.target = target
        super().__init__(
            f"Recovery action '{action_type}' on '{target}' failed: {reason}",
            EngineErrorType.ACTION_EXECUTION,
            {"action_type": action_type, "target": target},
        )


class RecoveryTimeoutError(RecoveryEngineError):
    """Raised when a recovery pass or a single action runs out of time."""

    def __init__(self, subject: str, timeout: float):
        self.subject = subject
        self.timeout = timeout
        super().__init__(
            f"Recovery timeout for {subject} after {timeout:.1f}s",
            EngineErrorType.RECOVERY_TIMEOUT,
            {"subject": subject, "timeout": timeout},
        )


class MaxRetriesExceededError(RecoveryEngineError):
    """Raised when an error has used up the retries of its strategy."""

    def __init__(self, strategy_id: str, max_retries: int):
        self.strategy_id = strategy_id
        self.max_retries = max_retries
        super().__init__(
            f"Max retries ({max_retries}) exceeded",
            EngineErrorType.MAX_RETRIES,
            {"strategy_id": strategy_id, "max_retries": max_retries},
        )


class HealthCheckTimeoutError(RecoveryEngineError):
    """Failure reason for a health probe that did not answer in time."""

    def __init__(self, check_id: str, timeout: float):
        self.check_id = check_id
        self.timeout = timeout
        super().__init__(
            "Health check timeout",
            EngineErrorType.HEALTH_CHECK_TIMEOUT,
            {"check_id": check_id, "timeout": timeout},
        )


class EngineShutdownError(RecoveryEngineError):
    """Raised when the engine is used after shutdown."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: recovery engine has been shut down",
            EngineErrorType.SHUTDOWN,
            {"operation": operation},
        )
