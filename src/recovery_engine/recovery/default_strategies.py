"""
Built-in recovery strategies registered by every engine.
"""

from typing import List

from ..models import (
    ActionType,
    BackoffStrategy,
    ConditionOperator,
    ErrorCategory,
    ErrorSeverity,
    RecoveryAction,
    RecoveryCondition,
    RecoveryStrategy,
)


def build_default_strategies() -> List[RecoveryStrategy]:
    """Return fresh instances of the built-in strategies."""
    return [
        RecoveryStrategy(
            id="plugin-load-retry",
            name="Plugin Load Retry",
            description="Retry loading failed plugins",
            applicable_categories={ErrorCategory.PLUGIN_LOAD},
            applicable_severities={ErrorSeverity.LOW, ErrorSeverity.MEDIUM},
            max_retries=3,
            backoff_strategy=BackoffStrategy.EXPONENTIAL,
            priority=10,
            timeout=30.0,
            actions=[RecoveryAction(type=ActionType.RELOAD, target="plugin")],
            conditions=[
                RecoveryCondition(
                    field="plugin", operator=ConditionOperator.EXISTS, value=True
                )
            ],
        ),
        RecoveryStrategy(
            id="plugin-execution-restart",
            name="Plugin Execution Restart",
            description="Restart plugins with execution errors",
            applicable_categories={ErrorCategory.PLUGIN_EXECUTION},
            applicable_severities={ErrorSeverity.MEDIUM, ErrorSeverity.HIGH},
            max_retries=2,
            backoff_strategy=BackoffStrategy.LINEAR,
            priority=8,
            timeout=45.0,
            actions=[
                RecoveryAction(type=ActionType.RESTART, target="plugin"),
                RecoveryAction(type=ActionType.NOTIFY, target="admin"),
            ],
            conditions=[
                RecoveryCondition(
                    field="plugin", operator=ConditionOperator.EXISTS, value=True
                )
            ],
        ),
        RecoveryStrategy(
            id="configuration-rollback",
            name="Configuration Rollback",
            description="Rollback configuration changes",
            applicable_categories={ErrorCategory.CONFIGURATION},
            applicable_severities={ErrorSeverity.HIGH, ErrorSeverity.CRITICAL},
            max_retries=1,
            backoff_strategy=BackoffStrategy.FIXED,
            priority=15,
            timeout=60.0,
            actions=[
                RecoveryAction(
                    type=ActionType.ROLLBACK,
                    target="configuration",
                    parameters={"version": "previous"},
                ),
                RecoveryAction(type=ActionType.NOTIFY, target="admin"),
            ],
            conditions=[
                RecoveryCondition(
                    field="context.configChange",
                    operator=ConditionOperator.EXISTS,
                    value=True,
                )
            ],
        ),
        RecoveryStrategy(
            id="memory-recovery",
            name="Memory Recovery",
            description="Recover from memory errors",
            applicable_categories={ErrorCategory.MEMORY},
            applicable_severities={ErrorSeverity.HIGH, ErrorSeverity.CRITICAL},
            max_retries=1,
            backoff_strategy=BackoffStrategy.FIXED,
            priority=20,
            timeout=30.0,
            actions=[
                RecoveryAction(type=ActionType.RESTART, target="memory-manager"),
                RecoveryAction(type=ActionType.ESCALATE, target="system-admin"),
            ],
            conditions=[
                RecoveryCondition(
                    field="context.memoryUsage",
                    operator=ConditionOperator.GREATER_THAN,
                    value=90,
                )
            ],
        ),
    ]
