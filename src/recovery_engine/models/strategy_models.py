"""
Recovery strategy models.
A strategy is a named, priority-ranked remediation recipe bound to error
categories, severities and optional context conditions.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .error_models import ErrorCategory, ErrorSeverity


class ActionType(str, Enum):
    """Closed set of recovery action types."""

    RESTART = "restart"
    RELOAD = "reload"
    ROLLBACK = "rollback"
    DISABLE = "disable"
    NOTIFY = "notify"
    ESCALATE = "escalate"
    CUSTOM = "custom"


class BackoffStrategy(str, Enum):
    """Delay schedule applied before a retried recovery pass."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    FIXED = "fixed"


class ConditionOperator(str, Enum):
    """Operators available to recovery conditions."""

    EQUALS = "equals"
    CONTAINS = "contains"
    MATCHES = "matches"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EXISTS = "exists"


class RecoveryAction(BaseModel):
    """A single tagged operation executed as part of a strategy."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: ActionType
    target: str = Field(..., min_length=1, description="Collaborator hook target")
    parameters: Dict[str, Any] = Field(default_factory=dict)
    timeout: Optional[float] = Field(
        None, gt=0, description="Seconds allowed for this action alone"
    )
    rollback_action: Optional["RecoveryAction"] = Field(
        None, description="Dispatched when this action fails"
    )


class RecoveryCondition(BaseModel):
    """Predicate over the error context, resolved through a dotted path."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str = Field(..., min_length=1, description="Dotted path, e.g. 'db.pool.size'")
    operator: ConditionOperator
    value: Any = None


class RecoveryStrategy(BaseModel):
    """
    Static strategy descriptor.

    Immutable once built; re-registering the same id replaces it wholesale.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    applicable_categories: Set[ErrorCategory]
    applicable_severities: Set[ErrorSeverity]
    max_retries: int = Field(..., ge=0)
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    actions: List[RecoveryAction] = Field(..., min_length=1)
    conditions: List[RecoveryCondition] = Field(default_factory=list)
    priority: int = 0
    timeout: float = Field(30.0, gt=0, description="Seconds allowed per recovery pass")

    @field_validator("applicable_categories", "applicable_severities")
    @classmethod
    def require_entries(cls, v: Set[Any]) -> Set[Any]:
        """A strategy that applies to nothing is a configuration mistake."""
        if not v:
            raise ValueError("must contain at least one entry")
        return v
