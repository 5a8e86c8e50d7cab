"""
Recovery condition evaluation.

Paths are dotted (``db.pool.size``) and are looked up in the error context
first, then among the error's own fields, so both ``plugin`` and
``context.memoryUsage`` resolve. Only ``exists`` is meaningful for an absent
value; every other operator treats it as a non-match.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from ..models import ConditionOperator, RecoveryCondition, SystemErrorRecord

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for a path that does not resolve."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def get_nested_value(obj: Any, path: str) -> Any:
    """Walk a dotted path through nested mappings, returning MISSING on any gap."""
    current = obj
    for key in path.split("."):
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return MISSING
    return current


def resolve_field(error: SystemErrorRecord, path: str) -> Any:
    """Resolve a condition path against the context, then the error record."""
    value = get_nested_value(error.context, path)
    if value is not MISSING:
        return value

    value = get_nested_value(error.model_dump(), path)
    # Unset optional fields on the record count as absent
    return MISSING if value is None else value


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_condition(condition: RecoveryCondition, error: SystemErrorRecord) -> bool:
    """Evaluate a single condition against an error."""
    value = resolve_field(error, condition.field)
    operator = condition.operator

    if operator == ConditionOperator.EXISTS:
        return value is not MISSING

    if value is MISSING:
        return False

    if operator == ConditionOperator.EQUALS:
        # Strict: True is not 1
        if isinstance(value, bool) != isinstance(condition.value, bool):
            return False
        return value == condition.value

    if operator == ConditionOperator.CONTAINS:
        if isinstance(value, str):
            return isinstance(condition.value, str) and condition.value in value
        if isinstance(value, (list, tuple, set, frozenset)):
            return condition.value in value
        return False

    if operator == ConditionOperator.MATCHES:
        try:
            return re.search(str(condition.value), str(value)) is not None
        except re.error as e:
            logger.warning(f"Invalid pattern in condition on '{condition.field}': {e}")
            return False

    left = _to_number(value)
    right = _to_number(condition.value)
    if left is None or right is None:
        return False

    if operator == ConditionOperator.GREATER_THAN:
        return left > right
    if operator == ConditionOperator.LESS_THAN:
        return left < right

    return False


def conditions_met(conditions, error: SystemErrorRecord) -> bool:
    """All conditions must hold; an empty list always holds."""
    return all(evaluate_condition(condition, error) for condition in conditions)
