"""
Recovery strategies: registration, matching, action dispatch and execution.
"""

from .actions import ActionDispatcher
from .conditions import MISSING, evaluate_condition, get_nested_value, resolve_field
from .default_strategies import build_default_strategies
from .executor import RecoveryExecutor, calculate_backoff_delay
from .strategy_registry import StrategyRegistry

__all__ = [
    "ActionDispatcher",
    "MISSING",
    "evaluate_condition",
    "get_nested_value",
    "resolve_field",
    "build_default_strategies",
    "RecoveryExecutor",
    "calculate_backoff_delay",
    "StrategyRegistry",
]
