"""
Registry of recovery strategies and error-to-strategy matching.
"""

import logging
from typing import Dict, List, Optional

from ..exceptions import UnknownStrategyError
from ..models import RecoveryStrategy, SystemErrorRecord
from .conditions import conditions_met

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """
    Keyed set of recovery strategies.

    Matching returns every applicable strategy ranked by priority, highest
    first; strategies of equal priority keep their registration order.
    """

    def __init__(self):
        self._strategies: Dict[str, RecoveryStrategy] = {}

    def add(self, strategy: RecoveryStrategy) -> None:
        """Register a strategy, replacing any strategy with the same id."""
        replaced = strategy.id in self._strategies
        self._strategies[strategy.id] = strategy.model_copy(deep=True)
        if replaced:
            logger.info(f"Recovery strategy replaced: {strategy.name}")
        else:
            logger.info(f"Recovery strategy added: {strategy.name}")

    def remove(self, strategy_id: str) -> None:
        """
        Unregister a strategy.

        Raises:
            UnknownStrategyError: If no strategy has this id
        """
        if strategy_id not in self._strategies:
            raise UnknownStrategyError(strategy_id)
        del self._strategies[strategy_id]
        logger.info(f"Recovery strategy removed: {strategy_id}")

    def get(self, strategy_id: str) -> Optional[RecoveryStrategy]:
        return self._strategies.get(strategy_id)

    def list(self) -> List[RecoveryStrategy]:
        return list(self._strategies.values())

    def match(self, error: SystemErrorRecord) -> List[RecoveryStrategy]:
        """Return the strategies applicable to an error, best first."""
        applicable = [
            strategy
            for strategy in self._strategies.values()
            if error.category in strategy.applicable_categories
            and error.severity in strategy.applicable_severities
            and conditions_met(strategy.conditions, error)
        ]
        # sorted() is stable, so ties keep registration order
        return sorted(applicable, key=lambda s: s.priority, reverse=True)

    def clear(self) -> None:
        self._strategies.clear()

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, strategy_id: object) -> bool:
        return strategy_id in self._strategies
