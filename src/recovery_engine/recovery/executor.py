"""
Recovery executor: runs the best-ranked strategy for an error with timeout,
backoff and circuit breaker bookkeeping.

A failing strategy is retried as-is; the executor never falls back to the
next-ranked strategy for the same error.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from ..config import BASE_BACKOFF_DELAY, ERROR_MESSAGES, ESCALATION_RETRY_THRESHOLD, RecoveryOptions
from ..error_handling import CircuitBreakerManager, ErrorStore
from ..events import ErrorRecoveredEvent, EventBus, EventType, RecoveryFailedEvent
from ..exceptions import (
    ActionExecutionError,
    MaxRetriesExceededError,
    RecoveryEngineError,
    RecoveryTimeoutError,
)
from ..models import (
    ActionType,
    BackoffStrategy,
    RecoveryAction,
    RecoveryStrategy,
    SystemErrorRecord,
)
from .actions import ActionDispatcher
from .strategy_registry import StrategyRegistry

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def calculate_backoff_delay(
    backoff_strategy: BackoffStrategy,
    retry_count: int,
    base_delay: float = BASE_BACKOFF_DELAY,
) -> float:
    """
    Compute the delay in seconds before a retried recovery pass.

    linear: base * n, exponential: base * 2^(n-1), fixed: base.
    """
    if backoff_strategy == BackoffStrategy.LINEAR:
        return base_delay * retry_count
    if backoff_strategy == BackoffStrategy.EXPONENTIAL:
        return base_delay * (2 ** (retry_count - 1))
    return base_delay


class RecoveryExecutor:
    """Runs recovery strategies and records their outcome."""

    def __init__(
        self,
        store: ErrorStore,
        registry: StrategyRegistry,
        breakers: CircuitBreakerManager,
        dispatcher: ActionDispatcher,
        event_bus: EventBus,
        options: RecoveryOptions,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self._store = store
        self._registry = registry
        self._breakers = breakers
        self._dispatcher = dispatcher
        self._event_bus = event_bus
        self._options = options
        self._sleep = sleep

        # In-flight error ids; set before waiting on the concurrency gate
        self._active: Dict[str, Optional[asyncio.Task]] = {}
        self._gate = asyncio.Semaphore(options.max_concurrent_recoveries)

    def get_active_recoveries(self) -> List[str]:
        return list(self._active.keys())

    def is_active(self, error_id: str) -> bool:
        return error_id in self._active

    async def attempt_recovery(self, error_id: str) -> bool:
        """
        Try to recover a stored error.

        No-op for unknown, resolved or already in-flight errors, for errors
        whose circuit breaker is open, and for errors no strategy matches.

        Returns:
            True if the error was resolved by this call
        """
        error = self._store.get(error_id)
        if error is None:
            logger.debug(f"Recovery requested for unknown error {error_id}")
            return False
        if error.resolved:
            return False
        if self.is_active(error_id):
            logger.debug(f"Recovery already in progress for error {error_id}")
            return False

        self._active[error_id] = asyncio.current_task()
        try:
            async with self._gate:
                return await self._run_recovery(error)
        finally:
            self._active.pop(error_id, None)

    def _breaker_allows(self, error: SystemErrorRecord) -> bool:
        if not self._options.enable_circuit_breakers:
            return True
        if self._breakers.allows(error):
            return True
        breaker = self._breakers.for_error(error)
        logger.info(
            f"Circuit breaker open for {breaker.component or breaker.id}, skipping recovery "
            f"(retry in {breaker.time_until_retry():.1f}s)"
        )
        return False

    async def _run_recovery(self, error: SystemErrorRecord) -> bool:
        strategy: Optional[RecoveryStrategy] = None

        while True:
            # Shutdown may clear the store while a hook is running
            if error.id not in self._store:
                return False
            if not self._breaker_allows(error):
                return False

            if strategy is None:
                matches = self._registry.match(error)
                if not matches:
                    logger.info(f"{ERROR_MESSAGES['no_strategy']} for error {error.id}")
                    return False
                strategy = matches[0]

            timeout = min(self._options.recovery_timeout, strategy.timeout)
            try:
                async with asyncio.timeout(timeout):
                    await self.execute_recovery(error, strategy)
                return error.resolved
            except TimeoutError:
                await self._handle_failure(
                    error, strategy, RecoveryTimeoutError(f"error {error.id}", timeout)
                )
            except Exception as e:
                await self._handle_failure(error, strategy, e)

            if error.resolved or error.retry_count >= strategy.max_retries:
                return False

    async def execute_recovery(
        self, error: SystemErrorRecord, strategy: RecoveryStrategy
    ) -> None:
        """
        Run one pass of a strategy.

        Raises:
            MaxRetriesExceededError: If the error has used up the strategy's retries
            ActionExecutionError: If an action fails
            RecoveryTimeoutError: If an action exceeds its own timeout
        """
        logger.info(f"Executing recovery strategy {strategy.name} for error {error.id}")

        if error.retry_count >= strategy.max_retries:
            raise MaxRetriesExceededError(strategy.id, strategy.max_retries)

        if error.retry_count > 0:
            delay = calculate_backoff_delay(strategy.backoff_strategy, error.retry_count)
            logger.debug(f"Backing off {delay:.1f}s before retry {error.retry_count}")
            await self._sleep(delay)

        for action in strategy.actions:
            await self._run_action(action, error)

        if error.id not in self._store:
            logger.info(f"Error {error.id} was cleared before its recovery completed")
            return

        self._store.mark_resolved(error.id, strategy.name)
        if self._options.enable_circuit_breakers:
            self._breakers.record_success(error)

        self._event_bus.emit(
            EventType.ERROR_RECOVERED,
            ErrorRecoveredEvent(
                error=error.model_copy(deep=True),
                strategy=strategy.model_copy(deep=True),
            ),
        )
        logger.info(f"Error {error.id} recovered successfully using {strategy.name}")

    async def _run_action(self, action: RecoveryAction, error: SystemErrorRecord) -> None:
        try:
            if action.timeout is not None:
                async with asyncio.timeout(action.timeout):
                    await self._dispatcher.dispatch(action, error)
            else:
                await self._dispatcher.dispatch(action, error)
        except RecoveryEngineError:
            raise
        except TimeoutError as e:
            await self._rollback(action, error)
            if action.timeout is None:
                raise ActionExecutionError(action.type.value, action.target, "timed out") from e
            raise RecoveryTimeoutError(
                f"action {action.type.value} on {action.target}", action.timeout
            ) from e
        except Exception as e:
            await self._rollback(action, error)
            raise ActionExecutionError(action.type.value, action.target, str(e)) from e

    async def _rollback(self, action: RecoveryAction, error: SystemErrorRecord) -> None:
        if action.rollback_action is None:
            return
        logger.info(
            f"Rolling back failed {action.type.value} on {action.target} "
            f"with {action.rollback_action.type.value}"
        )
        try:
            await self._dispatcher.dispatch(action.rollback_action, error)
        except Exception as e:
            logger.error(f"Rollback action for {action.target} failed: {e}")

    async def _handle_failure(
        self, error: SystemErrorRecord, strategy: RecoveryStrategy, failure: Exception
    ) -> None:
        if error.id not in self._store:
            logger.info(f"Error {error.id} was cleared, dropping failure: {failure}")
            return
        retry_count = self._store.increment_retry(error.id)
        logger.error(f"Recovery failed for error {error.id}: {failure}")

        if self._options.enable_circuit_breakers:
            self._breakers.record_failure(error)

        self._event_bus.emit(
            EventType.ERROR_RECOVERY_FAILED,
            RecoveryFailedEvent(
                error=error.model_copy(deep=True),
                reason=str(failure),
                strategy_id=strategy.id,
            ),
        )

        if retry_count >= ESCALATION_RETRY_THRESHOLD:
            escalation = RecoveryAction(
                type=ActionType.ESCALATE,
                target="system",
                parameters={"reason": ERROR_MESSAGES["max_retries_exceeded"]},
            )
            try:
                await self._dispatcher.dispatch(escalation, error)
            except Exception as e:
                logger.error(f"Escalation for error {error.id} failed: {e}")

    async def wait_for_active(self) -> None:
        """Wait for every in-flight recovery, ignoring individual failures."""
        current = asyncio.current_task()
        tasks = [
            task
            for task in self._active.values()
            if task is not None and task is not current
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
