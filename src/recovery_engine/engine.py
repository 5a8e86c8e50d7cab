"""
Self-healing error recovery engine.

Collaborators report errors, the engine classifies them, picks the
best-ranked recovery strategy, executes it behind circuit breakers, and polls
component health, feeding failed probes back in as new errors. All state is
owned by one engine instance; callers only ever receive copies.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from .config import RecoveryOptions
from .error_handling import CircuitBreaker, CircuitBreakerManager, CircuitBreakerState, ErrorStore
from .events import ErrorReportedEvent, EventBus, EventType
from .exceptions import EngineShutdownError
from .health import HealthCheckScheduler
from .models import (
    ActionHandler,
    ActionType,
    ErrorReport,
    ErrorSeverity,
    EventCallback,
    HealthCheck,
    HealthCheckResult,
    HealthProbe,
    RecoveryStrategy,
    SystemErrorRecord,
)
from .recovery import (
    ActionDispatcher,
    RecoveryExecutor,
    StrategyRegistry,
    build_default_strategies,
)
from .recovery.executor import SleepFunc

logger = logging.getLogger(__name__)


class ErrorRecoveryEngine:
    """
    Public facade of the recovery engine.

    Built-in strategies are registered on construction. Call ``initialize()``
    to start health polling and ``shutdown()`` to stop it, drain in-flight
    recoveries and clear all state.
    """

    def __init__(
        self,
        options: Optional[Union[RecoveryOptions, Mapping[str, Any]]] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize the engine.

        Args:
            options: RecoveryOptions or a mapping of option keys (camelCase or snake_case)
            sleep: Awaitable used for retry backoff delays
        """
        if options is None:
            options = RecoveryOptions()
        elif not isinstance(options, RecoveryOptions):
            options = RecoveryOptions.model_validate(dict(options))
        self.options = options

        self.event_bus = EventBus()
        self.error_store = ErrorStore()
        self.strategies = StrategyRegistry()
        self.circuit_breakers = CircuitBreakerManager()
        self.dispatcher = ActionDispatcher(self.event_bus, self.options)
        self.executor = RecoveryExecutor(
            self.error_store,
            self.strategies,
            self.circuit_breakers,
            self.dispatcher,
            self.event_bus,
            self.options,
            sleep=sleep,
        )
        self.health_scheduler = HealthCheckScheduler(
            self.event_bus, self.report_error, self.options.health_check_interval
        )

        self._recovery_tasks: Set[asyncio.Task] = set()
        self.initialized = False
        self.shut_down = False

        for strategy in build_default_strategies():
            self.strategies.add(strategy)

    async def initialize(self) -> None:
        """Start health-check polling if enabled."""
        if self.shut_down:
            raise EngineShutdownError("initialize")
        if self.initialized:
            return

        logger.info("Initializing Error Recovery Engine...")
        if self.options.enable_health_checks:
            self.health_scheduler.start()

        self.initialized = True
        logger.info("Error Recovery Engine initialized successfully")

    # Error reporting and recovery

    async def report_error(self, report: Union[ErrorReport, Mapping[str, Any]]) -> str:
        """
        Record an error and schedule automatic recovery.

        Returns as soon as the error is stored; recovery runs in the background
        and its outcome is only visible through events and the stored record.

        Raises:
            pydantic.ValidationError: If the report is malformed
            EngineShutdownError: If the engine has been shut down
        """
        if self.shut_down:
            raise EngineShutdownError("report error")
        if not isinstance(report, ErrorReport):
            report = ErrorReport.model_validate(dict(report))

        error = self.error_store.put(SystemErrorRecord.from_report(report))

        if self.options.enable_error_logging:
            self._log_error(error)

        if self.options.enable_auto_recovery:
            self._schedule_recovery(error.id)

        self.event_bus.emit(
            EventType.ERROR_REPORTED, ErrorReportedEvent(error=error.model_copy(deep=True))
        )
        return error.id

    def _schedule_recovery(self, error_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self._auto_recover(error_id))
        self._recovery_tasks.add(task)
        task.add_done_callback(self._recovery_tasks.discard)

    async def _auto_recover(self, error_id: str) -> None:
        try:
            await self.executor.attempt_recovery(error_id)
        except Exception as e:
            logger.error(f"Auto-recovery failed for error {error_id}: {e}", exc_info=True)

    async def attempt_recovery(self, error_id: str) -> bool:
        """Run recovery for a stored error now; see RecoveryExecutor.attempt_recovery."""
        return await self.executor.attempt_recovery(error_id)

    def _log_error(self, error: SystemErrorRecord) -> None:
        details = f"(id={error.id}, source={error.source}, context={error.context})"
        if error.stack:
            details += f"\n{error.stack}"
        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.HIGH):
            logger.error(f"{error.to_log_format()} {details}")
        else:
            logger.warning(f"{error.to_log_format()} {details}")

    async def wait_for_recoveries(self) -> None:
        """
        Wait until no recovery is scheduled or running.

        When called from inside a recovery (an action hook, for instance) the
        calling task is not waited on.
        """
        current = asyncio.current_task()
        while True:
            tasks = [task for task in self._recovery_tasks if task is not current]
            if not tasks:
                break
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.executor.wait_for_active()
        await self.event_bus.drain()

    # Strategies, health checks, circuit breakers, hooks

    def add_recovery_strategy(self, strategy: RecoveryStrategy) -> None:
        self.strategies.add(strategy)

    def remove_recovery_strategy(self, strategy_id: str) -> None:
        """Raises UnknownStrategyError for ids that are not registered."""
        self.strategies.remove(strategy_id)

    def add_health_check(self, check: HealthCheck, probe: Optional[HealthProbe] = None) -> None:
        self.health_scheduler.add(check, probe)

    def remove_health_check(self, check_id: str) -> bool:
        return self.health_scheduler.remove(check_id)

    def add_circuit_breaker(self, breaker: CircuitBreaker) -> None:
        self.circuit_breakers.add(breaker)

    def remove_circuit_breaker(self, breaker_id: str) -> bool:
        return self.circuit_breakers.remove(breaker_id)

    def register_action_handler(
        self,
        action_type: Union[ActionType, str],
        handler: ActionHandler,
        target: Optional[str] = None,
    ) -> None:
        self.dispatcher.register(action_type, handler, target)

    def unregister_action_handler(
        self, action_type: Union[ActionType, str], target: Optional[str] = None
    ) -> bool:
        return self.dispatcher.unregister(action_type, target)

    async def run_health_checks(self) -> None:
        """Run one polling tick immediately."""
        await self.health_scheduler.run_checks()

    async def run_health_check(self, check_id: str) -> HealthCheckResult:
        result = await self.health_scheduler.run_check(check_id)
        return result.model_copy()

    # Read-only views

    def get_error(self, error_id: str) -> Optional[SystemErrorRecord]:
        error = self.error_store.get(error_id)
        return error.model_copy(deep=True) if error else None

    def get_all_errors(self) -> List[SystemErrorRecord]:
        return [error.model_copy(deep=True) for error in self.error_store.list()]

    def get_active_recoveries(self) -> List[str]:
        return self.executor.get_active_recoveries()

    def get_strategy(self, strategy_id: str) -> Optional[RecoveryStrategy]:
        strategy = self.strategies.get(strategy_id)
        return strategy.model_copy(deep=True) if strategy else None

    def get_strategies(self) -> List[RecoveryStrategy]:
        return [strategy.model_copy(deep=True) for strategy in self.strategies.list()]

    def get_health_check(self, check_id: str) -> Optional[HealthCheck]:
        check = self.health_scheduler.get(check_id)
        return check.model_copy(deep=True) if check else None

    def get_health_checks(self) -> List[HealthCheck]:
        return [check.model_copy(deep=True) for check in self.health_scheduler.list()]

    def get_circuit_breaker(self, breaker_id: str) -> Optional[CircuitBreaker]:
        breaker = self.circuit_breakers.get(breaker_id)
        return breaker.model_copy(deep=True) if breaker else None

    def get_circuit_breakers(self) -> List[CircuitBreaker]:
        return [breaker.model_copy(deep=True) for breaker in self.circuit_breakers.list()]

    def get_expired_errors(self, now: Optional[datetime] = None) -> List[str]:
        """Ids of errors older than the retention period; nothing is evicted."""
        now = now or datetime.now()
        cutoff = now - timedelta(seconds=self.options.error_retention_period)
        return self.error_store.older_than(cutoff)

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize errors, recoveries, health checks and circuit breakers."""
        checks = self.health_scheduler.list()
        healthy = sum(1 for c in checks if c.last_result is not None and c.last_result.healthy)
        breaker_counts = self.circuit_breakers.state_counts()

        return {
            "total_errors": len(self.error_store),
            "resolved_errors": self.error_store.resolved_count(),
            "active_recoveries": len(self.executor.get_active_recoveries()),
            "health_checks": {
                "total": len(checks),
                "healthy": healthy,
                "unhealthy": len(checks) - healthy,
            },
            "circuit_breakers": {
                "total": sum(breaker_counts.values()),
                "open": breaker_counts[CircuitBreakerState.OPEN.value],
                "closed": breaker_counts[CircuitBreakerState.CLOSED.value],
                "half_open": breaker_counts[CircuitBreakerState.HALF_OPEN.value],
            },
        }

    # Events

    def on(self, event: Union[EventType, str], callback: EventCallback) -> None:
        self.event_bus.on(event, callback)

    def off(self, event: Union[EventType, str], callback: EventCallback) -> None:
        self.event_bus.off(event, callback)

    async def shutdown(self) -> None:
        """Stop health polling, drain in-flight recoveries and clear all state."""
        if self.shut_down:
            return

        logger.info("Shutting down Error Recovery Engine...")
        self.shut_down = True

        await self.health_scheduler.stop()
        await self.wait_for_recoveries()

        self.error_store.clear()
        self.strategies.clear()
        self.health_scheduler.clear()
        self.circuit_breakers.clear()
        self.dispatcher.clear()
        self.event_bus.clear()
        self.initialized = False

        logger.info("Error Recovery Engine shutdown completed")
