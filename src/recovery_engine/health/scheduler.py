"""
Periodic health polling.

One repeating timer runs every enabled probe per tick. A probe that keeps
failing is turned into a SYSTEM/HIGH error and submitted through the same
reporting path external collaborators use, so health monitoring feeds the
recovery machinery.
"""

import asyncio
import inspect
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from ..exceptions import HealthCheckTimeoutError
from ..events import (
    EventBus,
    EventType,
    HealthCheckCompletedEvent,
    HealthCheckFailedEvent,
)
from ..models import (
    ErrorCategory,
    ErrorReport,
    ErrorSeverity,
    HealthCheck,
    HealthCheckResult,
    HealthProbe,
)

logger = logging.getLogger(__name__)

ReportErrorFunc = Callable[[ErrorReport], Awaitable[str]]


class HealthCheckScheduler:
    """Runs registered health probes on a fixed interval."""

    def __init__(self, event_bus: EventBus, report_error: ReportErrorFunc, interval: float):
        self._event_bus = event_bus
        self._report_error = report_error
        self.interval = interval

        self._checks: Dict[str, HealthCheck] = {}
        self._probes: Dict[str, HealthProbe] = {}
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add(self, check: HealthCheck, probe: Optional[HealthProbe] = None) -> None:
        """Register a health check and its probe; the scheduler keeps a copy."""
        self._checks[check.id] = check.model_copy(deep=True)
        if probe is not None:
            self._probes[check.id] = probe
        else:
            self._probes.pop(check.id, None)
        logger.info(f"Health check added: {check.name or check.id}")

    def remove(self, check_id: str) -> bool:
        self._probes.pop(check_id, None)
        removed = self._checks.pop(check_id, None) is not None
        if removed:
            logger.info(f"Health check removed: {check_id}")
        return removed

    def get(self, check_id: str) -> Optional[HealthCheck]:
        return self._checks.get(check_id)

    def list(self) -> List[HealthCheck]:
        return list(self._checks.values())

    def start(self) -> None:
        """Start the polling timer on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_forever())
        logger.info(f"Health checks started with interval: {self.interval}s")

    async def stop(self) -> None:
        """Cancel the polling timer and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Health checks stopped")

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.run_checks()

    async def run_checks(self) -> None:
        """Run every enabled health check once, in registration order."""
        for check in [c for c in self._checks.values() if c.enabled]:
            try:
                await self.run_check(check.id)
            except Exception as e:
                logger.error(f"Health check failed for {check.id}: {e}", exc_info=True)

    async def run_check(self, check_id: str) -> HealthCheckResult:
        """
        Run one health check, racing its probe against the check timeout.

        Args:
            check_id: Registered health check id

        Returns:
            The recorded result

        Raises:
            KeyError: If the health check is not registered
        """
        check = self._checks[check_id]
        started = time.monotonic()

        try:
            outcome = await asyncio.wait_for(self._execute_probe(check), timeout=check.timeout)
        except asyncio.TimeoutError:
            failure = HealthCheckTimeoutError(check.id, check.timeout)
            return await self._record_probe_failure(check, str(failure), started)
        except Exception as e:
            return await self._record_probe_failure(check, str(e), started)

        result = HealthCheckResult(
            healthy=outcome.healthy,
            response_time=time.monotonic() - started,
            message=outcome.message,
            metrics=outcome.metrics,
        )
        check.last_check = datetime.now()
        check.last_result = result

        if result.healthy:
            check.consecutive_failures = 0
        else:
            check.consecutive_failures += 1
            if check.consecutive_failures >= check.max_consecutive_failures:
                await self._report_unhealthy(check)

        self._event_bus.emit(
            EventType.HEALTH_CHECK_COMPLETED,
            HealthCheckCompletedEvent(
                health_check=check.model_copy(deep=True), result=result.model_copy()
            ),
        )
        return result

    async def _execute_probe(self, check: HealthCheck) -> HealthCheckResult:
        probe = self._probes.get(check.id)
        if probe is None:
            return HealthCheckResult(healthy=True, message="Component is healthy")

        outcome = probe(check.model_copy(deep=True))
        if inspect.isawaitable(outcome):
            outcome = await outcome

        if isinstance(outcome, HealthCheckResult):
            return outcome
        if isinstance(outcome, bool):
            return HealthCheckResult(healthy=outcome)
        raise TypeError(
            f"Health probe for {check.id} returned {type(outcome).__name__}, "
            "expected HealthCheckResult or bool"
        )

    async def _record_probe_failure(
        self, check: HealthCheck, reason: str, started: float
    ) -> HealthCheckResult:
        result = HealthCheckResult(
            healthy=False, response_time=time.monotonic() - started, message=reason
        )
        check.last_check = datetime.now()
        check.last_result = result
        check.consecutive_failures += 1
        logger.warning(
            f"Health check {check.id} failed ({check.consecutive_failures}/"
            f"{check.max_consecutive_failures}): {reason}"
        )

        self._event_bus.emit(
            EventType.HEALTH_CHECK_FAILED,
            HealthCheckFailedEvent(health_check=check.model_copy(deep=True), reason=reason),
        )

        if check.consecutive_failures >= check.max_consecutive_failures:
            await self._report_unhealthy(check)
        return result

    async def _report_unhealthy(self, check: HealthCheck) -> None:
        logger.error(f"Health check failure threshold reached for {check.component}")
        await self._report_error(
            ErrorReport(
                severity=ErrorSeverity.HIGH,
                category=ErrorCategory.SYSTEM,
                message=f"Health check failure for {check.component}",
                context={
                    "healthCheckId": check.id,
                    "consecutiveFailures": check.consecutive_failures,
                },
                source="health-check",
                component=check.component,
            )
        )

    def clear(self) -> None:
        self._checks.clear()
        self._probes.clear()
