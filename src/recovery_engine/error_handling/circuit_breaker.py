"""
Circuit breaker pattern implementation for fault tolerance.
Suppresses recovery attempts for a plugin or component after repeated failures.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_TIMEOUT,
    HALF_OPEN_SUCCESS_THRESHOLD,
)
from ..models import SystemErrorRecord

logger = logging.getLogger(__name__)


class CircuitBreakerState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(BaseModel):
    """
    Circuit breaker keyed by ``plugin:<name>`` or ``component:<name>``.

    OPEN always carries a ``next_attempt_time``. The breaker never flips to
    HALF_OPEN on a timer; ``can_proceed`` derives it when an attempt starts.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    component: str = ""
    state: CircuitBreakerState = CircuitBreakerState.CLOSED
    failure_count: int = Field(0, ge=0)
    failure_threshold: int = Field(CIRCUIT_BREAKER_FAILURE_THRESHOLD, ge=1)
    recovery_timeout: float = Field(CIRCUIT_BREAKER_TIMEOUT, gt=0)
    last_failure_time: Optional[datetime] = None
    next_attempt_time: Optional[datetime] = None
    request_count: int = Field(0, ge=0)
    success_count: int = Field(0, ge=0)

    @classmethod
    def for_plugin(cls, plugin: str, **kwargs) -> "CircuitBreaker":
        kwargs.setdefault("name", f"Plugin {plugin}")
        return cls(id=f"plugin:{plugin}", component=plugin, **kwargs)

    @classmethod
    def for_component(cls, component: str, **kwargs) -> "CircuitBreaker":
        kwargs.setdefault("name", f"Component {component}")
        return cls(id=f"component:{component}", component=component, **kwargs)

    @model_validator(mode="after")
    def ensure_open_has_deadline(self) -> "CircuitBreaker":
        if self.state == CircuitBreakerState.OPEN and self.next_attempt_time is None:
            opened_at = self.last_failure_time or datetime.now()
            # Bypass validate_assignment to avoid re-entering this validator
            object.__setattr__(
                self,
                "next_attempt_time",
                opened_at + timedelta(seconds=self.recovery_timeout),
            )
        return self

    def record_success(self) -> None:
        """Record a successful recovery; failures decay by one instead of resetting."""
        self.success_count += 1
        self.request_count += 1
        if self.failure_count > 0:
            self.failure_count = max(0, self.failure_count - 1)

        if (
            self.state == CircuitBreakerState.HALF_OPEN
            and self.success_count >= HALF_OPEN_SUCCESS_THRESHOLD
        ):
            self.state = CircuitBreakerState.CLOSED
            self.next_attempt_time = None
            logger.info(f"Circuit breaker closed for {self.component or self.id}")

    def record_failure(self, now: Optional[datetime] = None) -> None:
        """Record a failed recovery and open the circuit at the threshold."""
        now = now or datetime.now()
        self.failure_count += 1
        self.request_count += 1
        self.last_failure_time = now

        if self.failure_count >= self.failure_threshold:
            self.next_attempt_time = now + timedelta(seconds=self.recovery_timeout)
            self.state = CircuitBreakerState.OPEN
            logger.warning(
                f"Circuit breaker opened for {self.component or self.id} "
                f"after {self.failure_count} failures"
            )

    def can_proceed(self, now: Optional[datetime] = None) -> bool:
        """Check if a recovery attempt may start, moving OPEN to HALF_OPEN when due."""
        if self.state != CircuitBreakerState.OPEN:
            return True

        now = now or datetime.now()
        if self.next_attempt_time is not None and now >= self.next_attempt_time:
            self.state = CircuitBreakerState.HALF_OPEN
            # Only successes observed while probing count towards closing
            self.success_count = 0
            logger.info(
                f"Circuit breaker for {self.component or self.id} transitioned to half-open state"
            )
            return True

        return False

    def time_until_retry(self, now: Optional[datetime] = None) -> float:
        """Seconds left before an OPEN breaker admits the next attempt."""
        if self.state != CircuitBreakerState.OPEN or self.next_attempt_time is None:
            return 0.0
        now = now or datetime.now()
        return max(0.0, (self.next_attempt_time - now).total_seconds())


class CircuitBreakerManager:
    """Owns every circuit breaker and maps errors onto them."""

    def __init__(self):
        self._breakers: Dict[str, CircuitBreaker] = {}

    def add(self, breaker: CircuitBreaker) -> None:
        """Register a breaker; the manager keeps its own copy."""
        self._breakers[breaker.id] = breaker.model_copy(deep=True)
        logger.info(f"Circuit breaker added: {breaker.name or breaker.id}")

    def remove(self, breaker_id: str) -> bool:
        removed = self._breakers.pop(breaker_id, None) is not None
        if removed:
            logger.info(f"Circuit breaker removed: {breaker_id}")
        return removed

    def get(self, breaker_id: str) -> Optional[CircuitBreaker]:
        return self._breakers.get(breaker_id)

    def list(self) -> List[CircuitBreaker]:
        return list(self._breakers.values())

    def for_error(self, error: SystemErrorRecord) -> Optional[CircuitBreaker]:
        """Resolve the breaker guarding an error, preferring the plugin breaker."""
        if error.plugin:
            breaker = self._breakers.get(f"plugin:{error.plugin}")
            if breaker is not None:
                return breaker
        if error.component:
            return self._breakers.get(f"component:{error.component}")
        return None

    def allows(self, error: SystemErrorRecord, now: Optional[datetime] = None) -> bool:
        """Errors without a breaker are never gated."""
        breaker = self.for_error(error)
        if breaker is None:
            return True
        return breaker.can_proceed(now)

    def record_success(self, error: SystemErrorRecord) -> None:
        breaker = self.for_error(error)
        if breaker is not None:
            breaker.record_success()

    def record_failure(self, error: SystemErrorRecord) -> None:
        breaker = self.for_error(error)
        if breaker is not None:
            breaker.record_failure()

    def state_counts(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in CircuitBreakerState}
        for breaker in self._breakers.values():
            counts[breaker.state.value] += 1
        return counts

    def clear(self) -> None:
        self._breakers.clear()
