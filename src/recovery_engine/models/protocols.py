"""
Protocol definitions for the collaborator hooks the engine calls into.
"""

from typing import Any, Awaitable, Optional, Protocol, Union

from .error_models import SystemErrorRecord
from .health_models import HealthCheck, HealthCheckResult
from .strategy_models import RecoveryAction


class ActionHandler(Protocol):
    """Hook that carries out a recovery action against a real component."""

    async def __call__(
        self, action: RecoveryAction, error: SystemErrorRecord
    ) -> None: ...


class HealthProbe(Protocol):
    """Probe for a component; sync or async, returning a result or a bool."""

    def __call__(
        self, check: HealthCheck
    ) -> Union[
        HealthCheckResult, bool, Awaitable[Union[HealthCheckResult, bool]]
    ]: ...


class EventCallback(Protocol):
    """Subscriber for an event topic; may return an awaitable."""

    def __call__(self, payload: Any) -> Optional[Awaitable[None]]: ...
