"""
Event topics and their payloads.
Each topic carries exactly one payload type; payloads hold copies of engine
state, never the live objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models import HealthCheck, HealthCheckResult, RecoveryStrategy, SystemErrorRecord


class EventType(str, Enum):
    """Fixed set of topics published by the engine."""

    ERROR_REPORTED = "error:reported"
    ERROR_RECOVERED = "error:recovered"
    ERROR_RECOVERY_FAILED = "error:recovery_failed"
    ERROR_NOTIFY = "error:notify"
    ERROR_ESCALATE = "error:escalate"
    HEALTH_CHECK_COMPLETED = "health:check_completed"
    HEALTH_CHECK_FAILED = "health:check_failed"


@dataclass
class ErrorReportedEvent:
    error: SystemErrorRecord


@dataclass
class ErrorRecoveredEvent:
    error: SystemErrorRecord
    strategy: RecoveryStrategy


@dataclass
class RecoveryFailedEvent:
    error: SystemErrorRecord
    reason: str
    strategy_id: Optional[str] = None


@dataclass
class NotifyEvent:
    error: SystemErrorRecord
    target: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    channels: List[str] = field(default_factory=list)


@dataclass
class EscalateEvent:
    error: SystemErrorRecord
    target: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthCheckCompletedEvent:
    health_check: HealthCheck
    result: HealthCheckResult


@dataclass
class HealthCheckFailedEvent:
    health_check: HealthCheck
    reason: str


EVENT_PAYLOAD_TYPES = {
    EventType.ERROR_REPORTED: ErrorReportedEvent,
    EventType.ERROR_RECOVERED: ErrorRecoveredEvent,
    EventType.ERROR_RECOVERY_FAILED: RecoveryFailedEvent,
    EventType.ERROR_NOTIFY: NotifyEvent,
    EventType.ERROR_ESCALATE: EscalateEvent,
    EventType.HEALTH_CHECK_COMPLETED: HealthCheckCompletedEvent,
    EventType.HEALTH_CHECK_FAILED: HealthCheckFailedEvent,
}
