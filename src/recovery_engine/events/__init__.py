"""
Event bus and typed event payloads.
"""

from .event_bus import EventBus
from .event_types import (
    EVENT_PAYLOAD_TYPES,
    ErrorRecoveredEvent,
    ErrorReportedEvent,
    EscalateEvent,
    EventType,
    HealthCheckCompletedEvent,
    HealthCheckFailedEvent,
    NotifyEvent,
    RecoveryFailedEvent,
)

__all__ = [
    "EventBus",
    "EVENT_PAYLOAD_TYPES",
    "ErrorRecoveredEvent",
    "ErrorReportedEvent",
    "EscalateEvent",
    "EventType",
    "HealthCheckCompletedEvent",
    "HealthCheckFailedEvent",
    "NotifyEvent",
    "RecoveryFailedEvent",
]
