"""
Error models for the recovery engine.
Contains the error taxonomy and the records kept for every reported error.
"""

import time
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ErrorSeverity(str, Enum):
    """Error severity levels, used for strategy matching only."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Closed set of error categories."""

    PLUGIN_LOAD = "plugin_load"
    PLUGIN_EXECUTION = "plugin_execution"
    CONFIGURATION = "configuration"
    NETWORK = "network"
    DATABASE = "database"
    MEMORY = "memory"
    SECURITY = "security"
    SYSTEM = "system"
    UNKNOWN = "unknown"


def generate_error_id() -> str:
    """Build an id of the form ``error_<epoch-ms>_<9 random chars>``."""
    return f"error_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ErrorReport(BaseModel):
    """Error as submitted by a collaborator (no identity, no resolution state)."""

    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )

    severity: ErrorSeverity
    category: ErrorCategory
    message: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    context: Dict[str, Any] = Field(default_factory=dict)
    stack: Optional[str] = None
    component: Optional[str] = None
    plugin: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("message", "source")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class SystemErrorRecord(ErrorReport):
    """
    Stored error with identity and resolution state.

    Created by ``report_error`` and mutated only by the recovery executor.
    """

    id: str = Field(default_factory=generate_error_id)
    timestamp: datetime = Field(default_factory=datetime.now)
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolution_method: Optional[str] = None
    retry_count: int = Field(0, ge=0)

    @classmethod
    def from_report(cls, report: ErrorReport) -> "SystemErrorRecord":
        """Create a fresh, unresolved record from a collaborator report."""
        return cls(**report.model_dump())

    def to_log_format(self) -> str:
        """One-line summary used by error logging."""
        return f"[{self.severity.value.upper()}] {self.category.value}: {self.message}"
