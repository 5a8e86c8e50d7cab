"""
Health check models.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import (
    DEFAULT_HEALTH_CHECK_INTERVAL,
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
)


class HealthCheckResult(BaseModel):
    """Outcome of one probe run."""

    healthy: bool
    response_time: float = Field(0.0, ge=0, description="Seconds taken by the probe")
    message: Optional[str] = None
    metrics: Optional[Dict[str, float]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class HealthCheck(BaseModel):
    """Periodic probe definition plus its running failure tally."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    component: str = Field(..., min_length=1)
    check_interval: float = Field(DEFAULT_HEALTH_CHECK_INTERVAL, gt=0)
    timeout: float = Field(DEFAULT_HEALTH_CHECK_TIMEOUT, gt=0)
    enabled: bool = True
    consecutive_failures: int = Field(0, ge=0)
    max_consecutive_failures: int = Field(DEFAULT_MAX_CONSECUTIVE_FAILURES, ge=1)
    last_check: Optional[datetime] = None
    last_result: Optional[HealthCheckResult] = None
