"""
Configuration constants and settings for the self-healing error recovery engine.
"""

import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

load_dotenv()

# Recovery execution
DEFAULT_MAX_CONCURRENT_RECOVERIES = int(os.getenv("MAX_CONCURRENT_RECOVERIES", "3"))
DEFAULT_RECOVERY_TIMEOUT = float(os.getenv("RECOVERY_TIMEOUT", "30.0"))
BASE_BACKOFF_DELAY = 1.0  # seconds
ESCALATION_RETRY_THRESHOLD = 3

# Circuit breakers
CIRCUIT_BREAKER_FAILURE_THRESHOLD = 5
CIRCUIT_BREAKER_TIMEOUT = 60.0
HALF_OPEN_SUCCESS_THRESHOLD = 3

# Health checks
DEFAULT_HEALTH_CHECK_INTERVAL = float(os.getenv("HEALTH_CHECK_INTERVAL", "60.0"))
DEFAULT_HEALTH_CHECK_TIMEOUT = 5.0
DEFAULT_MAX_CONSECUTIVE_FAILURES = 3

# Retention
DEFAULT_ERROR_RETENTION_PERIOD = 7 * 24 * 60 * 60.0  # 7 days

# Notifications
DEFAULT_NOTIFICATION_CHANNELS = [
    channel.strip()
    for channel in os.getenv("NOTIFICATION_CHANNELS", "console,log").split(",")
    if channel.strip()
]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"

# Feature flags
ENABLE_AUTO_RECOVERY = os.getenv("ENABLE_AUTO_RECOVERY", "true").lower() == "true"
ENABLE_CIRCUIT_BREAKERS = os.getenv("ENABLE_CIRCUIT_BREAKERS", "true").lower() == "true"
ENABLE_HEALTH_CHECKS = os.getenv("ENABLE_HEALTH_CHECKS", "true").lower() == "true"
ENABLE_ERROR_LOGGING = os.getenv("ENABLE_ERROR_LOGGING", "true").lower() == "true"
ENABLE_NOTIFICATION = os.getenv("ENABLE_NOTIFICATION", "true").lower() == "true"

# Error messages
ERROR_MESSAGES = {
    "max_retries_exceeded": "Max recovery retries reached",
    "no_strategy": "No recovery strategy found",
}


class RecoveryOptions(BaseModel):
    """
    Engine-wide options.

    Accepts snake_case names and the camelCase keys used by external
    collaborators (``enableAutoRecovery``, ``recoveryTimeout``, ...).
    Unset keys fall back to the module defaults above.
    """

    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )

    enable_auto_recovery: bool = ENABLE_AUTO_RECOVERY
    enable_circuit_breakers: bool = ENABLE_CIRCUIT_BREAKERS
    enable_health_checks: bool = ENABLE_HEALTH_CHECKS
    enable_error_logging: bool = ENABLE_ERROR_LOGGING
    enable_notification: bool = ENABLE_NOTIFICATION
    max_concurrent_recoveries: int = Field(DEFAULT_MAX_CONCURRENT_RECOVERIES, ge=1)
    recovery_timeout: float = Field(DEFAULT_RECOVERY_TIMEOUT, gt=0)
    health_check_interval: float = Field(DEFAULT_HEALTH_CHECK_INTERVAL, gt=0)
    error_retention_period: float = Field(DEFAULT_ERROR_RETENTION_PERIOD, gt=0)
    notification_channels: List[str] = Field(
        default_factory=lambda: list(DEFAULT_NOTIFICATION_CHANNELS)
    )


def validate_config() -> None:
    """Validate configuration settings."""
    if DEFAULT_MAX_CONCURRENT_RECOVERIES < 1:
        raise ValueError("MAX_CONCURRENT_RECOVERIES must be positive")

    if DEFAULT_RECOVERY_TIMEOUT <= 0:
        raise ValueError("RECOVERY_TIMEOUT must be positive")

    if DEFAULT_HEALTH_CHECK_INTERVAL <= 0:
        raise ValueError("HEALTH_CHECK_INTERVAL must be positive")

    if HALF_OPEN_SUCCESS_THRESHOLD < 1:
        raise ValueError("HALF_OPEN_SUCCESS_THRESHOLD must be positive")
