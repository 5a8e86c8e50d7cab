"""
Error handling module: error storage and circuit breaker protection.
"""

from .circuit_breaker import CircuitBreaker, CircuitBreakerManager, CircuitBreakerState
from .error_store import ErrorStore

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerManager",
    "CircuitBreakerState",
    "ErrorStore",
]
