"""
Health check scheduling.
"""

from .scheduler import HealthCheckScheduler

__all__ = ["HealthCheckScheduler"]
