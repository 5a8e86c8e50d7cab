"""
In-memory store of reported errors and their resolution state.
Entries are never evicted here; retention is decided by the caller.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..models import SystemErrorRecord

logger = logging.getLogger(__name__)


class ErrorStore:
    """Insertion-ordered map of error id to record."""

    def __init__(self):
        self._errors: Dict[str, SystemErrorRecord] = {}

    def put(self, error: SystemErrorRecord) -> SystemErrorRecord:
        """Insert an error as unresolved with a zero retry count."""
        error.resolved = False
        error.resolved_at = None
        error.resolution_method = None
        error.retry_count = 0
        self._errors[error.id] = error
        logger.debug(f"Stored error {error.id}")
        return error

    def get(self, error_id: str) -> Optional[SystemErrorRecord]:
        return self._errors.get(error_id)

    def list(self) -> List[SystemErrorRecord]:
        return list(self._errors.values())

    def mark_resolved(self, error_id: str, method: str) -> SystemErrorRecord:
        """
        Flag an error as resolved.

        Raises:
            KeyError: If the id is unknown
        """
        error = self._errors[error_id]
        error.resolved = True
        error.resolved_at = datetime.now()
        error.resolution_method = method
        return error

    def increment_retry(self, error_id: str) -> int:
        """Count one more failed recovery attempt and return the new total."""
        error = self._errors[error_id]
        error.retry_count += 1
        return error.retry_count

    def resolved_count(self) -> int:
        return sum(1 for error in self._errors.values() if error.resolved)

    def older_than(self, cutoff: datetime) -> List[str]:
        """Ids of errors reported before ``cutoff``."""
        return [
            error_id
            for error_id, error in self._errors.items()
            if error.timestamp < cutoff
        ]

    def clear(self) -> None:
        self._errors.clear()

    def __len__(self) -> int:
        return len(self._errors)

    def __contains__(self, error_id: object) -> bool:
        return error_id in self._errors
