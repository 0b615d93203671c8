"""Run-scoped verification progress counter shared by worker threads."""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class QueryProgressSnapshot:
    """Progress values captured atomically after one increment.

    Attributes:
        completed: Verification calls finished so far.
        failed: Verification calls that raised so far.
        total: Verification calls planned before fan-out.
    """

    completed: int
    failed: int
    total: int

    def progress_percent(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.completed / self.total * 100, 1)


class QueryProgressTracker:
    """Monotonic completed/failed counters against a fixed total."""

    def __init__(self, total: int):
        if total < 0:
            raise ValueError("total must be >= 0")
        self._total = total
        self._completed = 0
        self._failed = 0
        self._lock = threading.Lock()

    def progress_record(self, failed: bool = False) -> QueryProgressSnapshot:
        """Count one finished verification call.

        Args:
            failed: Whether the call raised.

        Returns:
            QueryProgressSnapshot: Counter values including this call.
        """

        with self._lock:
            self._completed += 1
            if failed:
                self._failed += 1
            return QueryProgressSnapshot(completed=self._completed, failed=self._failed, total=self._total)

    def progress_snapshot(self) -> QueryProgressSnapshot:
        with self._lock:
            return QueryProgressSnapshot(completed=self._completed, failed=self._failed, total=self._total)
