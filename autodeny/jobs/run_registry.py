"""In-memory registry of auto-deny runs triggered through the API."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from uuid import UUID, uuid4

from autodeny.domain import AutoDenyRunSummary
from autodeny.domain.timeline import domain_utc_now


class AutoDenyRunAlreadyActiveError(RuntimeError):
    """Raised when a run trigger is rejected because one run is already active."""


@dataclass(frozen=True)
class AutoDenyRunRecord:
    """Lifecycle record of one triggered run.

    Attributes:
        run_id: Unique run identifier.
        status: Run status (`started`, `success`, `partial`, `failed`).
        started_at_utc: Run start timestamp in UTC.
        ended_at_utc: Optional run end timestamp in UTC.
        summary: Terminal run tally once finished.
    """

    run_id: UUID
    status: str
    started_at_utc: datetime
    ended_at_utc: datetime | None = None
    summary: AutoDenyRunSummary | None = None

    def record_as_payload(self) -> dict[str, object]:
        """Return JSON-compatible record payload."""

        return {
            "run_id": str(self.run_id),
            "status": self.status,
            "started_at_utc": self.started_at_utc.isoformat(),
            "ended_at_utc": self.ended_at_utc.isoformat() if self.ended_at_utc else None,
            "summary": self.summary.summary_as_payload() if self.summary else None,
        }


class InMemoryAutoDenyRunRegistry:
    """Thread-safe run registry allowing one active run at a time."""

    def __init__(self):
        self._records: dict[UUID, AutoDenyRunRecord] = {}
        self._active_run_id: UUID | None = None
        self._lock = threading.Lock()

    def registry_start_run(self) -> AutoDenyRunRecord:
        """Register a new started run.

        Returns:
            AutoDenyRunRecord: Started run record.

        Raises:
            AutoDenyRunAlreadyActiveError: Raised when another run is still active.
        """

        with self._lock:
            if self._active_run_id is not None:
                raise AutoDenyRunAlreadyActiveError(f"run {self._active_run_id} is already active")
            run_record = AutoDenyRunRecord(run_id=uuid4(), status="started", started_at_utc=domain_utc_now())
            self._records[run_record.run_id] = run_record
            self._active_run_id = run_record.run_id
            return run_record

    def registry_finish_run(self, run_id: UUID, summary: AutoDenyRunSummary) -> AutoDenyRunRecord:
        """Store terminal summary and release the active slot.

        Raises:
            KeyError: Raised when run id is unknown.
        """

        with self._lock:
            finished_record = replace(
                self._records[run_id],
                status=summary.status,
                ended_at_utc=domain_utc_now(),
                summary=summary,
            )
            self._records[run_id] = finished_record
            if self._active_run_id == run_id:
                self._active_run_id = None
            return finished_record

    def registry_get_run(self, run_id: UUID) -> AutoDenyRunRecord | None:
        with self._lock:
            return self._records.get(run_id)

    def registry_list_runs(self, limit: int, offset: int) -> list[AutoDenyRunRecord]:
        """Return runs newest first, in reverse start order."""

        with self._lock:
            ordered_records = list(reversed(self._records.values()))
        return ordered_records[offset : offset + limit]
