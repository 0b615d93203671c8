"""Run timeline event helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured run timeline event.

    Args:
        stage: Run stage name (`catalog`, `verification`, `synthesis`, ...).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: Timeline event stamped with current UTC time.
    """

    stage_event: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": domain_utc_now().isoformat(),
    }
    if details:
        stage_event["details"] = details
    return stage_event


def domain_utc_now() -> datetime:
    """Return timezone-aware current UTC time."""

    return datetime.now(timezone.utc)


def domain_elapsed_ms(started_at: datetime) -> int:
    """Return non-negative milliseconds elapsed since `started_at`."""

    return max(0, int((domain_utc_now() - started_at).total_seconds() * 1000))
