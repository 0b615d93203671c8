"""Regression tests for API foundation, health and auto-deny run endpoints."""

from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from autodeny.api.application import create_api_application
from autodeny.domain import AppMetadata, AutoDenyRunSummary, HealthStatus
from autodeny.jobs import InMemoryAutoDenyRunRegistry, JobExecutionResult

_APP_METADATA = AppMetadata(application_name="auto-deny-rules", application_version="0.3.0")


class _HealthyPceService:
    """PCE health stub returning a healthy status."""

    def pce_connection_label(self) -> str:
        return "pce.lab.local:8443/orgs/1"

    def pce_check_health(self) -> HealthStatus:
        return HealthStatus(status="ok", detail="pce connectivity verified")


class _UnreachablePceService:
    """PCE health stub simulating an unreachable PCE."""

    def pce_connection_label(self) -> str:
        return "pce.lab.local:8443/orgs/1"

    def pce_check_health(self) -> HealthStatus:
        """Always raise connectivity failure.

        Returns:
            HealthStatus: This method does not return.

        Raises:
            ConnectionError: Always raised.
        """

        raise ConnectionError("PCE health check failed: connection refused")


class _PartialRunOrchestrator:
    """Orchestrator stub completing with a partial summary."""

    def __init__(self):
        self.executed_job_names: list[str] = []

    def job_supported_names(self) -> tuple[str, ...]:
        return ("auto_deny_run",)

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Record job name and return partial result.

        Args:
            job_name: Requested job name.

        Returns:
            JobExecutionResult: Partial execution result.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.executed_job_names.append(job_name)
        summary = AutoDenyRunSummary(
            status="partial",
            rule_set_href="/orgs/1/sec_policy/draft/rule_sets/42",
            total_queries=4,
            completed_queries=4,
            failed_queries=1,
            rules_created=1,
            rule_set_empty=False,
        )
        return JobExecutionResult(job_name=job_name, status=summary.status, summary=summary)


def _build_client(pce_health_service=None, orchestrator=None, run_registry=None) -> TestClient:
    application = create_api_application(
        app_metadata=_APP_METADATA,
        pce_health_service=pce_health_service or _HealthyPceService(),
        orchestrator=orchestrator or _PartialRunOrchestrator(),
        run_registry=run_registry,
    )
    return TestClient(application)


def test_api_foundation_index_reports_ready() -> None:
    """Return service identification on root endpoint.

    Returns:
        None: Assertions validate index payload.

    Raises:
        AssertionError: Raised when payload differs.
    """

    response = _build_client().get("/")

    assert response.status_code == 200
    assert response.json() == {"service": "auto-deny-rules", "version": "0.3.0", "status": "ready"}


def test_api_health_reports_ok_when_pce_reachable() -> None:
    """Return 200 with PCE status when the probe succeeds.

    Returns:
        None: Assertions validate healthy response.

    Raises:
        AssertionError: Raised when health payload differs.
    """

    response = _build_client().get("/health")

    assert response.status_code == 200
    assert response.json()["pce"] == "ok"
    assert response.json()["target"] == "pce.lab.local:8443/orgs/1"


def test_api_health_reports_degraded_when_pce_unreachable() -> None:
    """Return 503 degraded payload when the probe fails.

    Returns:
        None: Assertions validate degraded response.

    Raises:
        AssertionError: Raised when failure is not reported.
    """

    response = _build_client(pce_health_service=_UnreachablePceService()).get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert "connection refused" in response.json()["detail"]


def test_api_run_trigger_executes_in_background_and_records_summary() -> None:
    """Accept a run, execute it in the background and expose its summary.

    Returns:
        None: Assertions validate trigger and detail flow.

    Raises:
        AssertionError: Raised when run lifecycle differs.
    """

    orchestrator = _PartialRunOrchestrator()
    client = _build_client(orchestrator=orchestrator)

    trigger_response = client.post("/auto-deny/run")
    run_id = trigger_response.json()["run_id"]
    detail_response = client.get(f"/auto-deny/runs/{run_id}")

    assert trigger_response.status_code == 202
    assert trigger_response.json()["status"] == "started"
    assert orchestrator.executed_job_names == ["auto_deny_run"]
    assert detail_response.status_code == 200
    assert detail_response.json()["status"] == "partial"
    assert detail_response.json()["summary"]["failed_queries"] == 1
    assert detail_response.json()["ended_at_utc"] is not None


def test_api_run_trigger_conflicts_while_run_active() -> None:
    """Return 409 when a run is already active.

    Returns:
        None: Assertions validate conflict mapping.

    Raises:
        AssertionError: Raised when conflicting run is accepted.
    """

    run_registry = InMemoryAutoDenyRunRegistry()
    run_registry.registry_start_run()
    orchestrator = _PartialRunOrchestrator()

    response = _build_client(orchestrator=orchestrator, run_registry=run_registry).post("/auto-deny/run")

    assert response.status_code == 409
    assert response.json() == {"status": "error", "message": "run already active"}
    assert orchestrator.executed_job_names == []


def test_api_run_list_and_unknown_run_detail() -> None:
    """List runs with paging fields and return 404 for unknown run ids.

    Returns:
        None: Assertions validate list and not-found responses.

    Raises:
        AssertionError: Raised when list or detail responses differ.
    """

    client = _build_client()
    client.post("/auto-deny/run")

    list_response = client.get("/auto-deny/runs", params={"limit": 5})
    missing_response = client.get(f"/auto-deny/runs/{uuid4()}")
    invalid_limit_response = client.get("/auto-deny/runs", params={"limit": 0})

    assert list_response.status_code == 200
    assert list_response.json()["limit"] == 5
    assert len(list_response.json()["items"]) == 1
    assert missing_response.status_code == 404
    assert invalid_limit_response.status_code == 422
