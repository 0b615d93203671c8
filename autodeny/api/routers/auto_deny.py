"""Auto-deny API router composition for run trigger and run history endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Query, status
from fastapi.responses import JSONResponse

from autodeny.domain import AutoDenyRunSummary
from autodeny.jobs import AutoDenyRunAlreadyActiveError, InMemoryAutoDenyRunRegistry, JobOrchestratorPort


def api_create_auto_deny_router(
    orchestrator: JobOrchestratorPort,
    run_registry: InMemoryAutoDenyRunRegistry,
) -> APIRouter:
    """Create router exposing run trigger and run list/detail APIs.

    Args:
        orchestrator: Job orchestrator executing auto-deny runs.
        run_registry: Registry tracking triggered runs.

    Returns:
        APIRouter: Router mounted under `/auto-deny`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if orchestrator is None:
        raise ValueError("orchestrator must not be None")
    if run_registry is None:
        raise ValueError("run_registry must not be None")

    router = APIRouter(prefix="/auto-deny", tags=["auto-deny"])

    def _api_execute_run(run_id: UUID) -> None:
        try:
            execution_result = orchestrator.job_execute(job_name="auto_deny_run")
        except Exception as error:
            run_registry.registry_finish_run(
                run_id,
                AutoDenyRunSummary(status="failed", error_message=f"{type(error).__name__}: {error}"),
            )
            raise
        run_registry.registry_finish_run(run_id, execution_result.summary)

    @router.post("/run")
    def api_auto_deny_run_trigger(background_tasks: BackgroundTasks) -> JSONResponse:
        """Start one auto-deny run in the background.

        Returns:
            JSONResponse: Accepted run reference, or conflict when a run is active.
        """

        try:
            run_record = run_registry.registry_start_run()
        except AutoDenyRunAlreadyActiveError:
            payload = {
                "status": "error",
                "message": "run already active",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_409_CONFLICT)

        background_tasks.add_task(_api_execute_run, run_record.run_id)
        payload = {
            "run_id": str(run_record.run_id),
            "status": run_record.status,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_202_ACCEPTED)

    @router.get("/runs")
    def api_auto_deny_run_list(
        limit: int = Query(default=20, ge=1, le=200),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return triggered runs, newest first."""

        run_records = run_registry.registry_list_runs(limit=limit, offset=offset)
        payload = {
            "items": [run_record.record_as_payload() for run_record in run_records],
            "limit": limit,
            "offset": offset,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/runs/{run_id}")
    def api_auto_deny_run_detail(run_id: UUID) -> JSONResponse:
        """Return one run with its terminal summary."""

        run_record = run_registry.registry_get_run(run_id)
        if run_record is None:
            payload = {
                "status": "error",
                "message": f"run {run_id} not found",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(content=run_record.record_as_payload(), status_code=status.HTTP_200_OK)

    return router
