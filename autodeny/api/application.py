"""FastAPI application factory for the auto-deny service."""

from fastapi import FastAPI

from autodeny.adapters import PceHealthPort
from autodeny.domain import AppMetadata
from autodeny.jobs import InMemoryAutoDenyRunRegistry, JobOrchestratorPort

from .routers import api_create_auto_deny_router, api_create_health_router


def create_api_application(
    app_metadata: AppMetadata,
    pce_health_service: PceHealthPort,
    orchestrator: JobOrchestratorPort,
    run_registry: InMemoryAutoDenyRunRegistry | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        app_metadata: Application name and version.
        pce_health_service: PCE health probe used by health endpoints.
        orchestrator: Job orchestrator for run trigger execution.
        run_registry: Optional run registry; a fresh in-memory one is used when omitted.

    Returns:
        FastAPI: Framework application instance.
    """

    application = FastAPI(title="Auto Deny Rules", version=app_metadata.application_version)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identification."""

        return {
            "service": app_metadata.application_name,
            "version": app_metadata.application_version,
            "status": "ready",
        }

    application.include_router(api_create_health_router(pce_health_service=pce_health_service))
    application.include_router(
        api_create_auto_deny_router(
            orchestrator=orchestrator,
            run_registry=run_registry or InMemoryAutoDenyRunRegistry(),
        )
    )

    return application
