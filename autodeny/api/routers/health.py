"""Health endpoint router composition for app and PCE checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from autodeny.adapters import PceHealthPort


def api_create_health_router(pce_health_service: PceHealthPort) -> APIRouter:
    """Create health-check router with app and PCE connectivity status.

    Args:
        pce_health_service: PCE health probe.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when pce_health_service is invalid.
    """

    if pce_health_service is None:
        raise ValueError("pce_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and PCE health state."""

        try:
            pce_health = pce_health_service.pce_check_health()
            payload = {
                "status": "ok",
                "app": "up",
                "pce": pce_health.status,
                "detail": pce_health.detail,
                "target": pce_health_service.pce_connection_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        except ConnectionError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "pce": "down",
                "detail": str(error),
                "target": pce_health_service.pce_connection_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return router
