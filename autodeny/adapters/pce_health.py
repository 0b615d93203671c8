"""PCE reachability check used by the health endpoint."""

from __future__ import annotations

from autodeny.domain import HealthStatus

from .interfaces import PceTransportPort
from .pce_errors import TransportError


class PceHealthService:
    """Health probe issuing one lightweight label listing against the PCE."""

    def __init__(self, transport: PceTransportPort, connection_label: str):
        """Initialize health probe.

        Args:
            transport: PCE transport collaborator.
            connection_label: Stable target label, e.g. `pce.lab.local:8443/orgs/1`.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        if not connection_label.strip():
            raise ValueError("connection_label must not be blank")

        self._transport = transport
        self._connection_label = connection_label.strip()

    def pce_connection_label(self) -> str:
        """Return configured PCE target label."""

        return self._connection_label

    def pce_check_health(self) -> HealthStatus:
        """Verify the PCE answers an authenticated request.

        Returns:
            HealthStatus: Healthy status payload.

        Raises:
            ConnectionError: Raised when the PCE cannot be reached or rejects credentials.
        """

        try:
            self._transport.transport_request(
                "GET",
                self._transport.transport_org_path("labels"),
                query_parameters={"key": "env", "max_results": "1"},
            )
        except TransportError as error:
            raise ConnectionError(f"PCE health check failed: {error}") from error
        return HealthStatus(status="ok", detail="pce connectivity verified")
