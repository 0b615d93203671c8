"""Typed interfaces for adapter-layer responsibilities."""

from typing import Any, Protocol

from autodeny.domain import HealthStatus


class PceTransportPort(Protocol):
    """Port definition for authenticated PCE REST calls with built-in retry."""

    def transport_org_path(self, suffix: str) -> str:
        """Return an org-scoped API path for the configured organization.

        Args:
            suffix: Path below `/orgs/{org}`.

        Returns:
            str: Path relative to the `api/v2` base URL.
        """

    def transport_request(
        self,
        method: str,
        path: str,
        json_body: Any | None = None,
        query_parameters: dict[str, str] | None = None,
    ) -> bytes:
        """Execute one API call and return the raw payload.

        Args:
            method: HTTP method.
            path: Path relative to the `api/v2` base URL.
            json_body: Optional JSON-compatible body.
            query_parameters: Optional query string parameters.

        Returns:
            bytes: Raw response payload.

        Raises:
            TransportError: Raised when retries are exhausted.
        """


class PceHealthPort(Protocol):
    """Port definition for PCE reachability checks."""

    def pce_connection_label(self) -> str:
        """Return a stable label for the configured PCE target.

        Returns:
            str: PCE target label for diagnostics.
        """

    def pce_check_health(self) -> HealthStatus:
        """Check PCE reachability and credentials.

        Returns:
            HealthStatus: PCE health status payload.

        Raises:
            ConnectionError: Raised when the PCE cannot be reached.
        """
