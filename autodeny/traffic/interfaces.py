"""Typed interfaces for traffic-verification responsibilities."""

from typing import Protocol

from autodeny.domain import Label, Service, TransmissionExclusions


class TrafficVerifierPort(Protocol):
    """Port definition for checking one environment/application/service triple."""

    def verifier_has_no_traffic(
        self,
        environment: Label,
        application: Label,
        service: Service,
        exclusions: TransmissionExclusions,
    ) -> bool:
        """Return True only when both lookback windows report zero flows.

        Args:
            environment: Destination environment label.
            application: Destination application label.
            service: Risky service.
            exclusions: Destination transmission exclusions.

        Returns:
            bool: True when no traffic was observed in either window.

        Raises:
            TransportError: Raised when the PCE cannot be reached.
            QueryTimeoutError: Raised when a query does not complete in time.
            QueryJobFailedError: Raised when a query fails remotely.
            PayloadContractError: Raised when a response is malformed.
        """
