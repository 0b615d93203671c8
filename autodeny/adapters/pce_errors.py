"""Project-native typed exceptions for PCE interaction failures."""

from __future__ import annotations


class AutoDenyError(Exception):
    """Base exception for auto-deny failures.

    Attributes:
        status_code: Optional upstream HTTP status code.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(AutoDenyError, ConnectionError):
    """HTTP request still failing after all transport retries."""


class PayloadContractError(AutoDenyError, ValueError):
    """Upstream payload is missing required fields or is not valid JSON."""


class CatalogError(AutoDenyError, RuntimeError):
    """Catalog listing could not be loaded. Fatal for the run."""


class NotFoundError(AutoDenyError, LookupError):
    """Named upstream object is missing or ambiguous. Fatal for the run."""


class QueryTimeoutError(AutoDenyError, TimeoutError):
    """Async traffic query did not complete before the polling deadline."""


class QueryJobFailedError(AutoDenyError, RuntimeError):
    """Async traffic query reached a failed or canceled remote state."""


class RuleCreationError(AutoDenyError, RuntimeError):
    """Rule set or deny rule creation was rejected or not confirmed."""
