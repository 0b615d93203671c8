"""Adapter layer package for PCE integration boundaries."""

from .interfaces import PceHealthPort, PceTransportPort
from .pce_errors import (
	AutoDenyError,
	CatalogError,
	NotFoundError,
	PayloadContractError,
	QueryJobFailedError,
	QueryTimeoutError,
	RuleCreationError,
	TransportError,
)
from .pce_health import PceHealthService
from .pce_http_transport import PceHttpTransport

__all__ = [
	"AutoDenyError",
	"CatalogError",
	"NotFoundError",
	"PayloadContractError",
	"PceHealthPort",
	"PceHealthService",
	"PceHttpTransport",
	"PceTransportPort",
	"QueryJobFailedError",
	"QueryTimeoutError",
	"RuleCreationError",
	"TransportError",
]
