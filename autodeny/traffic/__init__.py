"""Traffic verification package for two-phase async flow queries."""

from .interfaces import TrafficVerifierPort
from .query_builder import traffic_build_port_filters, traffic_build_query_request
from .verifier import TrafficVerifier

__all__ = [
	"TrafficVerifier",
	"TrafficVerifierPort",
	"traffic_build_port_filters",
	"traffic_build_query_request",
]
