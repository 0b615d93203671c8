"""Domain models used across application layer boundaries."""

from .models import (
    LONG_TRAFFIC_WINDOW,
    SHORT_TRAFFIC_WINDOW,
    AppMetadata,
    AutoDenyRunSummary,
    DenyRuleRequest,
    EnvironmentAppSet,
    HealthStatus,
    Label,
    NoTrafficFinding,
    QueryJob,
    QueryJobStatus,
    Service,
    ServicePort,
    TrafficQueryWindow,
    TransmissionExclusions,
)
from .timeline import domain_build_stage_event

__all__ = [
	"AppMetadata",
	"AutoDenyRunSummary",
	"DenyRuleRequest",
	"EnvironmentAppSet",
	"HealthStatus",
	"LONG_TRAFFIC_WINDOW",
	"Label",
	"NoTrafficFinding",
	"QueryJob",
	"QueryJobStatus",
	"SHORT_TRAFFIC_WINDOW",
	"Service",
	"ServicePort",
	"TrafficQueryWindow",
	"TransmissionExclusions",
	"domain_build_stage_event",
]
