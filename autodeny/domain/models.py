"""Typed domain models shared across runtime layers.

These contracts describe PCE catalog objects (labels, services), traffic query
jobs, and the findings and rule requests derived from them. All models are
immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum


@dataclass(frozen=True)
class AppMetadata:
    """Static application metadata for runtime identification.

    Attributes:
        application_name: Human-readable app name.
        application_version: Released application version.
    """

    application_name: str
    application_version: str


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for upstream health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class Label:
    """One PCE label reference.

    Attributes:
        href: Opaque label reference.
        key: Label dimension (`env`, `app`, ...).
        value: Human-readable label name.
    """

    href: str
    key: str
    value: str


@dataclass(frozen=True)
class ServicePort:
    """Port/protocol entry of a service definition.

    Attributes:
        port: Port number, or range start when `to_port` is set. None for port-less protocols.
        proto: IANA protocol number.
        to_port: Optional range end. Zero and None both mean no range.
    """

    port: int | None
    proto: int
    to_port: int | None = None


@dataclass(frozen=True)
class Service:
    """Risky service definition checked for traffic and eventually denied.

    Attributes:
        href: Opaque service reference.
        name: Service display name.
        service_ports: Ordered port/protocol entries.
    """

    href: str
    name: str
    service_ports: tuple[ServicePort, ...] = ()


@dataclass(frozen=True)
class EnvironmentAppSet:
    """Environment label plus the unique application labels seen inside it.

    Attributes:
        environment: Environment label.
        applications: Application labels, unique by href, in discovery order.
    """

    environment: Label
    applications: tuple[Label, ...]

    def __post_init__(self) -> None:
        hrefs = [application.href for application in self.applications]
        if len(hrefs) != len(set(hrefs)):
            raise ValueError("applications must be unique by href")

    def app_set_is_empty(self) -> bool:
        """Return whether the environment has no eligible applications."""

        return len(self.applications) == 0


@dataclass(frozen=True)
class TransmissionExclusions:
    """Destination transmission types removed from traffic queries.

    Attributes:
        broadcast: Exclude broadcast transmissions.
        multicast: Exclude multicast transmissions.
    """

    broadcast: bool = False
    multicast: bool = False


@dataclass(frozen=True)
class TrafficQueryWindow:
    """Named lookback window for one traffic query phase.

    Attributes:
        name: Window label used in logs and query names.
        lookback: Window length ending at query submission time.
    """

    name: str
    lookback: timedelta


SHORT_TRAFFIC_WINDOW = TrafficQueryWindow(name="24h", lookback=timedelta(hours=24))
LONG_TRAFFIC_WINDOW = TrafficQueryWindow(name="89d", lookback=timedelta(days=89))


class QueryJobStatus(str, Enum):
    """Lifecycle states of one asynchronous traffic query job."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class QueryJob:
    """Snapshot of one asynchronous traffic query job.

    Attributes:
        href: Job reference returned by the PCE.
        status: Local lifecycle status.
        flows_count: Result cardinality once completed.
    """

    href: str
    status: QueryJobStatus = QueryJobStatus.PENDING
    flows_count: int | None = None

    def query_job_is_terminal(self) -> bool:
        """Return whether no further polling can change the job outcome."""

        return self.status is not QueryJobStatus.PENDING


@dataclass(frozen=True)
class NoTrafficFinding:
    """Applications of one environment/service pair with zero flows in both windows.

    Attributes:
        environment: Environment label.
        service: Risky service.
        applications: Applications verified as silent. Order-independent.
    """

    environment: Label
    service: Service
    applications: frozenset[Label]

    def finding_sorted_applications(self) -> list[Label]:
        """Return applications in deterministic href order."""

        return sorted(self.applications, key=lambda label: label.href)


@dataclass(frozen=True)
class DenyRuleRequest:
    """One deny-rule creation request derived from a finalized finding.

    Attributes:
        rule_set_href: Owning rule-set reference.
        service_href: Ingress service reference.
        provider_hrefs: Environment label href followed by application label hrefs.
        consumer_href: Shared any-address IP list reference.
    """

    rule_set_href: str
    service_href: str
    provider_hrefs: tuple[str, ...]
    consumer_href: str


@dataclass
class AutoDenyRunSummary:
    """Terminal outcome tally for one auto-deny run.

    Attributes:
        status: Final run state (`success`, `partial`, `failed`).
        rule_set_href: Rule set created for this run, when any.
        total_queries: Verification calls planned before fan-out.
        completed_queries: Verification calls finished, including failures.
        failed_queries: Verification calls that raised.
        findings: Finalized no-traffic findings in group order.
        rules_created: Deny rules submitted successfully.
        rule_failures: Deny rules that could not be created.
        rule_set_empty: Whether the rule set received no deny rules.
        error_message: Fatal error message for failed runs.
        timeline: Structured stage events.
    """

    status: str = "started"
    rule_set_href: str | None = None
    total_queries: int = 0
    completed_queries: int = 0
    failed_queries: int = 0
    findings: list[NoTrafficFinding] = field(default_factory=list)
    rules_created: int = 0
    rule_failures: int = 0
    rule_set_empty: bool = True
    error_message: str | None = None
    timeline: list[dict[str, object]] = field(default_factory=list)

    def summary_as_payload(self) -> dict[str, object]:
        """Return JSON-compatible summary payload for API and CLI surfaces."""

        return {
            "status": self.status,
            "rule_set_href": self.rule_set_href,
            "total_queries": self.total_queries,
            "completed_queries": self.completed_queries,
            "failed_queries": self.failed_queries,
            "findings": [
                {
                    "environment": finding.environment.value,
                    "service": finding.service.name,
                    "applications": [label.value for label in finding.finding_sorted_applications()],
                }
                for finding in self.findings
            ],
            "rules_created": self.rules_created,
            "rule_failures": self.rule_failures,
            "rule_set_empty": self.rule_set_empty,
            "error_message": self.error_message,
        }
