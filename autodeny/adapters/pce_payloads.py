"""Typed PCE request and response bodies validated at the adapter boundary.

Responses are parsed with pydantic so that a missing `href`, `status` or flow
count surfaces as `PayloadContractError` instead of a silent default. Request
bodies are explicit models serialized with `model_dump`.
"""

from __future__ import annotations

from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from autodeny.domain import Label, Service, ServicePort

from .pce_errors import PayloadContractError

PayloadType = TypeVar("PayloadType")


class _PceResponseModel(BaseModel):
    """Base for PCE responses; unknown upstream fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class LabelPayload(_PceResponseModel):
    href: str = Field(min_length=1)
    key: str
    value: str

    def payload_to_domain(self) -> Label:
        return Label(href=self.href, key=self.key, value=self.value)


class ServicePortPayload(_PceResponseModel):
    port: int | None = None
    proto: int
    to_port: int | None = None

    def payload_to_domain(self) -> ServicePort:
        return ServicePort(port=self.port, proto=self.proto, to_port=self.to_port or None)


class ServicePayload(_PceResponseModel):
    href: str = Field(min_length=1)
    name: str
    service_ports: list[ServicePortPayload] = Field(default_factory=list)

    def payload_to_domain(self) -> Service:
        return Service(
            href=self.href,
            name=self.name,
            service_ports=tuple(service_port.payload_to_domain() for service_port in self.service_ports),
        )


class WorkloadPayload(_PceResponseModel):
    href: str | None = None
    labels: list[LabelPayload] = Field(default_factory=list)


class IpListPayload(_PceResponseModel):
    href: str = Field(min_length=1)
    name: str


class HrefPayload(_PceResponseModel):
    """Creation response carrying the new object's reference."""

    href: str = Field(min_length=1)


class AsyncQueryPollPayload(_PceResponseModel):
    """Async traffic query status; `flows_count` is required once completed."""

    status: str = Field(min_length=1)
    flows_count: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_completed_flow_count(self) -> "AsyncQueryPollPayload":
        if self.status == "completed" and self.flows_count is None:
            raise ValueError("completed async query must report flows_count")
        return self


class _PceRequestModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    def payload_as_json(self) -> dict[str, Any]:
        """Return JSON-compatible request body without unset optional fields."""

        return self.model_dump(mode="json", exclude_none=True)


class LabelReference(_PceRequestModel):
    href: str


class LabelActor(_PceRequestModel):
    label: LabelReference


class IpListActor(_PceRequestModel):
    ip_list: LabelReference


class TransmissionExclusion(_PceRequestModel):
    transmission: Literal["broadcast", "multicast"]


class TrafficQueryActors(_PceRequestModel):
    include: list[list[LabelActor]] = Field(default_factory=lambda: [[]])
    exclude: list[TransmissionExclusion] = Field(default_factory=list)


class ServicePortFilter(_PceRequestModel):
    port: int | None = None
    proto: int
    to_port: int | None = None


class TrafficQueryServices(_PceRequestModel):
    include: list[ServicePortFilter] = Field(default_factory=list)
    exclude: list[ServicePortFilter] = Field(default_factory=list)


class TrafficQueryRequest(_PceRequestModel):
    """Body of `POST /orgs/{org}/traffic_flows/async_queries`."""

    sources: TrafficQueryActors
    destinations: TrafficQueryActors
    services: TrafficQueryServices
    sources_destinations_query_op: Literal["and", "or"] = "and"
    start_date: str
    end_date: str
    policy_decisions: list[str] = Field(default_factory=list)
    boundary_decisions: list[str] = Field(default_factory=list)
    query_name: str
    exclude_workloads_from_ip_list_query: bool = True
    max_results: int = Field(default=1, ge=1)


class RuleSetCreateRequest(_PceRequestModel):
    """Body of `POST /orgs/{org}/sec_policy/draft/rule_sets`."""

    name: str = Field(min_length=1)
    description: str
    scopes: list[list[LabelActor]] = Field(default_factory=lambda: [[]])


class ServiceReference(_PceRequestModel):
    href: str


class DenyRuleCreateRequest(_PceRequestModel):
    """Body of `POST {rule_set_href}/deny_rules`."""

    providers: list[LabelActor] = Field(min_length=1)
    consumers: list[IpListActor] = Field(min_length=1)
    enabled: bool = True
    ingress_services: list[ServiceReference] = Field(min_length=1)
    egress_services: list[ServiceReference] = Field(default_factory=list)
    network_type: str = "brn"
    description: str = ""


def payload_parse(payload_type: type[PayloadType], payload: bytes, context_label: str) -> PayloadType:
    """Parse raw JSON bytes into a typed payload.

    Args:
        payload_type: Target type, e.g. `list[LabelPayload]`.
        payload: Raw response bytes.
        context_label: Call context used in error messages.

    Returns:
        PayloadType: Validated payload.

    Raises:
        PayloadContractError: Raised when payload is not valid JSON or misses required fields.
    """

    try:
        return TypeAdapter(payload_type).validate_json(payload)
    except ValidationError as error:
        raise PayloadContractError(
            f"{context_label} returned an invalid payload: {error.error_count()} error(s); {error.errors()[0]['msg']}"
        ) from error
