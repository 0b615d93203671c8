"""Async traffic query body construction for one destination/service scope."""

from __future__ import annotations

from datetime import datetime, timezone

from autodeny.adapters.pce_payloads import (
    LabelActor,
    LabelReference,
    ServicePortFilter,
    TrafficQueryActors,
    TrafficQueryRequest,
    TrafficQueryServices,
    TransmissionExclusion,
)
from autodeny.domain import Label, Service, TrafficQueryWindow, TransmissionExclusions

_RFC3339_UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def traffic_build_query_request(
    environment: Label,
    application: Label,
    service: Service,
    exclusions: TransmissionExclusions,
    window: TrafficQueryWindow,
    now_utc: datetime,
) -> TrafficQueryRequest:
    """Build one traffic query restricted to an environment/application destination.

    Sources are unrestricted. Destinations are the (environment AND application)
    label pair minus any excluded transmission types. Services are the service's
    port/protocol entries.

    Args:
        environment: Destination environment label.
        application: Destination application label.
        service: Service whose ports/protocols are queried.
        exclusions: Destination transmission exclusions.
        window: Lookback window ending at `now_utc`.
        now_utc: Timezone-aware query end time.

    Returns:
        TrafficQueryRequest: Typed request body.

    Raises:
        ValueError: Raised when `now_utc` is naive.
    """

    if now_utc.tzinfo is None:
        raise ValueError("now_utc must be timezone-aware")

    end_utc = now_utc.astimezone(timezone.utc)
    start_utc = end_utc - window.lookback
    return TrafficQueryRequest(
        sources=TrafficQueryActors(),
        destinations=TrafficQueryActors(
            include=[
                [
                    LabelActor(label=LabelReference(href=environment.href)),
                    LabelActor(label=LabelReference(href=application.href)),
                ]
            ],
            exclude=traffic_build_transmission_exclusions(exclusions),
        ),
        services=TrafficQueryServices(include=traffic_build_port_filters(service)),
        start_date=start_utc.strftime(_RFC3339_UTC_FORMAT),
        end_date=end_utc.strftime(_RFC3339_UTC_FORMAT),
        query_name=f"Auto Deny {window.name} Env: {environment.value} App: {application.value} Service: {service.name}",
    )


def traffic_build_port_filters(service: Service) -> list[ServicePortFilter]:
    """Return service port filters; a zero `to_port` means no range and is dropped."""

    return [
        ServicePortFilter(
            port=service_port.port,
            proto=service_port.proto,
            to_port=service_port.to_port or None,
        )
        for service_port in service.service_ports
    ]


def traffic_build_transmission_exclusions(exclusions: TransmissionExclusions) -> list[TransmissionExclusion]:
    transmission_exclusions: list[TransmissionExclusion] = []
    if exclusions.broadcast:
        transmission_exclusions.append(TransmissionExclusion(transmission="broadcast"))
    if exclusions.multicast:
        transmission_exclusions.append(TransmissionExclusion(transmission="multicast"))
    return transmission_exclusions
