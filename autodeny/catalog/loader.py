"""PCE catalog loader for environments, risky services, app sets and IP lists."""

from __future__ import annotations

import json
from typing import Final

import structlog

from autodeny.adapters import CatalogError, NotFoundError, PayloadContractError, PceTransportPort, TransportError
from autodeny.adapters.pce_payloads import (
    IpListPayload,
    LabelPayload,
    ServicePayload,
    WorkloadPayload,
    payload_parse,
)
from autodeny.domain import EnvironmentAppSet, Label, Service

from .interfaces import CatalogLoaderPort

logger = structlog.get_logger(__name__)


class PceCatalogLoader(CatalogLoaderPort):
    """Read-only catalog lookups against the PCE draft policy and inventory APIs."""

    _ENVIRONMENT_LABEL_KEY: Final[str] = "env"
    _APPLICATION_LABEL_KEY: Final[str] = "app"
    _ELIGIBLE_ENFORCEMENT_MODES: Final[tuple[str, ...]] = ("idle", "selective", "visibility_only")
    _IP_LIST_MAX_RESULTS: Final[str] = "500"

    def __init__(self, transport: PceTransportPort):
        """Initialize catalog loader.

        Args:
            transport: PCE transport collaborator with built-in retry.

        Raises:
            ValueError: Raised when transport is missing.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        self._transport = transport

    def catalog_load_environments(self) -> list[Label]:
        """Return environment labels in upstream order.

        Returns:
            list[Label]: Environment labels.

        Raises:
            CatalogError: Raised when the listing fails or is malformed.
        """

        label_payloads = self._catalog_get(
            suffix="labels",
            query_parameters={"key": self._ENVIRONMENT_LABEL_KEY},
            payload_type=list[LabelPayload],
            context_label="environment labels",
        )
        environments = [label_payload.payload_to_domain() for label_payload in label_payloads]
        logger.info("catalog_environments_loaded", environment_count=len(environments))
        return environments

    def catalog_load_risky_services(self) -> list[Service]:
        """Return ransomware-flagged draft services in upstream order.

        Returns:
            list[Service]: Risky services with their port/protocol entries.

        Raises:
            CatalogError: Raised when the listing fails or is malformed.
        """

        service_payloads = self._catalog_get(
            suffix="sec_policy/draft/services",
            query_parameters={"is_ransomware": "true"},
            payload_type=list[ServicePayload],
            context_label="risky services",
        )
        services = [service_payload.payload_to_domain() for service_payload in service_payloads]
        logger.info("catalog_risky_services_loaded", service_count=len(services))
        return services

    def catalog_load_app_set_for_environment(self, environment: Label) -> EnvironmentAppSet:
        """Return unique app labels of online, managed, enforcement-eligible workloads.

        Args:
            environment: Environment label scoping the workload query.

        Returns:
            EnvironmentAppSet: Applications deduplicated by href; may be empty.

        Raises:
            CatalogError: Raised when the workload listing fails or is malformed.
        """

        workload_payloads = self._catalog_get(
            suffix="workloads",
            query_parameters={
                "managed": "true",
                "online": "true",
                "labels": json.dumps([[environment.href]]),
                "enforcement_modes": json.dumps(list(self._ELIGIBLE_ENFORCEMENT_MODES)),
            },
            payload_type=list[WorkloadPayload],
            context_label=f"workloads for env {environment.value}",
        )

        applications_by_href: dict[str, Label] = {}
        for workload_payload in workload_payloads:
            for label_payload in workload_payload.labels:
                if label_payload.key != self._APPLICATION_LABEL_KEY:
                    continue
                applications_by_href.setdefault(label_payload.href, label_payload.payload_to_domain())

        logger.debug(
            "catalog_app_set_loaded",
            environment=environment.value,
            workload_count=len(workload_payloads),
            application_count=len(applications_by_href),
        )
        return EnvironmentAppSet(environment=environment, applications=tuple(applications_by_href.values()))

    def catalog_resolve_any_address_target(self, name: str) -> str:
        """Return the href of the single draft IP list with exactly this name.

        The PCE name filter is a partial match, so results are narrowed to exact
        names before the uniqueness check.

        Args:
            name: IP list name, e.g. `Any (0.0.0.0/0 and ::/0)`.

        Returns:
            str: IP list href.

        Raises:
            NotFoundError: Raised when the lookup fails or zero/several lists match.
        """

        normalized_name = name.strip()
        if not normalized_name:
            raise NotFoundError("IP list name must not be blank")

        try:
            payload = self._transport.transport_request(
                "GET",
                self._transport.transport_org_path("sec_policy/draft/ip_lists"),
                query_parameters={"name": normalized_name, "max_results": self._IP_LIST_MAX_RESULTS},
            )
            ip_list_payloads = payload_parse(list[IpListPayload], payload, context_label="ip lists")
        except (TransportError, PayloadContractError) as error:
            raise NotFoundError(f"IP list lookup failed for name={normalized_name!r}: {error}") from error

        exact_matches = [ip_list for ip_list in ip_list_payloads if ip_list.name == normalized_name]
        if not exact_matches:
            raise NotFoundError(f"no IP list found with name={normalized_name!r}")
        if len(exact_matches) > 1:
            raise NotFoundError(
                f"IP list name={normalized_name!r} is ambiguous: {len(exact_matches)} matches"
            )

        logger.info("catalog_any_address_target_resolved", name=normalized_name, href=exact_matches[0].href)
        return exact_matches[0].href

    def _catalog_get(self, suffix: str, query_parameters: dict[str, str], payload_type, context_label: str):
        """GET one org-scoped listing and parse it, mapping failures to `CatalogError`.

        Args:
            suffix: Path below `/orgs/{org}`.
            query_parameters: Query string parameters.
            payload_type: Expected payload type.
            context_label: Context label for error messages.

        Returns:
            object: Parsed payload.

        Raises:
            CatalogError: Raised when the transport gives up or payload is invalid.
        """

        try:
            payload = self._transport.transport_request(
                "GET",
                self._transport.transport_org_path(suffix),
                query_parameters=query_parameters,
            )
            return payload_parse(payload_type, payload, context_label=context_label)
        except (TransportError, PayloadContractError) as error:
            raise CatalogError(f"failed to load {context_label}: {error}") from error
