"""Deny-rule synthesis from finalized no-traffic findings."""

from __future__ import annotations

from typing import Final

import structlog

from autodeny.adapters import PayloadContractError, PceTransportPort, RuleCreationError, TransportError
from autodeny.adapters.pce_payloads import (
    DenyRuleCreateRequest,
    HrefPayload,
    IpListActor,
    LabelActor,
    LabelReference,
    RuleSetCreateRequest,
    ServiceReference,
    payload_parse,
)
from autodeny.domain import DenyRuleRequest, NoTrafficFinding

from .interfaces import RuleSynthesizerPort

logger = structlog.get_logger(__name__)


class DenyRuleSynthesizer(RuleSynthesizerPort):
    """Create the run's rule set and one deny rule per finding."""

    _RULE_SET_DESCRIPTION: Final[str] = "Created by auto-deny-rules."

    def __init__(self, transport: PceTransportPort):
        """Initialize synthesizer.

        Args:
            transport: PCE transport collaborator with built-in retry.

        Raises:
            ValueError: Raised when transport is missing.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        self._transport = transport

    def rules_create_rule_set(self, name: str) -> str:
        """Create an unscoped draft rule set.

        Args:
            name: Rule set name.

        Returns:
            str: Rule set href.

        Raises:
            RuleCreationError: Raised when creation fails or no href is returned.
        """

        request_body = RuleSetCreateRequest(name=name, description=self._RULE_SET_DESCRIPTION)
        try:
            payload = self._transport.transport_request(
                "POST",
                self._transport.transport_org_path("sec_policy/draft/rule_sets"),
                json_body=request_body.payload_as_json(),
            )
            rule_set_reference = payload_parse(HrefPayload, payload, context_label="rule set creation")
        except (TransportError, PayloadContractError) as error:
            raise RuleCreationError(f"failed to create rule set {name!r}: {error}") from error

        logger.info("rule_set_created", name=name, href=rule_set_reference.href)
        return rule_set_reference.href

    def rules_build_request(
        self,
        rule_set_href: str,
        finding: NoTrafficFinding,
        target_href: str,
    ) -> DenyRuleRequest:
        """Build the deny-rule request for one finding.

        Providers are the environment label followed by every application label
        in href order.

        Args:
            rule_set_href: Owning rule set href.
            finding: Finalized no-traffic finding.
            target_href: Shared any-address IP list href.

        Returns:
            DenyRuleRequest: Request ready for submission.

        Raises:
            ValueError: Raised when the finding has no applications or references are blank.
        """

        if not finding.applications:
            raise ValueError("finding must contain at least one application")
        if not rule_set_href.strip():
            raise ValueError("rule_set_href must not be blank")
        if not target_href.strip():
            raise ValueError("target_href must not be blank")

        provider_hrefs = [finding.environment.href]
        provider_hrefs.extend(application.href for application in finding.finding_sorted_applications())
        return DenyRuleRequest(
            rule_set_href=rule_set_href,
            service_href=finding.service.href,
            provider_hrefs=tuple(provider_hrefs),
            consumer_href=target_href,
        )

    def rules_synthesize(self, rule_set_href: str, finding: NoTrafficFinding, target_href: str) -> DenyRuleRequest:
        """Build and submit one deny rule; submitted once, no retry above the transport.

        Args:
            rule_set_href: Owning rule set href.
            finding: Finalized no-traffic finding.
            target_href: Shared any-address IP list href.

        Returns:
            DenyRuleRequest: Submitted request.

        Raises:
            RuleCreationError: Raised when the request is invalid or submission fails.
        """

        try:
            deny_rule_request = self.rules_build_request(
                rule_set_href=rule_set_href,
                finding=finding,
                target_href=target_href,
            )
        except ValueError as error:
            raise RuleCreationError(f"invalid deny rule request: {error}") from error

        request_body = DenyRuleCreateRequest(
            providers=[LabelActor(label=LabelReference(href=href)) for href in deny_rule_request.provider_hrefs],
            consumers=[IpListActor(ip_list=LabelReference(href=deny_rule_request.consumer_href))],
            ingress_services=[ServiceReference(href=deny_rule_request.service_href)],
        )
        try:
            self._transport.transport_request(
                "POST",
                f"{rule_set_href.rstrip('/')}/deny_rules",
                json_body=request_body.payload_as_json(),
            )
        except TransportError as error:
            raise RuleCreationError(
                f"failed to create deny rule for env={finding.environment.value} service={finding.service.name}: {error}",
                status_code=error.status_code,
            ) from error

        logger.info(
            "deny_rule_created",
            environment=finding.environment.value,
            service=finding.service.name,
            application_count=len(finding.applications),
        )
        return deny_rule_request

    def rules_delete_rule_set(self, rule_set_href: str) -> None:
        """Delete a draft rule set, used for rule sets left empty by a run.

        Args:
            rule_set_href: Rule set href.

        Raises:
            RuleCreationError: Raised when deletion fails.
        """

        try:
            self._transport.transport_request("DELETE", rule_set_href)
        except TransportError as error:
            raise RuleCreationError(f"failed to delete rule set {rule_set_href}: {error}") from error
        logger.info("rule_set_deleted", href=rule_set_href)
