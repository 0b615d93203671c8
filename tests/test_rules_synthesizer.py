"""Regression tests for rule set creation and deny-rule synthesis."""

from __future__ import annotations

import json

import pytest

from autodeny.adapters import RuleCreationError, TransportError
from autodeny.domain import Label, NoTrafficFinding, Service
from autodeny.rules import DenyRuleSynthesizer

_PROD = Label(href="/orgs/1/labels/e1", key="env", value="PROD")
_CRM = Label(href="/orgs/1/labels/a1", key="app", value="CRM")
_BILLING = Label(href="/orgs/1/labels/a2", key="app", value="BILLING")
_RDP = Service(href="/orgs/1/sec_policy/draft/services/9", name="RDP")
_RULE_SET_HREF = "/orgs/1/sec_policy/draft/rule_sets/42"
_TARGET_HREF = "/orgs/1/sec_policy/draft/ip_lists/1"


class _RecordingTransport:
    """Transport stub recording write calls."""

    def __init__(self, failure: Exception | None = None, response: dict[str, object] | None = None):
        """Initialize transport stub.

        Args:
            failure: Optional exception raised by every request.
            response: Optional JSON response body.

        Returns:
            None: Initializer does not return values.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self._failure = failure
        self._response = response if response is not None else {"href": _RULE_SET_HREF}
        self.calls: list[tuple[str, str, object]] = []

    def transport_org_path(self, suffix: str) -> str:
        return f"/orgs/1/{suffix}"

    def transport_request(self, method, path, json_body=None, query_parameters=None) -> bytes:
        _ = query_parameters
        self.calls.append((method, path, json_body))
        if self._failure is not None:
            raise self._failure
        return json.dumps(self._response).encode("utf-8")


def test_rules_create_rule_set_posts_unscoped_draft_rule_set() -> None:
    """Create rule set with empty scope and return its href.

    Returns:
        None: Assertions validate rule set request and response handling.

    Raises:
        AssertionError: Raised when rule set creation differs.
    """

    transport = _RecordingTransport()

    rule_set_href = DenyRuleSynthesizer(transport=transport).rules_create_rule_set(
        "Auto Deny Rules - Jan 02, 2026 15:04:05"
    )

    method, path, body = transport.calls[0]
    assert rule_set_href == _RULE_SET_HREF
    assert (method, path) == ("POST", "/orgs/1/sec_policy/draft/rule_sets")
    assert body == {
        "name": "Auto Deny Rules - Jan 02, 2026 15:04:05",
        "description": "Created by auto-deny-rules.",
        "scopes": [[]],
    }


def test_rules_create_rule_set_without_href_raises() -> None:
    """Raise RuleCreationError when creation response lacks href.

    Returns:
        None: Assertions validate response contract enforcement.

    Raises:
        AssertionError: Raised when missing href is accepted.
    """

    transport = _RecordingTransport(response={"name": "created"})

    with pytest.raises(RuleCreationError):
        DenyRuleSynthesizer(transport=transport).rules_create_rule_set("Auto Deny Rules")


def test_rules_synthesize_posts_environment_then_sorted_applications() -> None:
    """Submit one deny rule with env provider first and apps in href order.

    Returns:
        None: Assertions validate deny-rule body.

    Raises:
        AssertionError: Raised when providers or consumers differ.
    """

    transport = _RecordingTransport(response={"href": f"{_RULE_SET_HREF}/deny_rules/1"})
    finding = NoTrafficFinding(environment=_PROD, service=_RDP, applications=frozenset({_BILLING, _CRM}))

    deny_rule_request = DenyRuleSynthesizer(transport=transport).rules_synthesize(
        rule_set_href=_RULE_SET_HREF,
        finding=finding,
        target_href=_TARGET_HREF,
    )

    method, path, body = transport.calls[0]
    assert (method, path) == ("POST", f"{_RULE_SET_HREF}/deny_rules")
    assert deny_rule_request.provider_hrefs == ("/orgs/1/labels/e1", "/orgs/1/labels/a1", "/orgs/1/labels/a2")
    assert body["providers"] == [
        {"label": {"href": "/orgs/1/labels/e1"}},
        {"label": {"href": "/orgs/1/labels/a1"}},
        {"label": {"href": "/orgs/1/labels/a2"}},
    ]
    assert body["consumers"] == [{"ip_list": {"href": _TARGET_HREF}}]
    assert body["ingress_services"] == [{"href": _RDP.href}]
    assert body["egress_services"] == []
    assert body["network_type"] == "brn"
    assert body["enabled"] is True


def test_rules_synthesize_transport_failure_keeps_status_code() -> None:
    """Map rejected deny-rule submission to RuleCreationError with status code.

    Returns:
        None: Assertions validate error mapping.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    transport = _RecordingTransport(failure=TransportError("POST failed", status_code=406))
    finding = NoTrafficFinding(environment=_PROD, service=_RDP, applications=frozenset({_CRM}))

    with pytest.raises(RuleCreationError, match="env=PROD service=RDP") as error_info:
        DenyRuleSynthesizer(transport=transport).rules_synthesize(_RULE_SET_HREF, finding, _TARGET_HREF)

    assert error_info.value.status_code == 406
    assert len(transport.calls) == 1


def test_rules_synthesize_rejects_empty_finding_without_request() -> None:
    """Reject findings without applications before any request.

    Returns:
        None: Assertions validate request validation.

    Raises:
        AssertionError: Raised when empty finding is submitted.
    """

    transport = _RecordingTransport()
    finding = NoTrafficFinding(environment=_PROD, service=_RDP, applications=frozenset())

    with pytest.raises(RuleCreationError, match="at least one application"):
        DenyRuleSynthesizer(transport=transport).rules_synthesize(_RULE_SET_HREF, finding, _TARGET_HREF)

    assert transport.calls == []


def test_rules_delete_rule_set_sends_delete() -> None:
    """Delete rule set by href.

    Returns:
        None: Assertions validate delete request.

    Raises:
        AssertionError: Raised when delete request differs.
    """

    transport = _RecordingTransport(response={})

    DenyRuleSynthesizer(transport=transport).rules_delete_rule_set(_RULE_SET_HREF)

    assert transport.calls == [("DELETE", _RULE_SET_HREF, None)]
