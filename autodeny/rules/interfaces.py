"""Typed interfaces for deny-rule synthesis responsibilities."""

from typing import Protocol

from autodeny.domain import DenyRuleRequest, NoTrafficFinding


class RuleSynthesizerPort(Protocol):
    """Port definition for rule-set and deny-rule creation."""

    def rules_create_rule_set(self, name: str) -> str:
        """Create an empty draft rule set and return its href.

        Raises:
            RuleCreationError: Raised when the rule set cannot be created.
        """

    def rules_synthesize(self, rule_set_href: str, finding: NoTrafficFinding, target_href: str) -> DenyRuleRequest:
        """Create one deny rule for a finalized finding.

        Raises:
            RuleCreationError: Raised when the deny rule cannot be created.
        """

    def rules_delete_rule_set(self, rule_set_href: str) -> None:
        """Delete a draft rule set.

        Raises:
            RuleCreationError: Raised when the rule set cannot be deleted.
        """
