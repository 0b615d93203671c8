"""Rule synthesis package for deny-rule creation."""

from .interfaces import RuleSynthesizerPort
from .synthesizer import DenyRuleSynthesizer

__all__ = ["DenyRuleSynthesizer", "RuleSynthesizerPort"]
