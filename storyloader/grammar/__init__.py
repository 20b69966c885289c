"""Bundled grammar engine used by GrammarLoader by default."""

from .parser import DEFAULT_MAX_DEPTH, Parser
from .protocol import GrammarEngine, ValidationResult

__all__ = ["DEFAULT_MAX_DEPTH", "GrammarEngine", "Parser", "ValidationResult"]
