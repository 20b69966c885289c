"""
Contract between the loader and a grammar engine.

The loader only talks to the engine through this protocol, so any engine with
these methods can be plugged into GrammarLoader. storyloader.grammar.Parser is
the bundled implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

Thunk = Callable[[], Sequence[str]]
ConditionFn = Callable[[Mapping[str, str]], bool]


@dataclass
class ValidationResult:
    is_valid: bool
    missing_rules: list[str] = field(default_factory=list)
    circular_references: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "missingRules": list(self.missing_rules),
            "circularReferences": list(self.circular_references),
            "warnings": list(self.warnings),
        }


@runtime_checkable
class GrammarEngine(Protocol):
    def add_rule(self, name: str, values: Sequence[str]) -> None: ...

    def add_function_rule(self, name: str, thunk: Thunk) -> None: ...

    def add_weighted_rule(self, name: str, values: Sequence[str], weights: Sequence[float]) -> None: ...

    def add_conditional_rule(self, name: str, conditions: Sequence[Mapping[str, Any]]) -> None:
        """Entries are {"if": ConditionFn, "then": [...]} or {"default": [...]}."""
        ...

    def add_sequential_rule(self, name: str, values: Sequence[str], *, cycle: bool = True) -> None: ...

    def add_range_rule(
        self,
        name: str,
        *,
        min: float,
        max: float,
        step: float | None = None,
        type: str | None = None,
    ) -> None: ...

    def add_template_rule(self, name: str, *, template: str, variables: Mapping[str, Sequence[str]]) -> None: ...

    def set_max_depth(self, depth: int) -> None: ...

    def set_random_seed(self, seed: int) -> None: ...

    def load_modifier(self, name: str) -> bool:
        """Enable a named modifier; False when the engine does not know it."""
        ...

    def parse(self, text: str, preserve_context: bool = False) -> str: ...

    def validate(self) -> ValidationResult: ...

    def clear_all(self) -> None: ...

    def has_rule(self, name: str) -> bool: ...
