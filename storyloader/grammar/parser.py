"""
Bundled grammar engine.

Expands `%rule%` placeholders in text by resolving named rules, recursively,
up to a maximum depth. Randomness comes from a per-parser random.Random so a
seed makes output reproducible.
"""

from __future__ import annotations

import logging
import random
import re
from typing import Any, Mapping, Sequence

from ..errors import MaxDepthExceededError
from .modifiers import BUILTIN_MODIFIERS, Modifier
from .protocol import Thunk, ValidationResult
from .rules import (
    PLACEHOLDER_RE,
    ConditionalRule,
    FunctionRule,
    GrammarRule,
    RangeRule,
    SequentialRule,
    StaticRule,
    TemplateRule,
    WeightedRule,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


class Parser:
    def __init__(self, *, max_depth: int = DEFAULT_MAX_DEPTH, random_seed: int | None = None):
        self._rules: dict[str, GrammarRule] = {}
        self._modifiers: dict[str, Modifier] = {}
        self._context: dict[str, str] = {}
        self._max_depth = max_depth
        self._random_seed = random_seed
        self._rng = random.Random(random_seed)

    # -------------------------------------------------------------------------
    # Rule registration (same name replaces the earlier rule)
    # -------------------------------------------------------------------------

    def _set_rule(self, name: str, rule: GrammarRule) -> None:
        if name in self._rules:
            logger.debug("Replacing rule %r with %s", name, type(rule).__name__)
        self._rules[name] = rule

    def add_rule(self, name: str, values: Sequence[str]) -> None:
        self._set_rule(name, StaticRule(list(values)))

    def add_function_rule(self, name: str, thunk: Thunk) -> None:
        self._set_rule(name, FunctionRule(thunk))

    def add_weighted_rule(self, name: str, values: Sequence[str], weights: Sequence[float]) -> None:
        self._set_rule(name, WeightedRule(list(values), list(weights)))

    def add_conditional_rule(self, name: str, conditions: Sequence[Mapping[str, Any]]) -> None:
        self._set_rule(name, ConditionalRule([dict(c) for c in conditions]))

    def add_sequential_rule(self, name: str, values: Sequence[str], *, cycle: bool = True) -> None:
        self._set_rule(name, SequentialRule(list(values), cycle=cycle))

    def add_range_rule(
        self,
        name: str,
        *,
        min: float,
        max: float,
        step: float | None = None,
        type: str | None = None,
    ) -> None:
        self._set_rule(name, RangeRule(min, max, step, type or "integer"))

    def add_template_rule(self, name: str, *, template: str, variables: Mapping[str, Sequence[str]]) -> None:
        self._set_rule(name, TemplateRule(template, {k: list(v) for k, v in variables.items()}))

    def has_rule(self, name: str) -> bool:
        return name in self._rules

    def remove_rule(self, name: str) -> bool:
        return self._rules.pop(name, None) is not None

    def get_rule_names(self) -> list[str]:
        return list(self._rules.keys())

    def reset_sequential_rules(self) -> None:
        for rule in self._rules.values():
            if isinstance(rule, SequentialRule):
                rule.reset()

    def clear_all(self) -> None:
        self._rules.clear()
        self._context.clear()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_max_depth(self, depth: int) -> None:
        if depth < 1:
            raise ValueError("max depth must be a positive integer")
        self._max_depth = depth

    def get_max_depth(self) -> int:
        return self._max_depth

    def set_random_seed(self, seed: int) -> None:
        self._random_seed = seed
        self._rng.seed(seed)

    def get_random_seed(self) -> int | None:
        return self._random_seed

    def clear_random_seed(self) -> None:
        self._random_seed = None
        self._rng.seed()

    # -------------------------------------------------------------------------
    # Context
    # -------------------------------------------------------------------------

    def get_context(self) -> dict[str, str]:
        return dict(self._context)

    def set_context(self, context: Mapping[str, str]) -> None:
        self._context = {str(k): str(v) for k, v in context.items()}

    def clear_context(self) -> None:
        self._context.clear()

    # -------------------------------------------------------------------------
    # Modifiers
    # -------------------------------------------------------------------------

    def add_modifier(self, name: str, modifier: Modifier) -> None:
        self._modifiers[name] = modifier

    def load_modifier(self, name: str) -> bool:
        modifier = BUILTIN_MODIFIERS.get(name)
        if modifier is None:
            return False
        self.add_modifier(name, modifier)
        return True

    def get_modifiers(self) -> list[str]:
        return list(self._modifiers.keys())

    def clear_modifiers(self) -> None:
        self._modifiers.clear()

    # -------------------------------------------------------------------------
    # Expansion
    # -------------------------------------------------------------------------

    def parse(self, text: str, preserve_context: bool = False) -> str:
        """
        Expand every `%rule%` placeholder in `text`.

        With preserve_context, each expanded rule value is recorded in the
        context (visible to later conditional rules, also across calls).
        Without it the context is reset first and nothing is recorded.
        """
        if not preserve_context:
            self._context.clear()
        result = self._expand(text, 0, preserve_context)
        for modifier in self._modifiers.values():
            result = modifier(result)
        return result

    def _expand(self, text: str, depth: int, record: bool) -> str:
        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            rule = self._rules.get(name)
            if rule is None:
                return match.group(0)
            if depth >= self._max_depth:
                raise MaxDepthExceededError(self._max_depth, name)
            value = self._expand(rule.pick(self._rng, self._context), depth + 1, record)
            if record:
                self._context[name] = value
            return value

        return PLACEHOLDER_RE.sub(replace, text)

    # -------------------------------------------------------------------------
    # Static checks
    # -------------------------------------------------------------------------

    def _references(self) -> dict[str, list[str]]:
        refs: dict[str, list[str]] = {}
        for name, rule in self._rules.items():
            found: list[str] = []
            for text in rule.texts():
                for ref in PLACEHOLDER_RE.findall(text):
                    if ref not in found:
                        found.append(ref)
            refs[name] = found
        return refs

    def validate(self) -> ValidationResult:
        refs = self._references()

        missing: list[str] = []
        for targets in refs.values():
            for target in targets:
                if target not in self._rules and target not in missing:
                    missing.append(target)

        cycles = _find_cycles(refs)

        warnings: list[str] = []
        for name, rule in self._rules.items():
            if isinstance(rule, (StaticRule, SequentialRule)) and not rule.values:
                warnings.append(f"Rule '{name}' has no values")
            elif isinstance(rule, WeightedRule) and len(rule.values) != len(rule.weights):
                warnings.append(
                    f"Rule '{name}' has {len(rule.values)} values but {len(rule.weights)} weights"
                )
            elif isinstance(rule, ConditionalRule) and not any("default" in c for c in rule.conditions):
                warnings.append(f"Conditional rule '{name}' has no default")
            elif isinstance(rule, RangeRule) and rule.max <= rule.min:
                warnings.append(f"Range rule '{name}' has max <= min")

        return ValidationResult(
            is_valid=not missing and not cycles,
            missing_rules=missing,
            circular_references=cycles,
            warnings=warnings,
        )


def _find_cycles(refs: dict[str, list[str]]) -> list[str]:
    """Reference cycles, each reported once as 'a -> b -> a'."""
    cycles: list[str] = []
    seen_sets: list[frozenset[str]] = []
    done: set[str] = set()

    def visit(node: str, path: list[str]) -> None:
        for target in refs.get(node, []):
            if target not in refs:
                continue
            if target in path:
                loop = path[path.index(target):]
                key = frozenset(loop)
                if key not in seen_sets:
                    seen_sets.append(key)
                    cycles.append(" -> ".join(loop + [target]))
                continue
            if target in done:
                continue
            visit(target, path + [target])
        done.add(node)

    for start in refs:
        if start not in done:
            visit(start, [start])
    return cycles
