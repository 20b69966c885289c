"""
Keyword rules: untyped rule objects whose type is inferred from their keys.

    {"colors": ["red", "blue"],                               # static
     "greeting": {"if": "context.time === 'morning'",
                  "then": ["Good morning!"], "else": ["Hello!"]},  # conditional
     "weather": {"values": [...], "weights": [...]},          # weighted
     "temperature": {"min": 20, "max": 30}}                   # range

Classification walks KEYWORD_PROBES in order and the first probe that
matches decides the type. An object that fits several shapes always takes the
earliest one: {"if": ..., "then": ..., "values": ..., "weights": ...} is a
conditional rule and its weighted keys are ignored.

Truthiness follows the JSON-config convention the format grew up with: empty
lists and objects count as present, empty strings, 0, false and null do not.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable

from .errors import AmbiguousRuleShapeError, InvalidRuleConfigError
from .load import parse_modifiers, parse_settings, read_grammar_file
from .loader import GrammarLoader
from .schema import (
    ConditionalRuleConfig,
    ConditionEntry,
    Default,
    FunctionRuleConfig,
    GrammarConfig,
    IfThen,
    RangeRuleConfig,
    RuleConfig,
    SequentialRuleConfig,
    StaticRuleConfig,
    TemplateRuleConfig,
    WeightedRuleConfig,
)

KeywordRule = list[str] | Mapping[str, Any]


def _present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (list, tuple, dict)) or isinstance(value, Mapping):
        return True
    return bool(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# -----------------------------------------------------------------------------
# Probes and converters
# -----------------------------------------------------------------------------


def _is_static(rule: Any) -> bool:
    return isinstance(rule, (list, tuple))


def _to_static(rule: Any) -> RuleConfig:
    return StaticRuleConfig(values=list(rule))


def _is_conditional(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _present(rule.get("if")) and _present(rule.get("then"))


def _to_conditional(rule: Mapping[str, Any]) -> RuleConfig:
    conditions: list[ConditionEntry] = [IfThen(if_=str(rule["if"]), then=list(rule["then"]))]
    # Single if/else only; there is no elseif chaining in keyword form.
    if _present(rule.get("else")):
        conditions.append(Default(default=list(rule["else"])))
    return ConditionalRuleConfig(conditions=conditions)


def _is_weighted(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _present(rule.get("values")) and _present(rule.get("weights"))


def _to_weighted(rule: Mapping[str, Any]) -> RuleConfig:
    return WeightedRuleConfig(values=list(rule["values"]), weights=list(rule["weights"]))


def _is_range(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _is_number(rule.get("min")) and _is_number(rule.get("max"))


def _to_range(rule: Mapping[str, Any]) -> RuleConfig:
    return RangeRuleConfig(
        min=rule["min"],
        max=rule["max"],
        step=rule.get("step"),
        number_type=rule.get("type") or "integer",
    )


def _is_template(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _present(rule.get("template")) and _present(rule.get("variables"))


def _to_template(rule: Mapping[str, Any]) -> RuleConfig:
    return TemplateRuleConfig(
        template=str(rule["template"]),
        variables={str(k): list(v) for k, v in dict(rule["variables"]).items()},
    )


def _is_sequential(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _present(rule.get("sequence"))


def _to_sequential(rule: Mapping[str, Any]) -> RuleConfig:
    # cycle passes through untouched; the loader applies the default.
    return SequentialRuleConfig(values=list(rule["sequence"]), cycle=rule.get("cycle"))


def _is_function(rule: Any) -> bool:
    return isinstance(rule, Mapping) and _present(rule.get("function"))


def _to_function(rule: Mapping[str, Any]) -> RuleConfig:
    parameters = rule.get("parameters")
    return FunctionRuleConfig(
        function_name=str(rule["function"]),
        parameters=dict(parameters) if isinstance(parameters, Mapping) else None,
    )


KEYWORD_PROBES: tuple[tuple[str, Callable[[Any], bool], Callable[[Any], RuleConfig]], ...] = (
    ("static", _is_static, _to_static),
    ("conditional", _is_conditional, _to_conditional),
    ("weighted", _is_weighted, _to_weighted),
    ("range", _is_range, _to_range),
    ("template", _is_template, _to_template),
    ("sequential", _is_sequential, _to_sequential),
    ("function", _is_function, _to_function),
)


def classify_keyword_rule(rule: Any, name: str | None = None) -> str:
    """Return the rule type a keyword rule would be converted to."""
    for rule_type, probe, _ in KEYWORD_PROBES:
        if probe(rule):
            return rule_type
    raise AmbiguousRuleShapeError(name)


def convert_keyword_rule(rule: Any, name: str | None = None) -> RuleConfig:
    """Convert a keyword rule into its typed RuleConfig."""
    for _, probe, convert in KEYWORD_PROBES:
        if probe(rule):
            return convert(rule)
    raise AmbiguousRuleShapeError(name)


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------


class KeywordRuleBuilder:
    """Loads keyword rules through a GrammarLoader."""

    def __init__(self, loader: GrammarLoader):
        self.loader = loader

    def _load_one(self, name: str, config: RuleConfig) -> None:
        self.loader.load_from_config(GrammarConfig(rules={name: config}))

    def load_keyword_config(self, config: Mapping[str, Any]) -> None:
        """
        Convert every keyword rule, then load them in one load_from_config
        call. Settings and modifiers pass through unchanged. A rule whose
        shape cannot be classified fails the whole call before anything is
        registered.
        """
        rules = config.get("rules") if isinstance(config, Mapping) else None
        if not isinstance(rules, Mapping):
            raise InvalidRuleConfigError("Keyword config requires a 'rules' object")

        converted = {str(name): convert_keyword_rule(rule, str(name)) for name, rule in rules.items()}
        self.loader.load_from_config(
            GrammarConfig(
                rules=converted,
                modifiers=parse_modifiers(config.get("modifiers")),
                settings=parse_settings(config.get("settings")),
            )
        )

    def load_keyword_file(self, path: Path | str) -> None:
        self.load_keyword_config(read_grammar_file(Path(path)))

    def create_conditional_rule(self, name: str, condition: Mapping[str, Any]) -> None:
        """
        builder.create_conditional_rule("weapon", {
            "if": "context.character_type === 'warrior'",
            "then": ["sword", "axe", "hammer"],
            "else": ["dagger", "staff"],
        })
        """
        # Missing or empty keys fail in the loader with InvalidConditionFormatError.
        then = condition.get("then")
        conditions: list[ConditionEntry] = [
            IfThen(if_=condition.get("if") or "", then=list(then) if then is not None else None)  # type: ignore[arg-type]
        ]
        if _present(condition.get("else")):
            conditions.append(Default(default=list(condition["else"])))
        self._load_one(name, ConditionalRuleConfig(conditions=conditions))

    def create_weighted_rule(self, name: str, rule: Mapping[str, Any]) -> None:
        self._load_one(name, _to_weighted(rule))

    def create_range_rule(self, name: str, rule: Mapping[str, Any]) -> None:
        self._load_one(name, _to_range(rule))

    def create_template_rule(self, name: str, rule: Mapping[str, Any]) -> None:
        self._load_one(name, _to_template(rule))

    def create_sequential_rule(self, name: str, rule: Mapping[str, Any]) -> None:
        self._load_one(name, _to_sequential(rule))

    def create_function_rule(self, name: str, rule: Mapping[str, Any]) -> None:
        self._load_one(name, _to_function(rule))
