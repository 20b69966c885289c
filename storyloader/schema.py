from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Literal, Union


RuleType = Literal["static", "function", "weighted", "conditional", "sequential", "range", "template"]
NumberType = Literal["integer", "float"]

RULE_TYPES: tuple[str, ...] = ("static", "function", "weighted", "conditional", "sequential", "range", "template")

FunctionHandler = Callable[[dict[str, Any]], list[str]]


@dataclass(frozen=True)
class FunctionDefinition:
    name: str
    handler: FunctionHandler
    description: str = ""


@dataclass(frozen=True)
class IfThen:
    """Conditional entry chosen when its condition text evaluates true."""

    if_: str
    then: list[str]


@dataclass(frozen=True)
class Default:
    """Fallback entry, used only when no IfThen entry matched."""

    default: list[str]


ConditionEntry = Union[IfThen, Default]


@dataclass(frozen=True)
class StaticRuleConfig:
    type: ClassVar[str] = "static"
    values: list[str]


@dataclass(frozen=True)
class FunctionRuleConfig:
    type: ClassVar[str] = "function"
    function_name: str
    parameters: dict[str, Any] | None = None


@dataclass(frozen=True)
class WeightedRuleConfig:
    type: ClassVar[str] = "weighted"
    values: list[str]
    weights: list[float]


@dataclass(frozen=True)
class ConditionalRuleConfig:
    type: ClassVar[str] = "conditional"
    # Entries may also be raw mappings; the loader rejects anything that is
    # neither an if/then nor a default shape.
    conditions: list[Any]


@dataclass(frozen=True)
class SequentialRuleConfig:
    type: ClassVar[str] = "sequential"
    values: list[str]
    cycle: bool | None = None


@dataclass(frozen=True)
class RangeRuleConfig:
    type: ClassVar[str] = "range"
    min: float
    max: float
    step: float | None = None
    number_type: NumberType | None = None


@dataclass(frozen=True)
class TemplateRuleConfig:
    type: ClassVar[str] = "template"
    template: str
    variables: dict[str, list[str]]


RuleConfig = Union[
    StaticRuleConfig,
    FunctionRuleConfig,
    WeightedRuleConfig,
    ConditionalRuleConfig,
    SequentialRuleConfig,
    RangeRuleConfig,
    TemplateRuleConfig,
]

RULE_CONFIG_CLASSES: dict[str, type] = {
    cls.type: cls
    for cls in (
        StaticRuleConfig,
        FunctionRuleConfig,
        WeightedRuleConfig,
        ConditionalRuleConfig,
        SequentialRuleConfig,
        RangeRuleConfig,
        TemplateRuleConfig,
    )
}

assert tuple(RULE_CONFIG_CLASSES) == RULE_TYPES, "RuleConfig variants out of sync with RULE_TYPES"


@dataclass(frozen=True)
class GrammarSettings:
    max_depth: int | None = None
    random_seed: int | None = None


@dataclass(frozen=True)
class GrammarConfig:
    rules: dict[str, RuleConfig] = field(default_factory=dict)
    modifiers: list[str] | None = None
    settings: GrammarSettings | None = None
