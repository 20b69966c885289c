"""storyloader - declarative JSON/YAML/TOML front end for text-generation grammars."""

__version__ = "0.3.0"

from .errors import (
    AmbiguousRuleShapeError,
    ConditionSyntaxError,
    ConfigParseError,
    GrammarEngineError,
    GrammarLoaderError,
    InvalidConditionFormatError,
    InvalidRuleConfigError,
    JsonParseError,
    MaxDepthExceededError,
    UnknownFunctionError,
    UnknownRuleTypeError,
)
from .grammar import GrammarEngine, Parser, ValidationResult
from .keywords import KeywordRuleBuilder, classify_keyword_rule, convert_keyword_rule
from .loader import GrammarLoader
from .schema import (
    ConditionalRuleConfig,
    Default,
    FunctionDefinition,
    FunctionRuleConfig,
    GrammarConfig,
    GrammarSettings,
    IfThen,
    RangeRuleConfig,
    RuleConfig,
    SequentialRuleConfig,
    StaticRuleConfig,
    TemplateRuleConfig,
    WeightedRuleConfig,
)


def create_grammar_loader(engine: GrammarEngine | None = None) -> tuple[GrammarLoader, KeywordRuleBuilder]:
    """Quick start: a loader and a keyword builder sharing it."""
    loader = GrammarLoader(engine)
    return loader, KeywordRuleBuilder(loader)


__all__ = [
    "__version__",
    "create_grammar_loader",
    # Loading
    "GrammarLoader",
    "KeywordRuleBuilder",
    "classify_keyword_rule",
    "convert_keyword_rule",
    # Engine
    "GrammarEngine",
    "Parser",
    "ValidationResult",
    # Schema
    "ConditionalRuleConfig",
    "Default",
    "FunctionDefinition",
    "FunctionRuleConfig",
    "GrammarConfig",
    "GrammarSettings",
    "IfThen",
    "RangeRuleConfig",
    "RuleConfig",
    "SequentialRuleConfig",
    "StaticRuleConfig",
    "TemplateRuleConfig",
    "WeightedRuleConfig",
    # Errors
    "AmbiguousRuleShapeError",
    "ConditionSyntaxError",
    "ConfigParseError",
    "GrammarEngineError",
    "GrammarLoaderError",
    "InvalidConditionFormatError",
    "InvalidRuleConfigError",
    "JsonParseError",
    "MaxDepthExceededError",
    "UnknownFunctionError",
    "UnknownRuleTypeError",
]
