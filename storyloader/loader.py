"""
Rule registry loader: declarative grammar configs → grammar engine calls.

Loading is not transactional. Rules are converted and registered one at a
time in declaration order; when rule k fails, rules 1..k-1 of the same call
stay registered in the engine.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable

from .conditions import compile_condition
from .errors import InvalidConditionFormatError, InvalidRuleConfigError, UnknownFunctionError, UnknownRuleTypeError
from .functions import FunctionRegistry, register_builtins
from .grammar import GrammarEngine, Parser, ValidationResult
from .load import (
    parse_json_text,
    parse_modifiers,
    parse_rule_config,
    parse_settings,
    read_grammar_file,
)
from .schema import (
    RULE_TYPES,
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

logger = logging.getLogger(__name__)


class GrammarLoader:
    """
    Loads grammar configs into a grammar engine.

    Owns the function registry used by function rules. The engine defaults to
    the bundled storyloader.grammar.Parser; any GrammarEngine can be passed.
    """

    def __init__(self, engine: GrammarEngine | None = None, *, register_defaults: bool = True):
        self._engine: GrammarEngine = engine if engine is not None else Parser()
        self._functions = FunctionRegistry()
        if register_defaults:
            register_builtins(self._functions)

        self._rule_loaders: dict[str, Callable[[str, Any], None]] = {
            "static": self._load_static_rule,
            "function": self._load_function_rule,
            "weighted": self._load_weighted_rule,
            "conditional": self._load_conditional_rule,
            "sequential": self._load_sequential_rule,
            "range": self._load_range_rule,
            "template": self._load_template_rule,
        }
        assert tuple(self._rule_loaders) == RULE_TYPES, "Rule loaders out of sync with RULE_TYPES"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_from_json(self, text: str) -> None:
        """Parse `text` as a grammar document and load it."""
        self.load_from_config(parse_json_text(text))

    def load_from_file(self, path: Path | str) -> None:
        self.load_from_config(read_grammar_file(Path(path)))

    def load_from_config(self, config: GrammarConfig | Mapping[str, Any]) -> None:
        """
        Load a grammar config.

        Order matters: settings reach the engine before any rule is
        registered, then modifiers, then rules in declaration order.
        """
        if isinstance(config, GrammarConfig):
            settings, modifiers, rules = config.settings, config.modifiers, config.rules
        elif isinstance(config, Mapping):
            settings = parse_settings(config.get("settings"))
            modifiers = parse_modifiers(config.get("modifiers"))
            rules = config.get("rules")
            if not isinstance(rules, Mapping):
                raise InvalidRuleConfigError("Grammar config requires a 'rules' object")
        else:
            raise InvalidRuleConfigError(f"Expected a grammar config, got {type(config).__name__}")

        if settings is not None:
            self._apply_settings(settings)

        if modifiers:
            self._load_modifiers(modifiers)

        count = 0
        for name, rule in rules.items():
            self.load_rule(str(name), rule)
            count += 1

        logger.info("Loaded %d rule(s)", count)

    def load_rule(self, name: str, config: RuleConfig | Mapping[str, Any]) -> None:
        """Register a single rule (a variant dataclass or a tagged mapping)."""
        if isinstance(config, Mapping):
            config = parse_rule_config(name, config)

        rule_type = getattr(config, "type", None)
        loader = self._rule_loaders.get(rule_type) if isinstance(rule_type, str) else None
        if loader is None:
            raise UnknownRuleTypeError(rule_type, name)

        loader(name, config)
        logger.debug("Registered %s rule %r", rule_type, name)

    def _apply_settings(self, settings: GrammarSettings) -> None:
        if settings.max_depth is not None:
            if settings.max_depth < 1:
                raise InvalidRuleConfigError(
                    f"settings.maxDepth must be a positive integer, got {settings.max_depth}"
                )
            self._engine.set_max_depth(settings.max_depth)
        if settings.random_seed is not None:
            self._engine.set_random_seed(settings.random_seed)

    def _load_modifiers(self, names: list[str]) -> None:
        for name in names:
            if not self._engine.load_modifier(name):
                logger.warning("Unknown modifier %r ignored", name)

    # -------------------------------------------------------------------------
    # Per-type loaders
    # -------------------------------------------------------------------------

    def _load_static_rule(self, name: str, config: StaticRuleConfig) -> None:
        self._engine.add_rule(name, config.values)

    def _load_function_rule(self, name: str, config: FunctionRuleConfig) -> None:
        definition = self._functions.get(config.function_name)
        if definition is None:
            raise UnknownFunctionError(config.function_name)

        handler = definition.handler
        params = config.parameters or {}

        # Resolved once here; every resolution reuses the same handler and params.
        def thunk() -> list[str]:
            return handler(params)

        self._engine.add_function_rule(name, thunk)

    def _load_weighted_rule(self, name: str, config: WeightedRuleConfig) -> None:
        if len(config.values) != len(config.weights):
            logger.warning(
                "Weighted rule %r has %d values but %d weights",
                name,
                len(config.values),
                len(config.weights),
            )
        self._engine.add_weighted_rule(name, config.values, config.weights)

    def _load_conditional_rule(self, name: str, config: ConditionalRuleConfig) -> None:
        conditions: list[dict[str, Any]] = []
        for index, entry in enumerate(config.conditions):
            if isinstance(entry, Default) and entry.default is not None:
                conditions.append({"default": entry.default})
            elif isinstance(entry, IfThen) and entry.if_ and entry.then is not None:
                conditions.append({"if": compile_condition(entry.if_), "then": entry.then})
            else:
                raise InvalidConditionFormatError(name, index)

        self._engine.add_conditional_rule(name, conditions)

    def _load_sequential_rule(self, name: str, config: SequentialRuleConfig) -> None:
        self._engine.add_sequential_rule(name, config.values, cycle=config.cycle is not False)

    def _load_range_rule(self, name: str, config: RangeRuleConfig) -> None:
        self._engine.add_range_rule(
            name,
            min=config.min,
            max=config.max,
            step=config.step,
            type=config.number_type,
        )

    def _load_template_rule(self, name: str, config: TemplateRuleConfig) -> None:
        self._engine.add_template_rule(name, template=config.template, variables=config.variables)

    # -------------------------------------------------------------------------
    # Function registry
    # -------------------------------------------------------------------------

    def register_function(self, definition: FunctionDefinition) -> None:
        """
        Register a function for function rules. Re-registering a name replaces
        the earlier definition; rules registered after that use the new one.
        """
        self._functions.register(definition)

    def unregister_function(self, name: str) -> bool:
        return self._functions.unregister(name)

    def clear_functions(self, keep_builtins: bool = True) -> None:
        self._functions.clear()
        if keep_builtins:
            register_builtins(self._functions)

    def get_registered_functions(self) -> list[str]:
        return self._functions.names()

    def get_function(self, name: str) -> FunctionDefinition | None:
        return self._functions.get(name)

    # -------------------------------------------------------------------------
    # Engine pass-throughs
    # -------------------------------------------------------------------------

    def get_parser(self) -> GrammarEngine:
        return self._engine

    def parse(self, text: str, preserve_context: bool = False) -> str:
        return self._engine.parse(text, preserve_context)

    def validate(self) -> ValidationResult:
        return self._engine.validate()

    def clear(self) -> None:
        self._engine.clear_all()
