from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import (
    ConfigParseError,
    InvalidRuleConfigError,
    JsonParseError,
    UnknownRuleTypeError,
)
from .schema import (
    RULE_TYPES,
    ConditionalRuleConfig,
    Default,
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


def _coerce_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_list(raw: Mapping[str, Any], key: str, rule_name: str) -> list[Any]:
    value = raw.get(key)
    if not isinstance(value, (list, tuple)):
        raise InvalidRuleConfigError(f"Rule {rule_name!r}: '{key}' must be a list")
    return list(value)


def _require_number(raw: Mapping[str, Any], key: str, rule_name: str) -> float:
    value = raw.get(key)
    if not _is_number(value):
        raise InvalidRuleConfigError(f"Rule {rule_name!r}: '{key}' must be a number")
    return value


def _optional_number(raw: Mapping[str, Any], key: str, rule_name: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    if not _is_number(value):
        raise InvalidRuleConfigError(f"Rule {rule_name!r}: '{key}' must be a number")
    return value


def _condition_entry(entry: Any) -> Any:
    """Normalize a raw conditional entry; unrecognized shapes are returned as-is."""
    if isinstance(entry, (IfThen, Default)):
        return entry
    if not isinstance(entry, Mapping):
        return entry
    # An empty list still counts as present.
    if entry.get("default") is not None:
        return Default(default=list(entry["default"]))
    if entry.get("if") and entry.get("then") is not None:
        return IfThen(if_=str(entry["if"]), then=list(entry["then"]))
    return entry


def parse_rule_config(name: str, raw: Any) -> RuleConfig:
    """
    Convert one wire-format rule (a mapping with a `type` tag) into its
    variant dataclass.

    Field names follow the JSON wire format (`functionName`, `numberType`).
    """
    if not isinstance(raw, Mapping):
        raise InvalidRuleConfigError(f"Rule {name!r}: expected an object, got {type(raw).__name__}")

    rule_type = raw.get("type")
    if rule_type not in RULE_TYPES:
        raise UnknownRuleTypeError(rule_type, name)

    if rule_type == "static":
        return StaticRuleConfig(values=_require_list(raw, "values", name))

    if rule_type == "function":
        function_name = raw.get("functionName")
        if not isinstance(function_name, str) or not function_name:
            raise InvalidRuleConfigError(f"Rule {name!r}: 'functionName' must be a non-empty string")
        parameters = raw.get("parameters")
        return FunctionRuleConfig(
            function_name=function_name,
            parameters=dict(parameters) if isinstance(parameters, Mapping) else None,
        )

    if rule_type == "weighted":
        return WeightedRuleConfig(
            values=_require_list(raw, "values", name),
            weights=_require_list(raw, "weights", name),
        )

    if rule_type == "conditional":
        conditions = _require_list(raw, "conditions", name)
        return ConditionalRuleConfig(conditions=[_condition_entry(c) for c in conditions])

    if rule_type == "sequential":
        cycle = raw.get("cycle")
        return SequentialRuleConfig(
            values=_require_list(raw, "values", name),
            cycle=cycle if isinstance(cycle, bool) else None,
        )

    if rule_type == "range":
        number_type = raw.get("numberType")
        return RangeRuleConfig(
            min=_require_number(raw, "min", name),
            max=_require_number(raw, "max", name),
            step=_optional_number(raw, "step", name),
            number_type=number_type if isinstance(number_type, str) else None,  # type: ignore[arg-type]
        )

    # template
    template = raw.get("template")
    if not isinstance(template, str):
        raise InvalidRuleConfigError(f"Rule {name!r}: 'template' must be a string")
    variables = raw.get("variables")
    if not isinstance(variables, Mapping):
        raise InvalidRuleConfigError(f"Rule {name!r}: 'variables' must be an object")
    return TemplateRuleConfig(
        template=template,
        variables={str(k): list(v) for k, v in variables.items()},
    )


def parse_settings(raw: Any) -> GrammarSettings | None:
    if raw is None:
        return None
    if isinstance(raw, GrammarSettings):
        return raw
    data = _coerce_dict(raw)
    max_depth = _optional_int(data.get("maxDepth", data.get("max_depth")), "maxDepth")
    random_seed = _optional_int(data.get("randomSeed", data.get("random_seed")), "randomSeed")
    if max_depth is not None and max_depth < 1:
        raise InvalidRuleConfigError(f"settings.maxDepth must be a positive integer, got {max_depth}")
    return GrammarSettings(max_depth=max_depth, random_seed=random_seed)


def _optional_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidRuleConfigError(f"settings.{key} must be an integer, got {value!r}") from e


def parse_modifiers(raw: Any) -> list[str] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return [raw]
    return [str(m) for m in raw]


def parse_grammar_config(raw: Any) -> GrammarConfig:
    """Fully materialize a wire-format grammar document."""
    data = _coerce_dict(raw)
    rules_raw = data.get("rules")
    if not isinstance(rules_raw, Mapping):
        raise InvalidRuleConfigError("Grammar config requires a 'rules' object")
    return GrammarConfig(
        rules={str(name): parse_rule_config(str(name), rule) for name, rule in rules_raw.items()},
        modifiers=parse_modifiers(data.get("modifiers")),
        settings=parse_settings(data.get("settings")),
    )


def parse_json_text(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise JsonParseError(str(e)) from e


def read_grammar_file(path: Path) -> dict[str, Any]:
    """
    Read a grammar document (JSON, YAML or TOML) into its wire-format mapping.

    The suffix picks the decoder; unknown suffixes are read as JSON.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Failed to parse YAML grammar {path}: {e}", str(e)) from e
    elif suffix == ".toml":
        try:
            import tomllib
        except ImportError:
            import tomli as tomllib  # type: ignore

        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ConfigParseError(f"Failed to parse TOML grammar {path}: {e}", str(e)) from e
    else:
        data = parse_json_text(text)

    if not isinstance(data, dict):
        raise ConfigParseError(f"Grammar document {path} must contain an object at the top level")
    if not isinstance(data.get("rules"), Mapping):
        raise InvalidRuleConfigError(f"Grammar document {path} requires a 'rules' object")
    return data
