"""Exception taxonomy for grammar loading and expansion."""

from __future__ import annotations


class GrammarLoaderError(ValueError):
    """Base class for configuration errors raised while loading grammars."""


class ConfigParseError(GrammarLoaderError):
    """A grammar document could not be decoded."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail if detail is not None else message


class JsonParseError(ConfigParseError):
    """Raised by load_from_json when the text is not valid JSON."""

    def __init__(self, detail: str):
        super().__init__(f"Failed to parse JSON: {detail}", detail)


class UnknownRuleTypeError(GrammarLoaderError):
    def __init__(self, rule_type: object, rule_name: str | None = None):
        self.rule_type = rule_type
        self.rule_name = rule_name
        where = f" (rule {rule_name!r})" if rule_name else ""
        super().__init__(f"Unknown rule type: {rule_type}{where}")


class UnknownFunctionError(GrammarLoaderError):
    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"Unknown function: {function_name}")


class InvalidConditionFormatError(GrammarLoaderError):
    def __init__(self, rule_name: str | None = None, index: int | None = None):
        self.rule_name = rule_name
        self.index = index
        where = ""
        if rule_name is not None:
            where = f" in rule {rule_name!r}"
            if index is not None:
                where += f" at entry {index}"
        super().__init__(f"Invalid condition format{where}")


class AmbiguousRuleShapeError(GrammarLoaderError):
    def __init__(self, rule_name: str | None = None):
        self.rule_name = rule_name
        where = f" for rule {rule_name!r}" if rule_name else ""
        super().__init__(f"Unable to determine rule type from keywords{where}")


class InvalidRuleConfigError(GrammarLoaderError):
    """A rule carries a known type tag but a malformed payload."""


class ConditionSyntaxError(GrammarLoaderError):
    """Condition text does not match the condition grammar."""

    def __init__(self, message: str, position: int | None = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class GrammarEngineError(RuntimeError):
    """Base class for failures raised while expanding text."""


class MaxDepthExceededError(GrammarEngineError):
    def __init__(self, max_depth: int, rule_name: str | None = None):
        self.max_depth = max_depth
        self.rule_name = rule_name
        where = f" while expanding {rule_name!r}" if rule_name else ""
        super().__init__(f"Maximum recursion depth of {max_depth} exceeded{where}")
