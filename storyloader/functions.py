"""
Function registry: function name → FunctionDefinition.

Function rules name a registered function; the loader looks the name up here
when the rule is registered. Each loader owns one registry, seeded with the
built-ins below.
"""

from __future__ import annotations

import random
import time
from typing import Any, Iterator

from .schema import FunctionDefinition


class FunctionRegistry:
    def __init__(self) -> None:
        self._functions: dict[str, FunctionDefinition] = {}

    def register(self, definition: FunctionDefinition) -> None:
        """Register a function; an existing entry with the same name is replaced."""
        self._functions[definition.name] = definition

    def unregister(self, name: str) -> bool:
        return self._functions.pop(name, None) is not None

    def get(self, name: str) -> FunctionDefinition | None:
        return self._functions.get(name)

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._functions.keys())

    def definitions(self) -> list[FunctionDefinition]:
        return list(self._functions.values())

    def clear(self) -> None:
        self._functions.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)


# -----------------------------------------------------------------------------
# Built-in functions
# -----------------------------------------------------------------------------
# Falsy numeric parameters fall back to their defaults (min=0 means min=1).


def random_number(params: dict[str, Any] | None = None) -> list[str]:
    params = params or {}
    low = int(params.get("min") or 1)
    high = int(params.get("max") or 100)
    return [str(random.randint(low, high))]


def dice_roll(params: dict[str, Any] | None = None) -> list[str]:
    params = params or {}
    sides = int(params.get("sides") or 6)
    count = int(params.get("count") or 1)
    total = sum(random.randint(1, sides) for _ in range(count))
    return [str(total)]


_TIME_FORMATS = {
    "time": "%X",
    "date": "%x",
    "datetime": "%c",
}


def current_time(params: dict[str, Any] | None = None) -> list[str]:
    params = params or {}
    fmt = _TIME_FORMATS.get(params.get("format") or "time", _TIME_FORMATS["time"])
    return [time.strftime(fmt, time.localtime())]


def random_choice(params: dict[str, Any] | None = None) -> list[str]:
    params = params or {}
    choices = params.get("choices")
    # An explicit list is used as given, even when empty.
    if choices is None:
        choices = ["option1", "option2", "option3"]
    choices = list(choices)
    return [str(random.choice(choices))] if choices else []


BUILTIN_FUNCTIONS: list[FunctionDefinition] = [
    FunctionDefinition(
        name="randomNumber",
        description="Generate a random number within specified range",
        handler=random_number,
    ),
    FunctionDefinition(
        name="diceRoll",
        description="Roll dice (e.g., d6, d20)",
        handler=dice_roll,
    ),
    FunctionDefinition(
        name="currentTime",
        description="Get current time in various formats",
        handler=current_time,
    ),
    FunctionDefinition(
        name="randomChoice",
        description="Choose random item from provided array",
        handler=random_choice,
    ),
]

assert len({d.name for d in BUILTIN_FUNCTIONS}) == len(BUILTIN_FUNCTIONS), "Duplicate built-in function name"


def register_builtins(registry: FunctionRegistry) -> None:
    for definition in BUILTIN_FUNCTIONS:
        registry.register(definition)
