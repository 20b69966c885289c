"""Tests for the function registry and built-in functions."""

from __future__ import annotations

from storyloader.functions import (
    BUILTIN_FUNCTIONS,
    FunctionRegistry,
    current_time,
    dice_roll,
    random_choice,
    random_number,
    register_builtins,
)
from storyloader.schema import FunctionDefinition


def test_builtins_registered_in_order():
    registry = FunctionRegistry()
    register_builtins(registry)
    assert registry.names() == ["randomNumber", "diceRoll", "currentTime", "randomChoice"]
    assert len(registry) == len(BUILTIN_FUNCTIONS)


def test_register_replaces_existing_name():
    registry = FunctionRegistry()
    first = FunctionDefinition(name="f", handler=lambda params: ["one"])
    second = FunctionDefinition(name="f", handler=lambda params: ["two"])

    registry.register(first)
    registry.register(second)

    assert registry.names() == ["f"]
    assert registry.get("f") is second


def test_unregister_and_clear():
    registry = FunctionRegistry()
    registry.register(FunctionDefinition(name="f", handler=lambda params: []))
    assert "f" in registry
    assert registry.unregister("f") is True
    assert registry.unregister("f") is False

    register_builtins(registry)
    registry.clear()
    assert len(registry) == 0
    assert registry.get("randomNumber") is None


def test_random_number_bounds_inclusive():
    seen = {int(random_number({"min": 1, "max": 3})[0]) for _ in range(300)}
    assert seen == {1, 2, 3}


def test_random_number_defaults_and_falsy_params():
    for _ in range(50):
        value = int(random_number()[0])
        assert 1 <= value <= 100
    # min=0 is falsy and falls back to 1
    assert random_number({"min": 0, "max": 1}) == ["1"]


def test_dice_roll_sums_count_dice():
    for _ in range(100):
        total = int(dice_roll({"sides": 6, "count": 3})[0])
        assert 3 <= total <= 18
    for _ in range(50):
        assert 1 <= int(dice_roll()[0]) <= 6


def test_current_time_formats():
    for fmt in ("time", "date", "datetime", "bogus", None):
        result = current_time({"format": fmt})
        assert len(result) == 1
        assert result[0]


def test_random_choice_defaults_and_custom():
    assert random_choice()[0] in {"option1", "option2", "option3"}
    assert random_choice({"choices": ["only"]}) == ["only"]


def test_random_choice_explicit_empty_list_is_kept():
    assert random_choice({"choices": []}) == []
    assert random_choice({"choices": None})[0] in {"option1", "option2", "option3"}
