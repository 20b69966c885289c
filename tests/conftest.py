"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from storyloader import GrammarLoader, KeywordRuleBuilder, ValidationResult


@pytest.fixture
def loader() -> GrammarLoader:
    """Fresh loader backed by the bundled parser."""
    return GrammarLoader()


@pytest.fixture
def builder(loader: GrammarLoader) -> KeywordRuleBuilder:
    return KeywordRuleBuilder(loader)


@pytest.fixture
def write_grammar(tmp_path: Path):
    """Write a grammar mapping to tmp_path as JSON and return its path."""

    def _write(data: dict[str, Any], name: str = "grammar.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


class RecordingEngine:
    """GrammarEngine that records every call instead of generating text."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.rules: dict[str, tuple[Any, ...]] = {}
        self.modifiers: list[str] = []

    def _add(self, kind: str, name: str, *payload: Any) -> None:
        self.calls.append((kind, name, *payload))
        self.rules[name] = (kind, *payload)

    def add_rule(self, name, values):
        self._add("add_rule", name, values)

    def add_function_rule(self, name, thunk):
        self._add("add_function_rule", name, thunk)

    def add_weighted_rule(self, name, values, weights):
        self._add("add_weighted_rule", name, values, weights)

    def add_conditional_rule(self, name, conditions):
        self._add("add_conditional_rule", name, conditions)

    def add_sequential_rule(self, name, values, *, cycle=True):
        self._add("add_sequential_rule", name, values, cycle)

    def add_range_rule(self, name, *, min, max, step=None, type=None):
        self._add("add_range_rule", name, min, max, step, type)

    def add_template_rule(self, name, *, template, variables):
        self._add("add_template_rule", name, template, variables)

    def set_max_depth(self, depth):
        self.calls.append(("set_max_depth", depth))

    def set_random_seed(self, seed):
        self.calls.append(("set_random_seed", seed))

    def load_modifier(self, name):
        self.calls.append(("load_modifier", name))
        if name.startswith("english"):
            self.modifiers.append(name)
            return True
        return False

    def parse(self, text, preserve_context=False):
        self.calls.append(("parse", text, preserve_context))
        return text

    def validate(self):
        return ValidationResult(is_valid=True)

    def clear_all(self):
        self.calls.append(("clear_all",))
        self.rules.clear()

    def has_rule(self, name):
        return name in self.rules


@pytest.fixture
def engine() -> RecordingEngine:
    return RecordingEngine()


@pytest.fixture
def recording_loader(engine: RecordingEngine) -> GrammarLoader:
    return GrammarLoader(engine)
