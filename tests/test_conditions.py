"""Tests for the condition language used by conditional rules."""

from __future__ import annotations

import logging

import pytest

from storyloader.conditions import (
    BoolOp,
    Comparison,
    ContextLookup,
    Literal,
    Not,
    compile_condition,
    context_keys,
    parse_condition,
)
from storyloader.errors import ConditionSyntaxError


def test_equality_against_context_value():
    predicate = compile_condition("context.character_type === 'warrior'")
    assert predicate({"character_type": "warrior"}) is True
    assert predicate({"character_type": "mage"}) is False


def test_missing_key_is_false_and_never_raises():
    predicate = compile_condition("context.character_type === 'warrior'")
    assert predicate({}) is False
    assert predicate(None) is False


def test_reserved_word_keys_are_addressable():
    assert compile_condition("context.class === 'rogue'")({"class": "rogue"}) is True
    assert compile_condition("context.if == 'x' && context.and == 'y'")({"if": "x", "and": "y"}) is True


def test_bracket_lookup_matches_dot_lookup():
    assert parse_condition("context['time']") == parse_condition("context.time")
    assert parse_condition('context["time"]') == ContextLookup("time")


def test_boolean_connectives_js_and_python_spelling():
    ctx = {"a": "1", "b": "2"}
    assert compile_condition("context.a === '1' && context.b === '2'")(ctx) is True
    assert compile_condition("context.a === '1' and context.b === '3'")(ctx) is False
    assert compile_condition("context.a === '9' || context.b === '2'")(ctx) is True
    assert compile_condition("context.a === '9' or context.b === '9'")(ctx) is False
    assert compile_condition("!(context.a === '9')")(ctx) is True
    assert compile_condition("not context.a === '9'")(ctx) is True


def test_precedence_and_binds_tighter_than_or():
    tree = parse_condition("context.a || context.b && context.c")
    assert tree == BoolOp(
        "or",
        (ContextLookup("a"), BoolOp("and", (ContextLookup("b"), ContextLookup("c")))),
    )


def test_bang_binds_tighter_than_comparison():
    tree = parse_condition("!context.a === true")
    assert tree == Comparison("===", Not(ContextLookup("a")), Literal(True))


def test_strict_and_loose_equality():
    ctx = {"level": "5"}
    assert compile_condition("context.level === 5")(ctx) is False
    assert compile_condition("context.level == 5")(ctx) is True
    assert compile_condition("context.level !== '5'")(ctx) is False
    assert compile_condition("context.level != 6")(ctx) is True
    assert compile_condition("context.missing == null")(ctx) is True
    assert compile_condition("context.missing === undefined")(ctx) is True


def test_relational_operators_numeric_and_string():
    ctx = {"level": "12", "name": "bob"}
    assert compile_condition("context.level >= 10")(ctx) is True
    assert compile_condition("context.level < 10")(ctx) is False
    assert compile_condition("context.level > -1.5")(ctx) is True
    assert compile_condition("context.name < 'carl'")(ctx) is True
    assert compile_condition("context.name >= 'carl'")(ctx) is False


def test_relational_on_missing_or_non_numeric_fails_closed():
    assert compile_condition("context.level > 3")({}) is False
    assert compile_condition("context.level > 3")({"level": "high"}) is False


def test_incomparable_relational_stays_local_to_its_branch():
    assert compile_condition("context.level > 5 || context.class === 'mage'")({"class": "mage"}) is True
    assert compile_condition("context.name < 5 || context.name === 'bob'")({"name": "bob"}) is True
    assert compile_condition("context.level >= 1 && context.class === 'mage'")({"class": "mage"}) is False


def test_negated_incomparable_relational_is_true():
    assert compile_condition("!(context.level > 5)")({}) is True
    assert compile_condition("not context.level <= 5")({"level": "high"}) is True


def test_key_starting_with_digit():
    assert parse_condition("context.2nd") == ContextLookup("2nd")
    assert compile_condition("context.2nd === 'yes'")({"2nd": "yes"}) is True
    # Outside a lookup, digits still lex as numbers.
    assert compile_condition("context.n > 2")({"n": "3"}) is True


def test_bare_lookup_uses_truthiness():
    predicate = compile_condition("context.flag")
    assert predicate({"flag": "yes"}) is True
    assert predicate({"flag": ""}) is False
    assert predicate({}) is False


def test_string_escapes():
    assert compile_condition(r"context.q === 'it\'s'")({"q": "it's"}) is True


def test_malformed_condition_never_matches_and_logs(caplog):
    with caplog.at_level(logging.WARNING, logger="storyloader.conditions"):
        predicate = compile_condition("context.x ===")
    assert predicate({"x": "anything"}) is False
    assert predicate.error is not None
    assert any("never match" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "text",
    [
        "import os",
        "__import__('os').system('true')",
        "context.a = 'b'",
        "context.a === 'b",
        "context",
        "context.a === 1 === 2",
        "(context.a",
        "context[0]",
    ],
)
def test_rejected_syntax(text: str):
    with pytest.raises(ConditionSyntaxError):
        parse_condition(text)


def test_context_keys_in_first_use_order():
    tree = parse_condition("context.b === '1' && (context.a || context.b)")
    assert context_keys(tree) == ["b", "a"]


def test_predicate_repr_names_source():
    assert "context.a" in repr(compile_condition("context.a"))
