"""
Condition language for conditional rules.

Condition text is a small boolean expression over the generation context:

    context.character_type === 'warrior' && context.level >= 10

`context.<name>` and `context['<name>']` both read a key from the context map,
so names that collide with reserved words stay addressable. The text is
tokenized, parsed by recursive descent into a tree of Literal / ContextLookup /
Comparison / BoolOp / Not nodes, and interpreted against the context. Nothing
is handed to `eval`; the language cannot reach anything but the context map.

Relational operators (`<`, `<=`, `>`, `>=`) compare two strings
lexicographically and anything else numerically; a missing key or non-numeric
text makes the comparison false without affecting the rest of the expression,
so `!(context.level > 5)` holds when `level` is unset.

Compiled predicates fail closed: a parse error or a runtime error yields
False, so evaluation moves on to the next entry or the default.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from .errors import ConditionSyntaxError

logger = logging.getLogger(__name__)


# =============================================================================
# EXPRESSION TREE
# =============================================================================


@dataclass(frozen=True)
class Literal:
    value: Any  # str, int, float, bool or None


@dataclass(frozen=True)
class ContextLookup:
    key: str


@dataclass(frozen=True)
class Comparison:
    op: str  # '===', '!==', '==', '!=', '<', '<=', '>', '>='
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class BoolOp:
    op: str  # 'and', 'or'
    operands: tuple["Node", ...]


@dataclass(frozen=True)
class Not:
    operand: "Node"


Node = Literal | ContextLookup | Comparison | BoolOp | Not


# =============================================================================
# LEXER
# =============================================================================


class TokenType(Enum):
    STRING = auto()
    NUMBER = auto()
    IDENT = auto()
    DOT = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMPARE = auto()
    AND = auto()
    OR = auto()
    BANG = auto()
    MINUS = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: Any
    pos: int


_COMPARE_OPS = ("===", "!==", "==", "!=", "<=", ">=", "<", ">")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}
_KEYWORD_LITERALS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "True": True,
    "False": False,
    "None": None,
}


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        c = text[i]

        if c.isspace():
            i += 1
            continue

        if c in ("'", '"'):
            quote = c
            j = i + 1
            chars: list[str] = []
            while j < n and text[j] != quote:
                if text[j] == "\\" and j + 1 < n:
                    chars.append(_ESCAPES.get(text[j + 1], text[j + 1]))
                    j += 2
                else:
                    chars.append(text[j])
                    j += 1
            if j >= n:
                raise ConditionSyntaxError("Unterminated string", i)
            tokens.append(Token(TokenType.STRING, "".join(chars), i))
            i = j + 1
            continue

        # A key after '.' is a whole word and may start with a digit (context.2nd).
        if tokens and tokens[-1].type == TokenType.DOT and (c.isalnum() or c in "_$"):
            j = i
            while j < n and (text[j].isalnum() or text[j] in "_$"):
                j += 1
            tokens.append(Token(TokenType.IDENT, text[i:j], i))
            i = j
            continue

        if c.isdigit():
            j = i
            while j < n and text[j].isdigit():
                j += 1
            if j < n and text[j] == "." and j + 1 < n and text[j + 1].isdigit():
                j += 1
                while j < n and text[j].isdigit():
                    j += 1
                tokens.append(Token(TokenType.NUMBER, float(text[i:j]), i))
            else:
                tokens.append(Token(TokenType.NUMBER, int(text[i:j]), i))
            i = j
            continue

        if c.isalpha() or c in "_$":
            j = i
            while j < n and (text[j].isalnum() or text[j] in "_$"):
                j += 1
            tokens.append(Token(TokenType.IDENT, text[i:j], i))
            i = j
            continue

        op = next((o for o in _COMPARE_OPS if text.startswith(o, i)), None)
        if op is not None:
            tokens.append(Token(TokenType.COMPARE, op, i))
            i += len(op)
            continue

        if text.startswith("&&", i):
            tokens.append(Token(TokenType.AND, "&&", i))
            i += 2
            continue
        if text.startswith("||", i):
            tokens.append(Token(TokenType.OR, "||", i))
            i += 2
            continue

        single = {
            ".": TokenType.DOT,
            "[": TokenType.LBRACKET,
            "]": TokenType.RBRACKET,
            "(": TokenType.LPAREN,
            ")": TokenType.RPAREN,
            "!": TokenType.BANG,
            "-": TokenType.MINUS,
        }.get(c)
        if single is not None:
            tokens.append(Token(single, c, i))
            i += 1
            continue

        raise ConditionSyntaxError(f"Unexpected character {c!r}", i)

    tokens.append(Token(TokenType.EOF, None, n))
    return tokens


# =============================================================================
# PARSER
# =============================================================================


class ConditionParser:
    """
    Recursive descent parser, lowest precedence first:

        or_expr    := and_expr (('||' | 'or') and_expr)*
        and_expr   := not_expr (('&&' | 'and') not_expr)*
        not_expr   := 'not' not_expr | comparison
        comparison := unary (COMPARE unary)?
        unary      := '!' unary | '-' NUMBER | primary
        primary    := STRING | NUMBER | literal-word | lookup | '(' or_expr ')'
        lookup     := 'context' ('.' IDENT | '[' STRING ']')
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def current(self) -> Token:
        return self.tokens[self.pos]

    def consume(self, expected: TokenType | None = None) -> Token:
        tok = self.current()
        if expected is not None and tok.type != expected:
            raise ConditionSyntaxError(f"Expected {expected.name}, got {tok.type.name}", tok.pos)
        self.pos += 1
        return tok

    def _at_word(self, word: str) -> bool:
        tok = self.current()
        return tok.type == TokenType.IDENT and tok.value == word

    def parse(self) -> Node:
        node = self.parse_or()
        tok = self.current()
        if tok.type != TokenType.EOF:
            raise ConditionSyntaxError(f"Unexpected {tok.type.name} after expression", tok.pos)
        return node

    def parse_or(self) -> Node:
        operands = [self.parse_and()]
        while self.current().type == TokenType.OR or self._at_word("or"):
            self.consume()
            operands.append(self.parse_and())
        return operands[0] if len(operands) == 1 else BoolOp("or", tuple(operands))

    def parse_and(self) -> Node:
        operands = [self.parse_not()]
        while self.current().type == TokenType.AND or self._at_word("and"):
            self.consume()
            operands.append(self.parse_not())
        return operands[0] if len(operands) == 1 else BoolOp("and", tuple(operands))

    def parse_not(self) -> Node:
        if self._at_word("not"):
            self.consume()
            return Not(self.parse_not())
        return self.parse_comparison()

    def parse_comparison(self) -> Node:
        left = self.parse_unary()
        if self.current().type != TokenType.COMPARE:
            return left
        op = self.consume().value
        right = self.parse_unary()
        tok = self.current()
        if tok.type == TokenType.COMPARE:
            raise ConditionSyntaxError("Chained comparisons are not supported", tok.pos)
        return Comparison(op, left, right)

    def parse_unary(self) -> Node:
        tok = self.current()
        if tok.type == TokenType.BANG:
            self.consume()
            return Not(self.parse_unary())
        if tok.type == TokenType.MINUS:
            self.consume()
            number = self.consume(TokenType.NUMBER)
            return Literal(-number.value)
        return self.parse_primary()

    def parse_primary(self) -> Node:
        tok = self.current()

        if tok.type in (TokenType.STRING, TokenType.NUMBER):
            self.consume()
            return Literal(tok.value)

        if tok.type == TokenType.IDENT:
            if tok.value in _KEYWORD_LITERALS:
                self.consume()
                return Literal(_KEYWORD_LITERALS[tok.value])
            if tok.value == "context":
                return self.parse_lookup()
            raise ConditionSyntaxError(f"Unknown identifier {tok.value!r}", tok.pos)

        if tok.type == TokenType.LPAREN:
            self.consume()
            node = self.parse_or()
            self.consume(TokenType.RPAREN)
            return node

        raise ConditionSyntaxError(f"Unexpected {tok.type.name}", tok.pos)

    def parse_lookup(self) -> Node:
        self.consume(TokenType.IDENT)
        tok = self.current()
        if tok.type == TokenType.DOT:
            self.consume()
            # Any word is a valid key here, reserved or not.
            return ContextLookup(self.consume(TokenType.IDENT).value)
        if tok.type == TokenType.LBRACKET:
            self.consume()
            key = self.consume(TokenType.STRING).value
            self.consume(TokenType.RBRACKET)
            return ContextLookup(key)
        raise ConditionSyntaxError("Expected '.name' or \"['name']\" after context", tok.pos)


def parse_condition(text: str) -> Node:
    """Parse condition text into an expression tree."""
    return ConditionParser(tokenize(text)).parse()


def context_keys(node: Node) -> list[str]:
    """Context keys referenced by an expression, in first-use order."""
    keys: list[str] = []

    def visit(n: Node) -> None:
        if isinstance(n, ContextLookup):
            if n.key not in keys:
                keys.append(n.key)
        elif isinstance(n, Comparison):
            visit(n.left)
            visit(n.right)
        elif isinstance(n, BoolOp):
            for operand in n.operands:
                visit(operand)
        elif isinstance(n, Not):
            visit(n.operand)

    visit(node)
    return keys


# =============================================================================
# INTERPRETER
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _truthy(value: Any) -> bool:
    if isinstance(value, float) and value != value:  # NaN
        return False
    return bool(value)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return int(value)
    if _is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        return float(text) if text else 0
    raise TypeError(f"Cannot compare {value!r} as a number")


def _relational_number(value: Any) -> float:
    """Numeric view of an operand; missing keys and non-numeric text are NaN."""
    if value is None:
        return math.nan
    try:
        return float(_to_number(value))
    except (TypeError, ValueError):
        return math.nan


def _strict_equal(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _loose_equal(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    try:
        return _to_number(left) == _to_number(right)
    except (TypeError, ValueError):
        return False


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "===":
        return _strict_equal(left, right)
    if op == "!==":
        return not _strict_equal(left, right)
    if op == "==":
        return _loose_equal(left, right)
    if op == "!=":
        return not _loose_equal(left, right)

    if not (isinstance(left, str) and isinstance(right, str)):
        left, right = _relational_number(left), _relational_number(right)
        # NaN on either side: every relational comparison is false.
        if math.isnan(left) or math.isnan(right):
            return False
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    if op == ">=":
        return left >= right
    raise ValueError(f"Unknown comparison operator {op!r}")


def evaluate(node: Node, context: Mapping[str, Any]) -> Any:
    """Interpret an expression tree. Errors propagate; predicates catch them."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ContextLookup):
        return context.get(node.key)
    if isinstance(node, Not):
        return not _truthy(evaluate(node.operand, context))
    if isinstance(node, BoolOp):
        if node.op == "and":
            return all(_truthy(evaluate(o, context)) for o in node.operands)
        return any(_truthy(evaluate(o, context)) for o in node.operands)
    if isinstance(node, Comparison):
        return _compare(node.op, evaluate(node.left, context), evaluate(node.right, context))
    raise TypeError(f"Unknown expression node {node!r}")


class ConditionPredicate:
    """Callable predicate compiled from condition text."""

    def __init__(self, source: str, tree: Node | None, error: str | None = None):
        self.source = source
        self.tree = tree
        self.error = error

    def __call__(self, context: Mapping[str, Any] | None) -> bool:
        if self.tree is None:
            return False
        try:
            return _truthy(evaluate(self.tree, context if context is not None else {}))
        except Exception as e:
            logger.debug("Condition %r failed to evaluate: %s", self.source, e)
            return False

    def __repr__(self) -> str:
        return f"ConditionPredicate({self.source!r})"


def compile_condition(text: str) -> ConditionPredicate:
    """
    Compile condition text into a predicate over a context map.

    Syntax errors do not raise: they are logged and the predicate never
    matches, the same outcome as a condition that errors at evaluation time.
    """
    try:
        tree = parse_condition(text)
    except ConditionSyntaxError as e:
        logger.warning("Condition %r will never match: %s", text, e)
        return ConditionPredicate(text, None, error=str(e))
    return ConditionPredicate(text, tree)
