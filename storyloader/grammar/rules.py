"""Engine-side rule resolvers."""

from __future__ import annotations

import math
import random
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

PLACEHOLDER_RE = re.compile(r"%([A-Za-z0-9_]+)%")


def _pick(rng: random.Random, values: Sequence[Any]) -> str:
    if not values:
        return ""
    return str(values[rng.randrange(len(values))])


@dataclass
class StaticRule:
    values: list[str]

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        return _pick(rng, self.values)

    def texts(self) -> list[str]:
        return [str(v) for v in self.values]


@dataclass
class FunctionRule:
    thunk: Callable[[], Sequence[str]]

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        return _pick(rng, list(self.thunk()))

    def texts(self) -> list[str]:
        return []


@dataclass
class WeightedRule:
    values: list[str]
    weights: list[float]

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        pairs = list(zip(self.values, self.weights))
        total = sum(max(float(w), 0.0) for _, w in pairs)
        if total <= 0:
            return _pick(rng, self.values)
        roll = rng.random() * total
        acc = 0.0
        for value, weight in pairs:
            acc += max(float(weight), 0.0)
            if roll < acc:
                return str(value)
        return str(pairs[-1][0])

    def texts(self) -> list[str]:
        return [str(v) for v in self.values]


@dataclass
class ConditionalRule:
    conditions: list[Mapping[str, Any]]

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        for entry in self.conditions:
            predicate = entry.get("if")
            if predicate is not None and predicate(dict(context)):
                return _pick(rng, entry.get("then") or [])
        # Only the first default counts.
        for entry in self.conditions:
            if "default" in entry and "if" not in entry:
                return _pick(rng, entry.get("default") or [])
        return ""

    def texts(self) -> list[str]:
        out: list[str] = []
        for entry in self.conditions:
            out.extend(str(v) for v in entry.get("then") or [])
            out.extend(str(v) for v in entry.get("default") or [])
        return out


@dataclass
class SequentialRule:
    values: list[str]
    cycle: bool = True
    index: int = 0

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        if not self.values:
            return ""
        value = str(self.values[self.index])
        if self.cycle:
            self.index = (self.index + 1) % len(self.values)
        else:
            self.index = min(self.index + 1, len(self.values) - 1)
        return value

    def reset(self) -> None:
        self.index = 0

    def texts(self) -> list[str]:
        return [str(v) for v in self.values]


def _decimals(step: float) -> int:
    text = repr(float(step))
    if "e" in text or "E" in text:
        return 10
    return len(text.split(".")[1].rstrip("0")) if "." in text else 0


@dataclass
class RangeRule:
    """
    Numeric range. The upper bound is exclusive for both number types:
    integers are min + k*step below max, floats are drawn from [min, max).
    """

    min: float
    max: float
    step: float | None = None
    type: str = "integer"

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        if self.type == "float":
            return self._pick_float(rng)
        return self._pick_int(rng)

    def _pick_int(self, rng: random.Random) -> str:
        step = int(self.step) if self.step and self.step >= 1 else 1
        low = math.ceil(self.min)
        count = math.ceil((self.max - low) / step)
        if count <= 0:
            return str(low)
        return str(low + rng.randrange(count) * step)

    def _pick_float(self, rng: random.Random) -> str:
        span = self.max - self.min
        value = self.min + rng.random() * span
        if self.step and self.step > 0:
            value = self.min + math.floor((value - self.min) / self.step) * self.step
            return f"{value:.{_decimals(self.step)}f}"
        return f"{value:.2f}"

    def texts(self) -> list[str]:
        return []


@dataclass
class TemplateRule:
    template: str
    variables: dict[str, list[str]] = field(default_factory=dict)

    def pick(self, rng: random.Random, context: Mapping[str, str]) -> str:
        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name in self.variables:
                return _pick(rng, self.variables[name])
            return match.group(0)

        return PLACEHOLDER_RE.sub(substitute, self.template)

    def texts(self) -> list[str]:
        # Variable slots are local to the template and never rule references.
        local = PLACEHOLDER_RE.sub(
            lambda m: "" if m.group(1) in self.variables else m.group(0),
            self.template,
        )
        out = [local]
        for values in self.variables.values():
            out.extend(str(v) for v in values)
        return out


GrammarRule = StaticRule | FunctionRule | WeightedRule | ConditionalRule | SequentialRule | RangeRule | TemplateRule
