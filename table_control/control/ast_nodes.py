"""Immutable control values parsed from a filter/sort directive.

A directive string maps to exactly one control value.  Leaf values match
text; ``Category``, ``Or`` and ``AllOf`` compose them; ``RowSort`` and
``ColumnSort`` carry ordering only.  ``str()`` of any value is a directive
that parses back to a value with the same matching behavior.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Union

from table_control.control.dates import ParsedDuration, ParsedInstant
from table_control.control.numbers import compare_number_tolerant


def quote_token(text: str) -> str:
    """Quote a token so whitespace inside it survives re-parsing."""
    if any(ch.isspace() for ch in text):
        return f'"{text}"'
    return text


def unquote_token(text: str) -> str:
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def _join_unique(children) -> str:
    printed: list[str] = []
    for child in children:
        text = str(child)
        if text and text not in printed:
            printed.append(text)
    return " ".join(printed)


@dataclass(frozen=True)
class Literal:
    """Case-insensitive substring search."""

    text: str

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("Cannot make an empty literal matcher")

    def __str__(self) -> str:
        return quote_token(self.text)


@dataclass(frozen=True)
class Empty:
    """Matches empty text.  Only meaningful inside a ``Category``."""

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class WildcardSequence:
    """Parts that must occur in order, as in ``abc*def``.

    Attributes:
        text: The token the sequence was parsed from.
        parts: The non-empty pieces between the stars.
    """

    text: str
    parts: tuple[str, ...]

    def __str__(self) -> str:
        return quote_token(self.text)


@dataclass(frozen=True)
class Regex:
    """A regular expression search (case-insensitive, multiline, dot-all)."""

    pattern: re.Pattern[str]

    def __str__(self) -> str:
        return quote_token("\\" + self.pattern.pattern)


@dataclass(frozen=True)
class IntRange:
    """Integer range over digit strings of possibly different lengths.

    Attributes:
        text: The token the range was parsed from.
        low: Digits of the lower bound.
        high: Digits of the upper bound.
    """

    text: str
    low: str
    high: str

    def __post_init__(self) -> None:
        if compare_number_tolerant(self.low, self.high) > 0:
            low, high = self.high, self.low
            object.__setattr__(self, "low", low)
            object.__setattr__(self, "high", high)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class FloatRange:
    """Inclusive real-number range; a single number carries its tolerance."""

    text: str
    min_value: float
    max_value: float

    def __post_init__(self) -> None:
        if self.min_value > self.max_value:
            low, high = self.max_value, self.min_value
            object.__setattr__(self, "min_value", low)
            object.__setattr__(self, "max_value", high)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class DatePoint:
    """A calendar value, matched at the precision it was typed with."""

    time: ParsedInstant

    def __str__(self) -> str:
        return quote_token(str(self.time))


@dataclass(frozen=True)
class DateRange:
    text: str
    min_time: ParsedInstant
    max_time: ParsedInstant

    def __str__(self) -> str:
        return quote_token(self.text)


@dataclass(frozen=True)
class DurationPoint:
    duration: ParsedDuration

    def __str__(self) -> str:
        return quote_token(str(self.duration))


@dataclass(frozen=True)
class DurationRange:
    text: str
    min_duration: ParsedDuration
    max_duration: ParsedDuration

    def __str__(self) -> str:
        return quote_token(self.text)


@dataclass(frozen=True)
class Predicate:
    """A test run on the whole cell text of the column named ``category``.

    Predicates are built in code, not typed, so they have no directive form
    and print as nothing.
    """

    category: str
    test: Callable[[str], bool]

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class Category:
    """Restricts ``inner`` to columns whose name starts with ``name``."""

    name: str
    inner: Control

    def __str__(self) -> str:
        return quote_token(f"{self.name}:{unquote_token(str(self.inner))}")


@dataclass(frozen=True)
class Or:
    """Union of the children's matches."""

    children: tuple[Control, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return _join_unique(self.children)


@dataclass(frozen=True)
class AllOf:
    """Every search child must match somewhere in a row."""

    children: tuple[Control, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return _join_unique(self.children)


@dataclass(frozen=True)
class RowSort:
    """Column-name tokens to sort rows by, each optionally ``+``/``-`` prefixed."""

    tokens: tuple[str, ...]

    def __str__(self) -> str:
        return quote_token("sort:" + ",".join(self.tokens))


@dataclass(frozen=True)
class ColumnSort:
    """Column-name tokens to display first, in order."""

    tokens: tuple[str, ...]

    def __str__(self) -> str:
        return quote_token("columns:" + ",".join(self.tokens))


@dataclass(frozen=True)
class Default:
    """No filtering and no sorting."""

    def __str__(self) -> str:
        return ""


DEFAULT = Default()

Control = Union[
    Literal,
    Empty,
    WildcardSequence,
    Regex,
    IntRange,
    FloatRange,
    DatePoint,
    DateRange,
    DurationPoint,
    DurationRange,
    Predicate,
    Category,
    Or,
    AllOf,
    RowSort,
    ColumnSort,
    Default,
]
