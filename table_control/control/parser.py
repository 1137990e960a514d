"""Parse directive text into a control value.

Each whitespace-separated token is tried against every grammar it could
belong to (literal text, integer range, number, date, duration, wildcard,
regex) and the candidates are OR-ed.  Tokens are AND-ed with each other.
Parsing never fails: a candidate grammar that does not apply is left out.
"""

from __future__ import annotations

import logging
import re
from importlib import resources
from typing import Any

from lark import Lark, Token, Transformer

from table_control.control.ast_nodes import (
    DEFAULT,
    AllOf,
    Category,
    ColumnSort,
    Control,
    DatePoint,
    DateRange,
    DurationPoint,
    DurationRange,
    Empty,
    FloatRange,
    IntRange,
    Literal,
    Or,
    Regex,
    RowSort,
    WildcardSequence,
)
from table_control.control.dates import parse_duration, parse_instant_exact
from table_control.control.numbers import try_parse_number

log = logging.getLogger(__name__)

ROW_SORT_KEYWORD = "sort"
COLUMN_SORT_KEYWORD = "columns"

INT_RANGE_PATTERN = re.compile(r"(?P<low>\d+)-(?P<high>\d+)")

REGEX_FLAGS = re.IGNORECASE | re.MULTILINE | re.DOTALL

TABLE_CONTROL_HELP = """\
Enter text, numbers, or dates to filter the table rows.
Use XXX-XXX to enter a range of numbers or dates.
Use abc*efg to match any text with "efg" occurring after "abc".
Use \\XXX to search via regular expressions.
Use column:XXX to search only in a column.
Use sort:column1,-column2 to sort the table rows.
Use columns:column1,column2 to sort the table columns.
All filters are AND-ed."""


def _load_grammar() -> str:
    """Load the Lark grammar from the package resources."""
    return resources.files("table_control.control").joinpath("grammar.lark").read_text()


_parser = Lark(_load_grammar(), parser="lalr")


class _TokenTransformer(Transformer):
    """Turn the parse tree into a list of lower-cased token strings."""

    def start(self, items: list[Any]) -> list[str]:
        return [item for item in items if item]

    def quoted(self, items: list[Token]) -> str:
        raw = str(items[0])[1:]
        if raw.endswith('"'):
            raw = raw[:-1]
        return raw.lower()

    def word(self, items: list[Token]) -> str:
        return str(items[0]).lower()


_transformer = _TokenTransformer()


def split_tokens(control_text: str) -> list[str]:
    """Split directive text into lower-cased tokens, honoring quotes."""
    return _transformer.transform(_parser.parse(control_text))


def parse_control(control_text: str | None) -> Control:
    """Parse a filter/sort directive.

    Args:
        control_text: The text typed by the user.

    Returns:
        The control value.  Empty or all-whitespace text yields ``DEFAULT``.
    """
    if not control_text or control_text.isspace():
        return DEFAULT
    controls: list[Control] = []
    for token in split_tokens(control_text):
        control = _parse_token(token)
        if control is not None:
            controls.append(control)
    if not controls:
        return DEFAULT
    if len(controls) == 1:
        return controls[0]
    return AllOf(tuple(controls))


def _split_names(text: str) -> tuple[str, ...]:
    return tuple(name for name in text.split(",") if name)


def _parse_token(token: str) -> Control | None:
    colon = token.find(":")
    if colon <= 0:
        return parse_filter_element(token)
    category = token[:colon]
    keyword = category.lower()
    if colon < len(token) - 1:
        rest = token[colon + 1 :]
        if keyword == ROW_SORT_KEYWORD:
            names = _split_names(rest)
            return RowSort(names) if names else None
        if keyword == COLUMN_SORT_KEYWORD:
            names = _split_names(rest)
            return ColumnSort(names) if names else None
        inner = parse_filter_element(rest)
    elif keyword in (ROW_SORT_KEYWORD, COLUMN_SORT_KEYWORD):
        # Keyword typed without its argument yet
        return None
    else:
        inner = Empty()
    # Also search as if the colon was part of the text
    return Or((Category(category, inner), parse_filter_element(token)))


def _float_range(text: str) -> FloatRange | None:
    found = try_parse_number(text, 0)
    if found is None:
        return None
    if found.end == len(text):
        return FloatRange(text, found.min_value, found.max_value)
    if text[found.end] == "-":
        max_found = try_parse_number(text, found.end + 1)
        if max_found is not None and max_found.end == len(text):
            return FloatRange(text, found.min_value, max_found.max_value)
    return None


def _date_control(text: str) -> DatePoint | DateRange | None:
    time = parse_instant_exact(text)
    if time is not None:
        return DatePoint(time)
    # Try the dashes closest to the middle first
    middle = len(text) / 2
    dashes = sorted((i for i, ch in enumerate(text) if ch == "-"), key=lambda i: abs(i - middle))
    for dash in dashes:
        min_time = parse_instant_exact(text[:dash])
        if min_time is None:
            continue
        max_time = parse_instant_exact(text[dash + 1 :])
        if max_time is not None:
            return DateRange(text, min_time, max_time)
    return None


def _duration_control(text: str) -> DurationPoint | DurationRange | None:
    dash = text.find("-")
    if dash <= 0:
        duration = parse_duration(text)
        if duration is not None and len(str(duration)) == len(text):
            return DurationPoint(duration)
        return None
    min_duration = parse_duration(text[:dash])
    max_duration = parse_duration(text[dash + 1 :])
    if (
        min_duration is not None
        and max_duration is not None
        and len(str(min_duration)) == dash
        and len(str(max_duration)) == len(text) - dash - 1
    ):
        return DurationRange(text, min_duration, max_duration)
    return None


def _wildcard_control(text: str) -> WildcardSequence | None:
    star = text.find("*")
    if star <= 0 or star >= len(text) - 1:
        return None
    parts = tuple(part for part in text.split("*") if part)
    return WildcardSequence(text, parts)


def _regex_control(text: str) -> Regex | None:
    if len(text) <= 1 or text[0] != "\\":
        return None
    try:
        return Regex(re.compile(text[1:], REGEX_FLAGS))
    except re.error as e:
        log.debug("Ignoring invalid regex %r: %s", text[1:], e)
        return None


def parse_filter_element(filter_text: str) -> Control:
    """Parse one token into the OR of every grammar it could belong to."""
    candidates: list[Control] = [Literal(filter_text)]
    m = INT_RANGE_PATTERN.fullmatch(filter_text)
    if m:
        candidates.append(IntRange(filter_text, m.group("low"), m.group("high")))
    builders = (_float_range, _date_control, _duration_control, _wildcard_control, _regex_control)
    for build in builders:
        candidate = build(filter_text)
        if candidate is not None:
            candidates.append(candidate)
    if len(candidates) == 1:
        return candidates[0]
    return Or(tuple(candidates))
