"""Evaluate control values against rendered cell text."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from table_control.control.ast_nodes import (
    DEFAULT,
    AllOf,
    Category,
    ColumnSort,
    Control,
    DatePoint,
    DateRange,
    Default,
    DurationPoint,
    DurationRange,
    Empty,
    FloatRange,
    IntRange,
    Literal,
    Or,
    Predicate,
    Regex,
    RowSort,
    WildcardSequence,
)
from table_control.control.dates import parse_duration, parse_instant
from table_control.control.numbers import compare_doubles, try_parse_number
from table_control.control.spans import SpanSet

if TYPE_CHECKING:
    from table_control.control.dates import ParsedInstant


class NamedColumn(Protocol):
    """The part of a column that matching needs."""

    @property
    def name(self) -> str: ...

    @property
    def search_general(self) -> bool: ...


# ---------------------------------------------------------------------------
# Column name matching
# ---------------------------------------------------------------------------


def category_matches(category: str, test: str) -> bool:
    """Whether column name ``test`` starts with ``category``.

    Case is ignored, and whitespace inside the column name is skipped, so
    ``firstname`` and ``first`` both match ``First Name``.
    """
    c = t = 0
    while c < len(category) and t < len(test):
        cat_ch = category[c]
        test_ch = test[t]
        if cat_ch == test_ch or cat_ch.lower() == test_ch.lower():
            c += 1
            t += 1
        elif test_ch.isspace() and not cat_ch.isspace():
            t += 1
        else:
            return False
    return c == len(category)


def sort_category_matches(category: str, test: str) -> int:
    """Match a sort token against a column name.

    Returns:
        0 if the token does not name the column, 1 to sort ascending,
        -1 to sort descending.
    """
    if not category:
        return 0
    if category_matches(category, test):
        return 1
    if category[0] == "-":
        prefix = -1
    elif category[0] == "+":
        prefix = 1
    else:
        return 0
    if len(category) > 1 and category_matches(category[1:], test):
        return prefix
    return 0


# ---------------------------------------------------------------------------
# Control properties
# ---------------------------------------------------------------------------


def is_search(control: Control) -> bool:
    """Whether the control filters rows (as opposed to only sorting)."""
    if isinstance(control, (Default, RowSort, ColumnSort)):
        return False
    if isinstance(control, Or):
        return all(is_search(c) for c in control.children)
    if isinstance(control, AllOf):
        return any(is_search(c) for c in control.children)
    return True


def row_sorting(control: Control) -> list[str]:
    """Sort tokens the control applies to rows, in priority order."""
    if isinstance(control, RowSort):
        return list(control.tokens)
    if isinstance(control, (Or, AllOf)):
        return [token for child in control.children for token in row_sorting(child)]
    return []


def column_sorting(control: Control) -> list[str]:
    """Column-name tokens the control moves to the front, in order."""
    if isinstance(control, ColumnSort):
        return list(control.tokens)
    if isinstance(control, (Or, AllOf)):
        return [token for child in control.children for token in column_sorting(child)]
    return []


# ---------------------------------------------------------------------------
# Primitive matchers
# ---------------------------------------------------------------------------


def _fold(text: str) -> str | list[str]:
    folded = text.lower()
    if len(folded) == len(text):
        return folded
    # Lower-casing changed the length; compare per character to keep offsets
    return [ch.lower() for ch in text]


def _index_of(haystack: str | list[str], needle: str | list[str], start: int) -> int:
    if isinstance(haystack, str) and isinstance(needle, str):
        return haystack.find(needle, start)
    n = len(needle)
    for s in range(start, len(haystack) - n + 1):
        if all(haystack[s + k] == needle[k] for k in range(n)):
            return s
    return -1


def _find_literal(needle: str, text: str) -> SpanSet:
    matches = SpanSet()
    haystack = _fold(text)
    folded = _fold(needle)
    if isinstance(haystack, list) and isinstance(folded, str):
        folded = list(folded)
    elif isinstance(haystack, str) and isinstance(folded, list):
        haystack = list(haystack)
    start = _index_of(haystack, folded, 0)
    while start >= 0:
        matches.add(start, start + len(folded))
        start = _index_of(haystack, folded, start + len(folded))
    return matches


def _find_wildcard(parts: tuple[str, ...], text: str) -> SpanSet:
    haystack = list(_fold(text))
    folded = [list(_fold(part)) for part in parts if part]
    if not folded:
        return SpanSet([(0, len(text))])
    matches = SpanSet()
    pos = 0
    while True:
        match_start = -1
        end = pos
        for part in folded:
            index = _index_of(haystack, part, end)
            if index < 0:
                return matches
            if match_start < 0:
                match_start = index
            end = index + len(part)
        matches.add(match_start, end)
        pos = end


def _find_regex(control: Regex, text: str) -> SpanSet:
    matches = SpanSet()
    for m in control.pattern.finditer(text):
        # Empty matches are not reported
        if m.end() > m.start():
            matches.add(m.start(), m.end())
    return matches


def _is_ascii_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _int_included(control: IntRange, digits: str) -> bool:
    low, high = control.low, control.high
    if len(digits) < len(low) or len(digits) > len(high):
        return False
    if len(digits) == len(low) and digits < low:
        return False
    if len(digits) == len(high) and digits > high:
        return False
    return True


def _find_int_range(control: IntRange, text: str) -> SpanSet:
    matches = SpanSet()
    digit_start = -1
    for c, ch in enumerate(text):
        if _is_ascii_digit(ch):
            if digit_start < 0:
                digit_start = c
        elif digit_start >= 0:
            if _int_included(control, text[digit_start:c]):
                matches.add(digit_start, c)
            digit_start = -1
    if digit_start >= 0 and _int_included(control, text[digit_start:]):
        matches.add(digit_start, len(text))
    return matches


def _find_float_range(control: FloatRange, text: str) -> SpanSet:
    matches = SpanSet()
    point = compare_doubles(control.min_value, control.max_value) == 0
    i = 0
    while i < len(text):
        found = try_parse_number(text, i)
        if found is None:
            i += 1
            continue
        comp = compare_doubles(found.max_value, control.min_value)
        if comp > 0 or (comp == 0 and point):
            comp = compare_doubles(found.min_value, control.max_value)
            if comp < 0 or (comp == 0 and point):
                matches.add(i, found.end)
        i = found.end
    return matches


def _scan_instants(text: str, accept) -> SpanSet:
    matches = SpanSet()
    i = 0
    while i < len(text):
        if text[i].isalnum() and (i == 0 or not text[i - 1].isalnum()):
            time = parse_instant(text, i)
            if time is not None and accept(time):
                end = i + len(str(time))
                matches.add(i, end)
                i = end
                continue
        i += 1
    return matches


def _date_point_accepts(control: DatePoint, time: ParsedInstant) -> bool:
    return control.time.is_comparable(time) and control.time.compare(time) == 0


def _date_range_accepts(control: DateRange, time: ParsedInstant) -> bool:
    return (
        control.min_time.is_comparable(time)
        and control.max_time.is_comparable(time)
        and control.min_time.compare(time) <= 0
        and control.max_time.compare(time) >= 0
    )


def _find_duration(control: DurationPoint | DurationRange, text: str) -> SpanSet:
    stripped = text.strip()
    duration = parse_duration(stripped) if stripped else None
    if duration is None or len(str(duration)) != len(stripped):
        return SpanSet()
    if isinstance(control, DurationPoint):
        hit = control.duration.compare(duration) == 0
    else:
        hit = (
            control.min_duration.compare(duration) <= 0
            and control.max_duration.compare(duration) >= 0
        )
    return SpanSet([(0, len(text))]) if hit else SpanSet()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def find_matches(
    control: Control,
    text: str,
    *,
    search_general: bool = True,
    column_name: str = "",
) -> SpanSet | None:
    """Find the spans of ``text`` that ``control`` matches.

    Args:
        control: The control to evaluate.
        text: Rendered cell text.
        search_general: Whether the column takes part in free-text search.
            Leaf matchers do not apply to columns that opt out, unless a
            ``Category`` names the column.
        column_name: Name of the column the text came from.

    Returns:
        None if the control does not apply to this column, otherwise the
        (possibly empty) set of matched spans.
    """
    if text is None:
        text = ""
    if isinstance(control, (Default, RowSort, ColumnSort)):
        return None
    if isinstance(control, Category):
        if not category_matches(control.name, column_name):
            return None
        return find_matches(control.inner, text, search_general=True, column_name=column_name)
    if isinstance(control, Or):
        result: SpanSet | None = None
        for child in control.children:
            match = find_matches(
                child, text, search_general=search_general, column_name=column_name
            )
            if match is not None:
                result = match if result is None else result.add_all(match)
        return result
    if isinstance(control, AllOf):
        result = None
        for child in control.children:
            if not is_search(child):
                continue
            match = find_matches(
                child, text, search_general=search_general, column_name=column_name
            )
            if not match:
                return match
            result = match if result is None else result.add_all(match)
        return result
    if isinstance(control, Empty):
        return SpanSet([(0, 0)]) if not text else SpanSet()
    if isinstance(control, Predicate):
        if control.category != column_name:
            return None
        return SpanSet([(0, len(text))]) if control.test(text) else SpanSet()

    if not search_general:
        return None
    if isinstance(control, Literal):
        return _find_literal(control.text, text)
    if isinstance(control, WildcardSequence):
        return _find_wildcard(control.parts, text)
    if isinstance(control, Regex):
        return _find_regex(control, text)
    if isinstance(control, IntRange):
        return _find_int_range(control, text)
    if isinstance(control, FloatRange):
        return _find_float_range(control, text)
    if isinstance(control, DatePoint):
        return _scan_instants(text, lambda time: _date_point_accepts(control, time))
    if isinstance(control, DateRange):
        return _scan_instants(text, lambda time: _date_range_accepts(control, time))
    if isinstance(control, (DurationPoint, DurationRange)):
        return _find_duration(control, text)
    raise TypeError(f"Unknown control type: {type(control).__name__}")


def find_column_matches(control: Control, column: NamedColumn, text: str) -> SpanSet | None:
    """Evaluate ``control`` against one cell of ``column``."""
    return find_matches(
        control, text, search_general=column.search_general, column_name=column.name
    )


def has_match(matches: Sequence[SpanSet | None] | None) -> bool:
    """Whether any column reports a match (an empty cell match counts)."""
    return matches is not None and any(m for m in matches)


def find_row_matches(
    control: Control, columns: Sequence[NamedColumn], texts: Sequence[str]
) -> list[SpanSet | None] | None:
    """Evaluate ``control`` against every cell of a row.

    Returns:
        One entry per column, or None when the control does not search.
        An ``AllOf`` whose search children do not all match somewhere in
        the row reports no matches in any column.
    """
    if len(columns) != len(texts):
        raise ValueError(f"{len(texts)} texts for {len(columns)} columns")
    if not is_search(control):
        return None
    if isinstance(control, AllOf):
        merged: list[SpanSet | None] = [None] * len(texts)
        for child in control.children:
            if not is_search(child):
                continue
            child_matches = find_row_matches(child, columns, texts)
            if not has_match(child_matches):
                return [None] * len(texts)
            _merge_into(merged, child_matches)
        return merged
    if isinstance(control, Or):
        merged = [None] * len(texts)
        for child in control.children:
            child_matches = find_row_matches(child, columns, texts)
            if child_matches is not None:
                _merge_into(merged, child_matches)
        return merged
    return [find_column_matches(control, col, text) for col, text in zip(columns, texts)]


def _merge_into(target: list[SpanSet | None], source: Sequence[SpanSet | None]) -> None:
    for i, match in enumerate(source):
        if match is None:
            continue
        if target[i] is None:
            target[i] = match.copy()
        else:
            target[i].add_all(match)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def all_of(*controls: Control) -> Control:
    """A control that shows rows only when every given control shows them."""
    children: list[Control] = []
    for control in controls:
        if isinstance(control, AllOf):
            children.extend(control.children)
        elif not isinstance(control, Default):
            children.append(control)
    if not children:
        return DEFAULT
    if len(children) == 1:
        return children[0]
    return AllOf(tuple(children))


def any_of(*controls: Control) -> Control:
    """A control that shows rows when any given control shows them."""
    children: list[Control] = []
    has_default = False
    for control in controls:
        if isinstance(control, Or):
            children.extend(control.children)
        elif isinstance(control, Default):
            has_default = True
        else:
            children.append(control)
    if has_default and any(is_search(c) for c in children):
        # Unfiltered OR anything is unfiltered
        return DEFAULT
    if not children:
        return DEFAULT
    if len(children) == 1:
        return children[0]
    return Or(tuple(children))


def _sort_key_name(column_name: str) -> str:
    return column_name.lower().replace(" ", "")


def _flip_sort_token(token: str) -> str:
    if token.startswith("-"):
        return token[1:]
    if token.startswith("+"):
        return "-" + token[1:]
    return "-" + token


def toggle_sort(control: Control, column_name: str, root: bool = True) -> Control:
    """Toggle the row sort on ``column_name``.

    An existing sort on the column flips direction (ascending to
    descending and back).  Otherwise, for the root control, the column is
    added as the primary ascending sort.  Filtering is unchanged.
    """
    if isinstance(control, Default):
        return RowSort((_sort_key_name(column_name),))
    if isinstance(control, RowSort):
        tokens = list(control.tokens)
        changed = False
        for i, token in enumerate(tokens):
            if sort_category_matches(token, column_name) != 0:
                tokens[i] = _flip_sort_token(token)
                changed = True
        if changed:
            return RowSort(tuple(tokens))
        if root:
            return RowSort((_sort_key_name(column_name), *tokens))
        return control
    if isinstance(control, (Or, AllOf)):
        children = tuple(toggle_sort(child, column_name, False) for child in control.children)
        if children != control.children:
            return type(control)(children)
    if root:
        return all_of(RowSort((_sort_key_name(column_name),)), control)
    return control
