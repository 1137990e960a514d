"""Apply a control value to table rows and columns.

``apply_rows`` and ``apply_columns`` are pure functions of their inputs.
Callers that re-run them on every change can pass a ``RowMatchCache`` so
rows whose rendered text did not change keep their previous matches.
``TableController`` wraps both for a table whose rows, columns and
directive change over time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Generic, Protocol, TypeVar

from table_control.control.ast_nodes import DEFAULT, Control
from table_control.control.matching import (
    column_sorting,
    find_row_matches,
    has_match,
    is_search,
    row_sorting,
    sort_category_matches,
    toggle_sort,
)
from table_control.control.numbers import (
    compare_doubles,
    compare_number_tolerant,
    try_parse_number,
)
from table_control.control.parser import parse_control
from table_control.control.spans import SpanSet

log = logging.getLogger(__name__)

V = TypeVar("V")
C = TypeVar("C")


class ColumnRenderer(Protocol[V]):
    """What the engine needs from a table column."""

    @property
    def name(self) -> str: ...

    @property
    def search_general(self) -> bool: ...

    def render(self, value: V) -> str: ...

    def compare(self, value1: V, value2: V, reverse: bool) -> int: ...


def compare_column_renders(text1: str | None, text2: str | None, reverse: bool = False) -> int:
    """Compare two rendered cells for row sorting.

    Missing and empty texts sort last in both directions, on the assumption
    that a user sorting by a column cares about rows that have a value in
    it.  Texts that start with a number compare numerically.
    """
    if text1 is None:
        return 0 if text2 is None else 1
    if text2 is None:
        return -1
    if not text1:
        return 0 if not text2 else 1
    if not text2:
        return -1
    if text1[0] == "-" and text2[0] != "-":
        return 1 if reverse else -1
    if text2[0] == "-" and text1[0] != "-":
        return -1 if reverse else 1
    if text1 == text2:
        return 0

    number1 = try_parse_number(text1, 0)
    number2 = try_parse_number(text2, 0) if number1 is not None else None
    if number1 is not None and number2 is not None:
        comp = compare_doubles(number1.min_value, number2.min_value)
        if comp == 0:
            if number1.end == len(text1):
                comp = 0 if number2.end == len(text2) else -1
            elif number2.end == len(text2):
                comp = 1
            else:
                rest1, rest2 = text1[number1.end :], text2[number2.end :]
                # A dash right after a number separates fields, as in 2021-03-02
                if rest1[0] == "-" and rest2[0] == "-":
                    rest1, rest2 = rest1[1:], rest2[1:]
                return compare_column_renders(rest1, rest2, reverse)
    else:
        comp = compare_number_tolerant(text1, text2)
    return -comp if reverse else comp


@dataclass
class Column(Generic[V]):
    """A ready-made column renderer over row values.

    Attributes:
        name: Column name, matched by ``name:``, ``sort:`` and ``columns:``.
        getter: Extracts the cell value from a row.
        search_general: Whether plain (un-prefixed) tokens search this column.
        formatter: Turns the cell value into text; ``str`` by default,
            with None rendered as empty text.
        comparator: Compares two cell values; by default the rendered
            texts are compared with ``compare_column_renders``.
    """

    name: str
    getter: Callable[[V], Any]
    search_general: bool = True
    formatter: Callable[[Any], str] | None = None
    comparator: Callable[[Any, Any], int] | None = None

    @classmethod
    def for_key(cls, name: str, key: Hashable | None = None, **kwargs: Any) -> Column[Any]:
        """A column reading ``row[key]`` (``row.get(key)`` for mappings)."""
        item = name if key is None else key

        def getter(row: Any) -> Any:
            if hasattr(row, "get"):
                return row.get(item)
            return row[item]

        return cls(name=name, getter=getter, **kwargs)

    def render(self, value: V) -> str:
        cell = self.getter(value)
        if self.formatter is not None:
            return self.formatter(cell)
        return "" if cell is None else str(cell)

    def compare(self, value1: V, value2: V, reverse: bool) -> int:
        if self.comparator is None:
            return compare_column_renders(self.render(value1), self.render(value2), reverse)
        comp = self.comparator(self.getter(value1), self.getter(value2))
        return -comp if reverse else comp


def column_name(column: Any) -> str:
    """Name of a column object, whether ``name`` is an attribute or a method."""
    name = column.name
    return name() if callable(name) else name


class FilteredValue(Generic[V]):
    """A table row together with what the current control matched in it.

    Attributes:
        value: The row value.
        matches: Per-column match spans; None where the control did not
            apply to the column.
        has_match: Whether the row passes the filter.
        filtered: Whether a filter (as opposed to a pure sort) was evaluated.
    """

    __slots__ = ("value", "matches", "has_match", "filtered", "_texts", "_control")

    def __init__(self, value: V, columns: int) -> None:
        self.value = value
        self.matches: list[SpanSet | None] = [None] * columns
        self.has_match = False
        self.filtered = False
        self._texts: list[str] | None = None
        self._control: Control | None = None

    @property
    def column_count(self) -> int:
        return len(self.matches)

    def get_matches(self, column: int) -> SpanSet | None:
        """Matched ranges of the rendered text in the given column."""
        return self.matches[column]

    def resize(self, columns: int) -> None:
        """Forget all matches and size the match array for ``columns``."""
        self.matches = [None] * columns
        self.has_match = False
        self.filtered = False
        self._texts = None
        self._control = None

    def is_current(self, texts: list[str], control: Control) -> bool:
        return (
            self._texts is not None
            and (self._control is control or self._control == control)
            and self._texts == texts
        )

    def update(self, texts: list[str], control: Control, columns: Sequence[Any]) -> None:
        if len(texts) != len(self.matches):
            raise AssertionError(
                f"Row has {len(self.matches)} match slots but {len(texts)} columns"
            )
        if is_search(control):
            matches = find_row_matches(control, columns, texts)
            self.matches = list(matches) if matches is not None else [None] * len(texts)
            self.has_match = has_match(self.matches)
            self.filtered = True
        else:
            self.matches = [None] * len(texts)
            self.has_match = True
            self.filtered = False
        self._texts = texts
        self._control = control

    @property
    def match_count(self) -> int:
        return sum(len(m) for m in self.matches if m is not None)

    @property
    def first_match_start(self) -> int | None:
        starts = [m.first_start for m in self.matches if m]
        return min(starts) if starts else None

    def compare_relevance(self, other: FilteredValue[Any]) -> int:
        """Order by more matches first, then by the earliest match."""
        count = self.match_count
        other_count = other.match_count
        if count != other_count:
            return -1 if count > other_count else 1
        start = self.first_match_start
        other_start = other.first_match_start
        if start is None or other_start is None or start == other_start:
            return 0
        return -1 if start < other_start else 1

    def __repr__(self) -> str:
        return f"FilteredValue({self.value!r}, has_match={self.has_match})"

    def __str__(self) -> str:
        return str(self.value)


class RowMatchCache(Generic[V]):
    """Per-row match results kept between recomputations.

    Entries are keyed by a stable row identity supplied by the caller (the
    row index by default).  Changing the column set invalidates every entry.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, FilteredValue[V]] = {}
        self._column_signature: tuple | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._column_signature = None

    def sync_columns(self, columns: Sequence[Any]) -> bool:
        """Invalidate entries if the columns changed.  Returns True if they did."""
        signature = tuple((column_name(c), bool(c.search_general)) for c in columns)
        if signature == self._column_signature:
            return False
        for entry in self._entries.values():
            entry.resize(len(columns))
        self._column_signature = signature
        return True

    def entry(self, key: Hashable, value: V, columns: int) -> FilteredValue[V]:
        entry = self._entries.get(key)
        if entry is None:
            entry = FilteredValue(value, columns)
            self._entries[key] = entry
        else:
            entry.value = value
            if entry.column_count != columns:
                entry.resize(columns)
        return entry

    def retain(self, keys: set[Hashable]) -> None:
        """Drop entries for rows that are gone."""
        for key in [k for k in self._entries if k not in keys]:
            del self._entries[key]


def _compare_row_sort(
    sorting: Sequence[str], columns: Sequence[ColumnRenderer[V]], value1: V, value2: V
) -> int:
    for token in sorting:
        comp = 0
        for column in columns:
            direction = sort_category_matches(token, column_name(column))
            if direction != 0:
                comp = column.compare(value1, value2, direction < 0)
                break
        if comp != 0:
            return comp
    return 0


def apply_rows(
    rows: Iterable[V],
    columns: Sequence[ColumnRenderer[V]],
    control: Control = DEFAULT,
    *,
    cache: RowMatchCache[V] | None = None,
    key: Callable[[V], Hashable] | None = None,
) -> list[FilteredValue[V]]:
    """Filter and order table rows.

    Args:
        rows: Row values in source order.
        columns: Column renderers, in table order.
        control: The parsed directive.
        cache: Results from a previous call to reuse; a fresh cache is
            used when omitted.
        key: Stable identity of a row; the row index when omitted.

    Returns:
        The rows that pass the filter, each with its per-column matches,
        ordered by the control's row sort, then by relevance (more matches
        first, earlier matches first), then by source order.
    """
    columns = list(columns)
    if cache is None:
        cache = RowMatchCache()
    cache.sync_columns(columns)
    searching = is_search(control)

    kept: list[FilteredValue[V]] = []
    keys: set[Hashable] = set()
    recomputed = 0
    for index, row in enumerate(rows):
        row_key = key(row) if key is not None else index
        if row_key in keys:
            raise ValueError(f"Duplicate row key: {row_key!r}")
        keys.add(row_key)
        entry = cache.entry(row_key, row, len(columns))
        texts = [column.render(row) for column in columns]
        if not entry.is_current(texts, control):
            entry.update(texts, control, columns)
            recomputed += 1
        if entry.has_match:
            kept.append(entry)
    cache.retain(keys)
    log.debug(
        "Applied %r to %d rows: %d recomputed, %d kept",
        str(control),
        len(keys),
        recomputed,
        len(kept),
    )

    sorting = row_sorting(control)
    if not sorting and not searching:
        return kept

    def compare(fv1: FilteredValue[V], fv2: FilteredValue[V]) -> int:
        comp = _compare_row_sort(sorting, columns, fv1.value, fv2.value) if sorting else 0
        if comp == 0 and searching:
            comp = fv1.compare_relevance(fv2)
        return comp

    # sorted() is stable, so ties keep source order
    return sorted(kept, key=cmp_to_key(compare))


def apply_columns(columns: Iterable[C], control: Control = DEFAULT) -> list[C]:
    """Order columns by the control's ``columns:`` tokens.

    A column named by an earlier token comes before one named by a later
    token; columns no token names keep their relative order at the end.
    """
    columns = list(columns)
    tokens = column_sorting(control)
    if not tokens:
        return columns

    def rank(column: C) -> int:
        name = column_name(column)
        for i, token in enumerate(tokens):
            if sort_category_matches(token, name) != 0:
                return i
        return len(tokens)

    return sorted(columns, key=rank)


class TableController(Generic[V]):
    """Keeps a table's filtered rows and ordered columns up to date.

    Rows, columns and the directive can each be replaced; results are
    recomputed on the next read, reusing cached matches for rows whose
    rendered text did not change.
    """

    def __init__(
        self,
        columns: Iterable[ColumnRenderer[V]] = (),
        rows: Iterable[V] = (),
        control: Control | str = DEFAULT,
        *,
        key: Callable[[V], Hashable] | None = None,
    ) -> None:
        self._columns: list[ColumnRenderer[V]] = list(columns)
        self._rows: list[V] = list(rows)
        self._control: Control = parse_control(control) if isinstance(control, str) else control
        self._key = key
        self._cache: RowMatchCache[V] = RowMatchCache()
        self._filtered: list[FilteredValue[V]] | None = None
        self._ordered_columns: list[ColumnRenderer[V]] | None = None

    @property
    def control(self) -> Control:
        return self._control

    def set_control(self, control: Control | str) -> None:
        """Replace the directive, given parsed or as text."""
        if isinstance(control, str):
            control = parse_control(control)
        if control != self._control:
            self._control = control
            self._invalidate()

    def set_rows(self, rows: Iterable[V]) -> None:
        self._rows = list(rows)
        self._filtered = None

    def update_row(self, index: int, value: V) -> None:
        """Replace one source row."""
        self._rows[index] = value
        self._filtered = None

    def set_columns(self, columns: Iterable[ColumnRenderer[V]]) -> None:
        self._columns = list(columns)
        self._invalidate()

    def toggle_sort(self, column: str) -> Control:
        """Toggle row sorting on a column (e.g. on a header click)."""
        self.set_control(toggle_sort(self._control, column))
        return self._control

    def _invalidate(self) -> None:
        self._filtered = None
        self._ordered_columns = None

    @property
    def rows(self) -> list[FilteredValue[V]]:
        """Filtered, sorted rows with their matches, in source column order."""
        if self._filtered is None:
            self._filtered = apply_rows(
                self._rows, self._columns, self._control, cache=self._cache, key=self._key
            )
        return self._filtered

    @property
    def values(self) -> list[V]:
        return [fv.value for fv in self.rows]

    @property
    def columns(self) -> list[ColumnRenderer[V]]:
        """Columns in display order."""
        if self._ordered_columns is None:
            self._ordered_columns = apply_columns(self._columns, self._control)
        return self._ordered_columns
