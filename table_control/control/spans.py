"""Match spans reported against rendered cell text."""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator
from typing import NamedTuple


class Span(NamedTuple):
    """A half-open ``[start, end)`` range of matched characters."""

    start: int
    end: int

    def __len__(self) -> int:  # type: ignore[override]
        return self.end - self.start


class SpanSet:
    """Sorted set of spans for one cell.

    Overlapping spans are merged on insertion so a renderer can paint the
    set left to right without double-highlighting.  Zero-length spans are
    kept: an empty cell matched by ``name:`` reports ``[0, 0)``.
    """

    __slots__ = ("_spans",)

    def __init__(self, spans: Iterable[Span | tuple[int, int]] = ()) -> None:
        self._spans: list[Span] = []
        for span in spans:
            self.add(*span)

    def add(self, start: int, end: int) -> SpanSet:
        if start < 0 or end < start:
            raise ValueError(f"Invalid span: [{start}, {end})")
        spans = self._spans
        i = bisect_left(spans, (start, end))
        # Merge with the left neighbour if it overlaps
        if i > 0 and spans[i - 1].end > start:
            i -= 1
            start = spans[i].start
            end = max(end, spans[i].end)
            del spans[i]
        while i < len(spans) and spans[i].start < end:
            end = max(end, spans[i].end)
            del spans[i]
        if i < len(spans) and spans[i] == (start, end):
            return self
        spans.insert(i, Span(start, end))
        return self

    def add_all(self, other: Iterable[Span]) -> SpanSet:
        for span in other:
            self.add(*span)
        return self

    def copy(self) -> SpanSet:
        result = SpanSet()
        result._spans = list(self._spans)
        return result

    @property
    def first_start(self) -> int | None:
        """Start of the earliest span, or None for an empty set."""
        return self._spans[0].start if self._spans else None

    def __iter__(self) -> Iterator[Span]:
        return iter(self._spans)

    def __len__(self) -> int:
        return len(self._spans)

    def __getitem__(self, index: int) -> Span:
        return self._spans[index]

    def __bool__(self) -> bool:
        return bool(self._spans)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SpanSet):
            return self._spans == other._spans
        if isinstance(other, list):
            return self._spans == [tuple(s) for s in other]
        return NotImplemented

    def __repr__(self) -> str:
        inner = ", ".join(f"[{s.start}, {s.end})" for s in self._spans)
        return f"SpanSet({inner})"
