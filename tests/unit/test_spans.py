"""Unit tests for match span sets."""

from __future__ import annotations

import pytest

from table_control.control.spans import Span, SpanSet


class TestSpan:
    def test_length(self) -> None:
        assert len(Span(3, 7)) == 4

    def test_zero_length(self) -> None:
        assert len(Span(0, 0)) == 0


class TestSpanSet:
    def test_sorted_on_insert(self) -> None:
        spans = SpanSet([(5, 7), (0, 2)])
        assert spans == [(0, 2), (5, 7)]

    def test_overlapping_spans_merge(self) -> None:
        spans = SpanSet([(0, 3), (2, 5)])
        assert spans == [(0, 5)]

    def test_adjacent_spans_stay_separate(self) -> None:
        spans = SpanSet([(0, 2), (2, 4)])
        assert spans == [(0, 2), (2, 4)]

    def test_contained_span_absorbed(self) -> None:
        spans = SpanSet([(0, 10), (2, 3)])
        assert spans == [(0, 10)]

    def test_span_bridging_several(self) -> None:
        spans = SpanSet([(0, 2), (4, 6), (8, 10)])
        spans.add(1, 9)
        assert spans == [(0, 10)]

    def test_zero_length_span_kept(self) -> None:
        spans = SpanSet([(0, 0)])
        assert len(spans) == 1
        assert spans
        assert spans.first_start == 0

    def test_duplicate_span_added_once(self) -> None:
        spans = SpanSet([(0, 0), (0, 0), (3, 4), (3, 4)])
        assert spans == [(0, 0), (3, 4)]

    def test_empty_set_is_falsy(self) -> None:
        spans = SpanSet()
        assert not spans
        assert spans.first_start is None

    @pytest.mark.parametrize("start,end", [(-1, 2), (3, 1)])
    def test_invalid_span_rejected(self, start: int, end: int) -> None:
        with pytest.raises(ValueError):
            SpanSet().add(start, end)

    def test_add_all_unions(self) -> None:
        spans = SpanSet([(0, 1)])
        spans.add_all(SpanSet([(5, 6), (0, 2)]))
        assert spans == [(0, 2), (5, 6)]

    def test_copy_is_independent(self) -> None:
        original = SpanSet([(0, 1)])
        copy = original.copy()
        copy.add(4, 5)
        assert original == [(0, 1)]
        assert copy == [(0, 1), (4, 5)]

    def test_iteration_yields_spans(self) -> None:
        spans = SpanSet([(1, 2), (4, 8)])
        assert [(s.start, s.end) for s in spans] == [(1, 2), (4, 8)]
        assert spans[1] == Span(4, 8)

    def test_equality_between_sets(self) -> None:
        assert SpanSet([(1, 2)]) == SpanSet([(1, 2)])
        assert SpanSet([(1, 2)]) != SpanSet([(1, 3)])
