"""Unit tests for applying controls to table rows and columns."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from table_control.control.ast_nodes import DEFAULT, Literal, Predicate, RowSort
from table_control.control.engine import (
    Column,
    FilteredValue,
    RowMatchCache,
    TableController,
    apply_columns,
    apply_rows,
    compare_column_renders,
)
from table_control.control.parser import parse_control


def _values(filtered: list[FilteredValue], key: str) -> list:
    return [fv.value[key] for fv in filtered]


def _single_column_rows(*texts: str) -> tuple[list[dict], list[Column]]:
    return [{"n": text} for text in texts], [Column.for_key("n")]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFiltering:
    def test_tokens_are_anded(self) -> None:
        rows = [
            {"id": 12, "name": "red"},
            {"id": 12, "name": "blue"},
            {"id": 7, "name": "red"},
        ]
        columns = [Column.for_key("id"), Column.for_key("name")]
        result = apply_rows(rows, columns, parse_control("12 red"))
        assert [fv.value for fv in result] == [rows[0]]

    def test_token_matches_any_of_its_grammars(self) -> None:
        rows, columns = _single_column_rows("7", "5.5", "9.9", "5-10", "11", "4")
        result = apply_rows(rows, columns, parse_control("5-10"))
        assert _values(result, "n") == ["7", "5.5", "9.9", "5-10"]

    def test_category_scoping(self) -> None:
        rows = [{"price": "5", "qty": "15"}, {"price": "15", "qty": "3"}]
        columns = [Column.for_key("price"), Column.for_key("qty")]
        result = apply_rows(rows, columns, parse_control("price:10-20"))
        assert [fv.value for fv in result] == [rows[1]]

    def test_column_excluded_from_plain_search(self) -> None:
        rows = [{"title": "a", "notes": "urgent"}, {"title": "urgent", "notes": ""}]
        columns = [Column.for_key("title"), Column.for_key("notes", search_general=False)]
        assert _values(apply_rows(rows, columns, parse_control("urgent")), "title") == ["urgent"]
        assert _values(apply_rows(rows, columns, parse_control("notes:urgent")), "title") == ["a"]

    def test_empty_cells_by_category(self) -> None:
        rows = [{"name": "x", "notes": ""}, {"name": "y", "notes": "set"}]
        columns = [Column.for_key("name"), Column.for_key("notes")]
        result = apply_rows(rows, columns, parse_control("notes:"))
        assert _values(result, "name") == ["x"]
        assert result[0].get_matches(1) == [(0, 0)]

    def test_none_renders_empty(self) -> None:
        rows = [{"name": None}]
        columns = [Column.for_key("name")]
        assert len(apply_rows(rows, columns, parse_control("name:"))) == 1

    def test_non_ascii_digits_in_cells(self) -> None:
        rows, columns = _single_column_rows("see (²) below", "jan 2021")
        result = apply_rows(rows, columns, parse_control("jan"))
        assert _values(result, "n") == ["jan 2021"]

    def test_predicate_on_named_column(self) -> None:
        rows = [{"name": "RED"}, {"name": "blue"}, {"name": "GREEN"}]
        columns = [Column.for_key("name")]
        result = apply_rows(rows, columns, Predicate("name", str.isupper))
        assert _values(result, "name") == ["RED", "GREEN"]
        assert result[1].get_matches(0) == [(0, 5)]

    def test_matches_recorded_per_column(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("red"))
        assert result[0].has_match
        assert result[0].filtered
        assert result[0].get_matches(1) == [(0, 3)]
        assert result[0].get_matches(0) == []


class TestDefaultPassthrough:
    @pytest.mark.parametrize("text", ["", "   "])
    def test_keeps_all_rows_in_order(self, text: str, people_rows, people_columns) -> None:
        control = parse_control(text)
        result = apply_rows(people_rows, people_columns, control)
        assert [fv.value for fv in result] == people_rows
        assert all(not fv.filtered for fv in result)
        assert all(m is None for fv in result for m in fv.matches)
        assert apply_columns(people_columns, control) == people_columns

    def test_pure_sort_keeps_all_rows(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("sort:id"))
        assert len(result) == len(people_rows)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestRelevanceOrder:
    def test_more_matches_first(self) -> None:
        rows, columns = _single_column_rows("xa", "aaa", "ba a", "none")
        result = apply_rows(rows, columns, Literal("a"))
        assert _values(result, "n") == ["aaa", "ba a", "xa"]

    def test_earlier_match_breaks_ties(self) -> None:
        rows, columns = _single_column_rows("xxa", "a", "xa")
        result = apply_rows(rows, columns, Literal("a"))
        assert _values(result, "n") == ["a", "xa", "xxa"]

    def test_full_ties_keep_source_order(self) -> None:
        rows, columns = _single_column_rows("b a", "c a", "d a")
        result = apply_rows(rows, columns, Literal("a"))
        assert _values(result, "n") == ["b a", "c a", "d a"]


class TestRowSort:
    def test_descending_numeric(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("sort:-price"))
        assert _values(result, "price") == [20.0, 15.0, 9.9, 5.5]

    def test_ascending(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("sort:qty"))
        assert _values(result, "qty") == [0, 3, 8, 15]

    def test_sort_overrides_relevance(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("red sort:-id"))
        assert _values(result, "id") == [12, 7]

    def test_secondary_sort_token(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("sort:name,-id"))
        assert _values(result, "name") == ["blue", "Green Apple", "red", "red"]
        assert _values(result, "id") == [12, 31, 12, 7]

    def test_unknown_sort_column_is_inert(self, people_rows, people_columns) -> None:
        result = apply_rows(people_rows, people_columns, parse_control("sort:nothing"))
        assert [fv.value for fv in result] == people_rows

    def test_custom_comparator(self) -> None:
        rows = [{"size": "L"}, {"size": "S"}, {"size": "M"}]
        order = {"S": 0, "M": 1, "L": 2}
        column = Column(
            "size",
            getter=lambda row: row["size"],
            comparator=lambda a, b: order[a] - order[b],
        )
        result = apply_rows(rows, [column], parse_control("sort:-size"))
        assert _values(result, "size") == ["L", "M", "S"]


class TestCompareColumnRenders:
    def test_numeric_prefix(self) -> None:
        assert compare_column_renders("2", "10") < 0
        assert compare_column_renders("2", "10", reverse=True) > 0

    def test_numeric_prefix_then_text(self) -> None:
        assert compare_column_renders("10 kg", "10 lb") < 0
        assert compare_column_renders("10 kg", "10") > 0

    def test_natural_text(self) -> None:
        assert compare_column_renders("item2", "item10") < 0

    @pytest.mark.parametrize("reverse", [False, True])
    def test_missing_values_sort_last(self, reverse: bool) -> None:
        assert compare_column_renders("a", None, reverse) < 0
        assert compare_column_renders(None, "a", reverse) > 0
        assert compare_column_renders("", "a", reverse) > 0
        assert compare_column_renders(None, None, reverse) == 0

    def test_dash_prefix(self) -> None:
        assert compare_column_renders("-5", "3") < 0
        assert compare_column_renders("-5", "3", reverse=True) > 0

    def test_equal(self) -> None:
        assert compare_column_renders("abc", "abc") == 0

    def test_dashed_fields_after_number(self) -> None:
        assert compare_column_renders("2021-01-15", "2021-03-02") < 0
        assert compare_column_renders("2021-01-15", "2021-03-02", reverse=True) > 0
        assert compare_column_renders("2020-12-20", "2021-01-15") < 0


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


class TestApplyColumns:
    def test_reorder_keeps_unmatched_last(self) -> None:
        columns = [SimpleNamespace(name=n) for n in ("a", "b", "c")]
        ordered = apply_columns(columns, parse_control("columns:b,a"))
        assert [c.name for c in ordered] == ["b", "a", "c"]

    def test_unmatched_keep_relative_order(self) -> None:
        columns = [SimpleNamespace(name=n) for n in ("w", "x", "y", "z")]
        ordered = apply_columns(columns, parse_control("columns:y"))
        assert [c.name for c in ordered] == ["y", "w", "x", "z"]

    def test_prefix_and_sign(self) -> None:
        columns = [SimpleNamespace(name=n) for n in ("First Name", "Last Name", "Age")]
        ordered = apply_columns(columns, parse_control("columns:-age,last"))
        assert [c.name for c in ordered] == ["Age", "Last Name", "First Name"]

    def test_callable_name(self) -> None:
        class Named:
            def __init__(self, name: str) -> None:
                self._name = name

            def name(self) -> str:
                return self._name

        columns = [Named("a"), Named("b")]
        ordered = apply_columns(columns, parse_control("red columns:b"))
        assert [c.name() for c in ordered] == ["b", "a"]

    def test_row_filter_does_not_reorder(self) -> None:
        columns = [SimpleNamespace(name=n) for n in ("a", "b")]
        assert apply_columns(columns, parse_control("b")) == columns


# ---------------------------------------------------------------------------
# Recomputation
# ---------------------------------------------------------------------------


class TestRecomputation:
    def test_deterministic(self, people_rows, people_columns) -> None:
        control = parse_control("e sort:qty")
        first = apply_rows(people_rows, people_columns, control)
        second = apply_rows(people_rows, people_columns, control)
        assert [fv.value for fv in first] == [fv.value for fv in second]
        assert [fv.matches for fv in first] == [fv.matches for fv in second]

    def test_cache_reuses_row_results(self, people_rows, people_columns) -> None:
        cache = RowMatchCache()
        control = parse_control("red")
        first = apply_rows(people_rows, people_columns, control, cache=cache)
        second = apply_rows(people_rows, people_columns, control, cache=cache)
        assert first[0] is second[0]
        assert len(cache) == len(people_rows)

    def test_changed_row_is_recomputed(self, people_rows, people_columns) -> None:
        cache = RowMatchCache()
        control = parse_control("red")
        assert len(apply_rows(people_rows, people_columns, control, cache=cache)) == 2
        people_rows[1] = dict(people_rows[1], name="dark red")
        result = apply_rows(people_rows, people_columns, control, cache=cache)
        assert _values(result, "name") == ["red", "red", "dark red"]

    def test_removed_rows_pruned(self, people_rows, people_columns) -> None:
        cache = RowMatchCache()
        apply_rows(people_rows, people_columns, DEFAULT, cache=cache)
        apply_rows(people_rows[:2], people_columns, DEFAULT, cache=cache)
        assert len(cache) == 2

    def test_column_change_resizes_matches(self, people_rows, people_columns) -> None:
        cache = RowMatchCache()
        control = parse_control("red")
        apply_rows(people_rows, people_columns, control, cache=cache)
        result = apply_rows(people_rows, people_columns[:2], control, cache=cache)
        assert all(fv.column_count == 2 for fv in result)

    def test_duplicate_row_keys_rejected(self, people_rows, people_columns) -> None:
        with pytest.raises(ValueError):
            apply_rows(people_rows, people_columns, DEFAULT, key=lambda row: row["id"])

    def test_match_array_must_fit_columns(self) -> None:
        fv = FilteredValue({"a": "x"}, 2)
        with pytest.raises(AssertionError):
            fv.update(["x"], Literal("x"), [Column.for_key("a")])


class TestTableController:
    def test_filter_sort_and_columns(self, people_rows, people_columns) -> None:
        controller = TableController(people_columns, people_rows)
        assert controller.values == people_rows

        controller.set_control("red sort:-id columns:name")
        assert _values(controller.rows, "id") == [12, 7]
        assert [c.name for c in controller.columns][:2] == ["name", "id"]

    def test_toggle_sort(self, people_rows, people_columns) -> None:
        controller = TableController(people_columns, people_rows)
        assert controller.toggle_sort("qty") == RowSort(("qty",))
        assert _values(controller.rows, "qty") == [0, 3, 8, 15]
        controller.toggle_sort("qty")
        assert _values(controller.rows, "qty") == [15, 8, 3, 0]

    def test_update_row(self, people_rows, people_columns) -> None:
        controller = TableController(people_columns, people_rows, "blue")
        assert len(controller.rows) == 1
        controller.update_row(0, dict(people_rows[0], name="light blue"))
        assert _values(controller.rows, "name") == ["blue", "light blue"]

    def test_set_rows_and_columns(self, people_rows, people_columns) -> None:
        controller = TableController(people_columns, people_rows, "columns:qty")
        controller.set_rows(people_rows[:1])
        assert len(controller.values) == 1
        controller.set_columns(people_columns[:2])
        assert [c.name for c in controller.columns] == ["id", "name"]
