"""Directive parsing, matching and application for table filtering."""

from table_control.control.ast_nodes import (
    DEFAULT,
    AllOf,
    Category,
    ColumnSort,
    Control,
    Default,
    Literal,
    Or,
    Predicate,
    RowSort,
)
from table_control.control.engine import (
    Column,
    ColumnRenderer,
    FilteredValue,
    RowMatchCache,
    TableController,
    apply_columns,
    apply_rows,
    compare_column_renders,
)
from table_control.control.matching import (
    all_of,
    any_of,
    column_sorting,
    find_column_matches,
    find_matches,
    find_row_matches,
    is_search,
    row_sorting,
    toggle_sort,
)
from table_control.control.parser import TABLE_CONTROL_HELP, parse_control
from table_control.control.spans import Span, SpanSet

__all__ = [
    "DEFAULT",
    "TABLE_CONTROL_HELP",
    "AllOf",
    "Category",
    "Column",
    "ColumnRenderer",
    "ColumnSort",
    "Control",
    "Default",
    "FilteredValue",
    "Literal",
    "Or",
    "Predicate",
    "RowMatchCache",
    "RowSort",
    "Span",
    "SpanSet",
    "TableController",
    "all_of",
    "any_of",
    "apply_columns",
    "apply_rows",
    "column_sorting",
    "compare_column_renders",
    "find_column_matches",
    "find_matches",
    "find_row_matches",
    "is_search",
    "parse_control",
    "row_sorting",
    "toggle_sort",
]
