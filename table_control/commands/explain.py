"""Show how a directive is interpreted."""

from __future__ import annotations

import click
from rich.markup import escape
from rich.tree import Tree

from table_control.cli import Context, pass_context
from table_control.control.ast_nodes import (
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
    Or,
    Regex,
    RowSort,
    WildcardSequence,
)
from table_control.control.matching import column_sorting, is_search, row_sorting
from table_control.control.parser import parse_control
from table_control.utils.output import console


def _describe(control: Control) -> str:
    """One-line description of a control node (Rich markup)."""
    name = f"[control.node]{type(control).__name__}[/control.node]"
    if isinstance(control, Or):
        return f"{name} (any of {len(control.children)})"
    if isinstance(control, AllOf):
        return f"{name} (every term must match)"
    if isinstance(control, Category):
        return f"{name} column [control.value]{escape(control.name)}[/control.value]"
    if isinstance(control, (RowSort, ColumnSort)):
        tokens = ", ".join(escape(t) for t in control.tokens)
        return f"{name} [control.sort]{tokens}[/control.sort]"
    if isinstance(control, Default):
        return f"{name} (no filter, no sort)"
    if isinstance(control, Empty):
        return f"{name} (empty cells)"
    if isinstance(control, WildcardSequence):
        parts = " → ".join(repr(p) for p in control.parts)
        return f"{name} [control.value]{escape(parts)}[/control.value]"
    if isinstance(control, Regex):
        return f"{name} [control.value]/{escape(control.pattern.pattern)}/[/control.value]"
    if isinstance(control, IntRange):
        return f"{name} [control.value]{control.low} to {control.high}[/control.value]"
    if isinstance(control, FloatRange):
        return (
            f"{name} [control.value]{control.min_value:g} to {control.max_value:g}"
            f"[/control.value]"
        )
    if isinstance(control, DatePoint):
        fields = ", ".join(control.time.fields)
        return f"{name} [control.value]{escape(str(control.time))}[/control.value] ({fields})"
    if isinstance(control, DateRange):
        return (
            f"{name} [control.value]{escape(str(control.min_time))} to "
            f"{escape(str(control.max_time))}[/control.value]"
        )
    if isinstance(control, DurationPoint):
        return (
            f"{name} [control.value]{escape(str(control.duration))}[/control.value] "
            f"({control.duration.seconds:g}s)"
        )
    if isinstance(control, DurationRange):
        return (
            f"{name} [control.value]{escape(str(control.min_duration))} to "
            f"{escape(str(control.max_duration))}[/control.value]"
        )
    return f"{name} [control.value]{escape(str(control))}[/control.value]"


def build_tree(control: Control, tree: Tree | None = None) -> Tree:
    """Build a Rich tree of the control and its children."""
    label = _describe(control)
    node = Tree(label) if tree is None else tree.add(label)
    if isinstance(control, (Or, AllOf)):
        for child in control.children:
            build_tree(child, node)
    elif isinstance(control, Category):
        build_tree(control.inner, node)
    return node


@click.command("explain")
@click.argument("directive", nargs=-1, required=True)
@pass_context
def cli(ctx: Context, directive: tuple[str, ...]) -> None:
    """Show how DIRECTIVE is parsed.

    Prints the control tree, the canonical form of the directive, and
    the row and column sorting it requests. DIRECTIVE arguments are
    joined with spaces.

    \b
    Examples:
      table-control explain 42-99
      table-control explain "price: 10-20" sort:-date,name
    """
    directive_text = " ".join(directive)
    control = parse_control(directive_text)

    console.print(build_tree(control))
    console.print(f"Canonical: [control.value]{escape(str(control))}[/control.value]")
    console.print(f"Filters rows: {'yes' if is_search(control) else 'no'}")

    sorting = row_sorting(control)
    if sorting:
        console.print(f"Row sort: [control.sort]{escape(', '.join(sorting))}[/control.sort]")
    columns = column_sorting(control)
    if columns:
        console.print(f"Column order: [control.sort]{escape(', '.join(columns))}[/control.sort]")
