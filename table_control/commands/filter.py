"""Filter, sort and reorder a table with a directive."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path

import click

from table_control.cli import Context, pass_context
from table_control.control.engine import Column, FilteredValue, apply_columns, apply_rows
from table_control.control.parser import TABLE_CONTROL_HELP, parse_control
from table_control.exceptions import SourceError
from table_control.utils.output import (
    create_table,
    debug,
    error,
    highlight_text,
    info,
    pager_print,
    render_to_string,
    verbose,
)
from table_control.utils.tables import LoadedTable, build_columns, load_table

EXIT_SUCCESS = 0
EXIT_NO_RESULTS = 0
EXIT_USAGE_ERROR = 1
EXIT_SOURCE_ERROR = 2


@click.command("filter", epilog="\b\n" + TABLE_CONTROL_HELP)
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("directive", nargs=-1)
@click.option(
    "--table",
    "-t",
    "table_name",
    default=None,
    help="Table to read from a SQLite database (optional if it has only one)",
)
@click.option(
    "--directive",
    "-d",
    "directive_option",
    default=None,
    help="Directive as a single string (alternative to positional arguments)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json", "csv"]),
    default="table",
    help="Output format (default: table)",
)
@click.option(
    "--limit",
    "-l",
    type=click.IntRange(min=0),
    default=None,
    help="Limit number of rows printed (default: display.max_rows from config)",
)
@click.option(
    "--no-highlight",
    is_flag=True,
    default=False,
    help="Do not highlight matched text in table output",
)
@pass_context
def cli(
    ctx: Context,
    source: Path,
    directive: tuple[str, ...],
    table_name: str | None,
    directive_option: str | None,
    output_format: str,
    limit: int | None,
    no_highlight: bool,
) -> None:
    """Print the rows of SOURCE that match DIRECTIVE.

    SOURCE is a CSV, TSV or JSON file, or a SQLite database. DIRECTIVE
    arguments are joined with spaces. Without a directive the configured
    default is used, and without one all rows are printed in source order.

    \b
    Examples:
      table-control filter people.csv smith
      table-control filter people.csv "price: 10-20" sort:-date
      table-control filter shop.db --table orders "columns:status,name"
      table-control filter log.tsv '\\d+px' --format json
    """
    config = ctx.config
    if config is None:
        error("Configuration not loaded")
        raise SystemExit(EXIT_USAGE_ERROR)

    if directive and directive_option is not None:
        error(
            "Give the directive either as arguments or with --directive, not both",
        )
        raise SystemExit(EXIT_USAGE_ERROR)

    if directive_option is not None:
        directive_text = directive_option
    elif directive:
        directive_text = " ".join(directive)
    else:
        directive_text = config.default_directive

    try:
        loaded = load_table(
            source,
            table=table_name,
            delimiter=config.delimiter,
            encoding=config.encoding,
        )
    except SourceError as e:
        error(str(e))
        raise SystemExit(EXIT_SOURCE_ERROR)

    columns = build_columns(loaded, config.excluded_columns)
    control = parse_control(directive_text)
    verbose(f"Directive: {control}")

    rows = apply_rows(loaded.rows, columns, control)
    ordered = apply_columns(columns, control)
    debug(f"Column order: {', '.join(column.name for column in ordered)}")
    total = len(rows)

    if limit is None and config.max_rows > 0:
        limit = config.max_rows
    if limit is not None and total > limit:
        verbose(f"Showing {limit} of {total} matching rows")
        rows = rows[:limit]

    if output_format == "table":
        if not rows:
            info(f"No matching rows in {loaded.name} for: {directive_text}")
            raise SystemExit(EXIT_NO_RESULTS)
        highlight_style = None if no_highlight else config.highlight_style
        _print_table(loaded, rows, columns, ordered, total, highlight_style)
    elif output_format == "json":
        _print_json(rows, ordered)
    elif output_format == "csv":
        _print_csv(rows, ordered)

    raise SystemExit(EXIT_SUCCESS)


def _print_table(
    loaded: LoadedTable,
    rows: list[FilteredValue],
    columns: list[Column],
    ordered: list[Column],
    total: int,
    highlight_style: str | None,
) -> None:
    """Print rows as a Rich table, using pager when appropriate."""
    # Print title separately so it doesn't interfere with pager header
    shown = f"{len(rows)} of {total}" if len(rows) < total else str(total)
    info(f"{loaded.name}: {shown} rows")

    table = create_table(
        show_header=True,
        header_style="column.header",
    )

    # Match arrays are indexed by source column position
    positions = {id(column): i for i, column in enumerate(columns)}
    for column in ordered:
        table.add_column(column.name, no_wrap=True)

    for fv in rows:
        cells = []
        for column in ordered:
            text = column.render(fv.value)
            if highlight_style is None:
                cells.append(text)
            else:
                spans = fv.get_matches(positions[id(column)])
                cells.append(highlight_text(text, spans, highlight_style))
        table.add_row(*cells)

    # Top border + header + header border = 3 lines
    pager_print(render_to_string(table), header_lines=3)


def _print_json(rows: list[FilteredValue], ordered: list[Column]) -> None:
    """Print rows as a JSON array of objects, keys in display order."""
    results = [{column.name: column.getter(fv.value) for column in ordered} for fv in rows]
    click.echo(json.dumps(results, indent=2, ensure_ascii=False, default=str))


def _print_csv(rows: list[FilteredValue], ordered: list[Column]) -> None:
    """Print rendered cells as CSV with a header line."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([column.name for column in ordered])
    for fv in rows:
        writer.writerow([column.render(fv.value) for column in ordered])
    click.echo(buf.getvalue(), nl=False)
