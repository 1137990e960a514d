"""Load table rows from delimited text, JSON or SQLite sources."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqlalchemy import MetaData, Table, create_engine, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from table_control.control.engine import Column
from table_control.exceptions import (
    SourceNotFoundError,
    SourceReadError,
    UnsupportedSourceError,
)

log = logging.getLogger(__name__)

SQLITE_HEADER = b"SQLite format 3\x00"
SQLITE_SUFFIXES = {".db", ".sqlite", ".sqlite3"}
JSON_SUFFIXES = {".json"}
DELIMITED_SUFFIXES = {".csv": ",", ".tsv": "\t", ".tab": "\t", ".txt": ""}
SNIFF_DELIMITERS = ",\t;|"
SNIFF_BYTES = 64 * 1024


@dataclass
class LoadedTable:
    """Rows read from a source, keyed by column name.

    Attributes:
        name: Display name (file stem or SQLite table name).
        columns: Column names in source order.
        rows: One mapping per row.
    """

    name: str
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


def format_cell(value: Any) -> str:
    """Render a source value as cell text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def build_columns(table: LoadedTable, excluded_columns: list[str] | None = None) -> list[Column]:
    """Create column renderers for a loaded table.

    Columns named in ``excluded_columns`` (case-insensitive) do not take
    part in plain searches.
    """
    excluded = {name.lower() for name in excluded_columns or ()}
    return [
        Column.for_key(
            name,
            search_general=name.lower() not in excluded,
            formatter=format_cell,
        )
        for name in table.columns
    ]


def _is_sqlite(path: Path) -> bool:
    if path.suffix.lower() in SQLITE_SUFFIXES:
        return True
    try:
        with open(path, "rb") as f:
            return f.read(len(SQLITE_HEADER)) == SQLITE_HEADER
    except OSError:
        return False


def load_table(
    path: Path,
    *,
    table: str | None = None,
    delimiter: str = "",
    encoding: str = "utf-8",
) -> LoadedTable:
    """Load a table from ``path``.

    Args:
        path: CSV/TSV/JSON file or SQLite database.
        table: Table name inside a SQLite database. May be omitted when
            the database has exactly one table.
        delimiter: Field delimiter for delimited text; guessed when empty.
        encoding: Text encoding of file sources.

    Raises:
        SourceNotFoundError: If ``path`` does not exist.
        UnsupportedSourceError: If the format or table cannot be determined.
        SourceReadError: If the source cannot be parsed.
    """
    if not path.exists():
        raise SourceNotFoundError(path)
    if path.is_dir():
        raise UnsupportedSourceError(path, "is a directory")

    if _is_sqlite(path):
        return load_sqlite_table(path, table)
    if table is not None:
        raise UnsupportedSourceError(path, "--table only applies to SQLite databases")
    if path.suffix.lower() in JSON_SUFFIXES:
        return load_json_table(path, encoding=encoding)
    return load_delimited_table(path, delimiter=delimiter, encoding=encoding)


def _guess_delimiter(path: Path, sample: str) -> str:
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
        return dialect.delimiter
    except csv.Error:
        by_suffix = DELIMITED_SUFFIXES.get(path.suffix.lower())
        return by_suffix or ","


def load_delimited_table(
    path: Path, *, delimiter: str = "", encoding: str = "utf-8"
) -> LoadedTable:
    """Load a delimited text file whose first line holds the column names."""
    try:
        with open(path, encoding=encoding, newline="") as f:
            if not delimiter:
                sample = f.read(SNIFF_BYTES)
                f.seek(0)
                delimiter = _guess_delimiter(path, sample)
                log.debug("Guessed delimiter %r for %s", delimiter, path)
            reader = csv.reader(f, delimiter=delimiter)
            header = next(reader, None)
            if header is None:
                return LoadedTable(name=path.stem)
            columns = _unique_names(header)
            rows = []
            for record in reader:
                if not record:
                    continue
                # Short records are padded, extra fields dropped
                record = record + [""] * (len(columns) - len(record))
                rows.append(dict(zip(columns, record)))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise SourceReadError(path, str(e)) from e

    return LoadedTable(name=path.stem, columns=columns, rows=rows)


def _unique_names(header: list[str]) -> list[str]:
    names: list[str] = []
    seen: set[str] = set()
    for i, raw in enumerate(header):
        name = raw.strip() or f"column{i + 1}"
        base = name
        n = 2
        while name in seen:
            name = f"{base}_{n}"
            n += 1
        seen.add(name)
        names.append(name)
    return names


def load_json_table(path: Path, *, encoding: str = "utf-8") -> LoadedTable:
    """Load a JSON array of objects, or an object with a ``rows`` array.

    Columns are ordered by first appearance unless the object form also
    gives a ``columns`` list.
    """
    try:
        data = json.loads(path.read_text(encoding=encoding))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SourceReadError(path, str(e)) from e

    columns: list[str] = []
    if isinstance(data, dict):
        declared = data.get("columns")
        if isinstance(declared, list):
            columns = [str(c) for c in declared]
        data = data.get("rows")
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise SourceReadError(path, "expected a list of objects")

    seen = set(columns)
    for row in data:
        for key in row:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return LoadedTable(name=path.stem, columns=columns, rows=data)


def load_sqlite_table(path: Path, table: str | None = None) -> LoadedTable:
    """Load all rows of one table from a SQLite database."""
    engine = create_engine(f"sqlite:///{path}")
    try:
        names = sa_inspect(engine).get_table_names()
        if table is None:
            if len(names) != 1:
                available = ", ".join(names) if names else "none"
                raise UnsupportedSourceError(
                    path, f"choose a table with --table (available: {available})"
                )
            table = names[0]
        try:
            sa_table = Table(table, MetaData(), autoload_with=engine)
        except NoSuchTableError as e:
            raise UnsupportedSourceError(path, f"no table named {table!r}") from e

        with engine.connect() as conn:
            result = conn.execute(select(sa_table))
            columns = list(result.keys())
            rows = [dict(row._mapping) for row in result]
    except SQLAlchemyError as e:
        raise SourceReadError(path, str(e)) from e
    finally:
        engine.dispose()

    log.debug("Loaded %d rows from %s:%s", len(rows), path, table)
    return LoadedTable(name=table, columns=columns, rows=rows)
