"""Shared pytest fixtures."""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import Column, Float, Integer, MetaData, String, Table, create_engine, insert

from table_control.control.engine import Column as TableColumn

if TYPE_CHECKING:
    from collections.abc import Generator


PEOPLE_HEADER = ["id", "name", "price", "qty", "joined"]
PEOPLE_ROWS = [
    {"id": 12, "name": "red", "price": 15.0, "qty": 3, "joined": "2021-01-15"},
    {"id": 12, "name": "blue", "price": 5.5, "qty": 15, "joined": "2020-06-30"},
    {"id": 7, "name": "red", "price": 9.9, "qty": 8, "joined": "2021-03-02"},
    {"id": 31, "name": "Green Apple", "price": 20.0, "qty": 0, "joined": "2019-12-24"},
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[display]
colored_output = false
highlight_style = "bold"
max_rows = 0

[input]
delimiter = ""
encoding = "utf-8"

[search]
excluded_columns = []
default_directive = ""
""")
    return config_path


@pytest.fixture
def people_rows() -> list[dict]:
    """Rows used by engine tests, as plain dicts."""
    return [dict(row) for row in PEOPLE_ROWS]


@pytest.fixture
def people_columns() -> list[TableColumn]:
    """Column renderers over the people rows."""
    return [TableColumn.for_key(name) for name in PEOPLE_HEADER]


@pytest.fixture
def sample_csv(temp_dir: Path) -> Path:
    """Create a CSV file with the people rows."""
    csv_path = temp_dir / "people.csv"
    lines = [",".join(PEOPLE_HEADER)]
    for row in PEOPLE_ROWS:
        lines.append(",".join(str(row[name]) for name in PEOPLE_HEADER))
    csv_path.write_text("\n".join(lines) + "\n")
    return csv_path


@pytest.fixture
def sample_json(temp_dir: Path) -> Path:
    """Create a JSON file with the people rows."""
    json_path = temp_dir / "people.json"
    json_path.write_text(json.dumps(PEOPLE_ROWS))
    return json_path


@pytest.fixture
def sample_sqlite(temp_dir: Path) -> Path:
    """Create a SQLite database with a ``people`` and an ``orders`` table."""
    db_path = temp_dir / "shop.db"
    engine = create_engine(f"sqlite:///{db_path}")
    metadata = MetaData()
    people = Table(
        "people",
        metadata,
        Column("id", Integer),
        Column("name", String),
        Column("price", Float),
        Column("qty", Integer),
        Column("joined", String),
    )
    orders = Table(
        "orders",
        metadata,
        Column("order_id", Integer, primary_key=True),
        Column("status", String),
        Column("customer", String),
    )
    metadata.create_all(engine)
    with engine.begin() as conn:
        conn.execute(insert(people), PEOPLE_ROWS)
        conn.execute(
            insert(orders),
            [
                {"order_id": 1, "status": "shipped", "customer": "red"},
                {"order_id": 2, "status": "pending", "customer": "blue"},
                {"order_id": 3, "status": "shipped", "customer": "green"},
            ],
        )
    engine.dispose()
    return db_path
