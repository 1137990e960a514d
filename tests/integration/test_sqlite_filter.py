"""End-to-end filtering of SQLite tables."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner, Result

from table_control.cli import cli
from table_control.control.engine import TableController
from table_control.utils.tables import build_columns, load_table


def _run(config: Path, *args: str) -> Result:
    return CliRunner().invoke(cli, ["--config", str(config), "filter", *args])


def _ids(result: Result, key: str = "id") -> list[int]:
    return [row[key] for row in json.loads(result.stdout)]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestFilterSqlite:
    def test_single_table_needs_no_table_option(self, quiet_config: Path, events_db: Path) -> None:
        result = _run(quiet_config, str(events_db), "--format", "json")
        assert result.exit_code == 0, result.output
        assert _ids(result) == [1, 2, 3, 4]

    def test_date_range_in_column(self, quiet_config: Path, events_db: Path) -> None:
        result = _run(
            quiet_config, str(events_db), "started:2021-01-01-2021-06-30", "sort:-id", "-f", "json"
        )
        assert result.exit_code == 0, result.output
        assert _ids(result) == [2, 1]

    def test_duration_range_in_column(self, quiet_config: Path, events_db: Path) -> None:
        result = _run(quiet_config, str(events_db), "length:1h-2h", "-f", "json")
        assert result.exit_code == 0, result.output
        assert _ids(result) == [2, 4]

    def test_filter_and_sort_other_table(self, quiet_config: Path, sample_sqlite: Path) -> None:
        result = _run(
            quiet_config,
            str(sample_sqlite),
            "-t",
            "orders",
            "shipped",
            "sort:-order_id",
            "-f",
            "json",
        )
        assert result.exit_code == 0, result.output
        assert _ids(result, "order_id") == [3, 1]

    def test_table_output(self, quiet_config: Path, events_db: Path) -> None:
        result = _run(quiet_config, str(events_db), "review")
        assert result.exit_code == 0, result.output
        assert "events: 1 rows" in result.stdout
        assert "Design review" in result.stdout
        assert "Retro" not in result.stdout


# ---------------------------------------------------------------------------
# Controller over loaded rows
# ---------------------------------------------------------------------------


class TestControllerOverSqlite:
    def test_filter_then_toggle_sort(self, events_db: Path) -> None:
        table = load_table(events_db)
        controller = TableController(build_columns(table), table.rows)

        controller.set_control("done")
        assert [row["id"] for row in controller.values] == [1, 2, 4]

        controller.toggle_sort("started")
        assert [row["id"] for row in controller.values] == [4, 1, 2]

        controller.toggle_sort("started")
        assert [row["id"] for row in controller.values] == [2, 1, 4]

    def test_column_order_follows_directive(self, events_db: Path) -> None:
        table = load_table(events_db)
        controller = TableController(build_columns(table), table.rows)

        controller.set_control("columns:status,title")
        assert [column.name for column in controller.columns] == [
            "status",
            "title",
            "id",
            "started",
            "length",
        ]
        assert len(controller.values) == 4
