"""Unit tests for output helpers."""

from __future__ import annotations

import logging

import pytest
from rich.table import Table

from table_control.utils import output
from table_control.utils.output import highlight_text, render_to_string, set_color, set_verbosity


class TestHighlightText:
    def test_styles_given_ranges(self) -> None:
        text = highlight_text("red and blue", [(0, 3), (8, 12)], "bold")
        assert text.plain == "red and blue"
        assert [(s.start, s.end, str(s.style)) for s in text.spans] == [
            (0, 3, "bold"),
            (8, 12, "bold"),
        ]

    def test_zero_length_ranges_ignored(self) -> None:
        text = highlight_text("", [(0, 0)], "bold")
        assert text.spans == []

    def test_no_spans(self) -> None:
        assert highlight_text("plain", None, "bold").spans == []


class TestRenderToString:
    def test_plain_when_color_disabled(self) -> None:
        set_color(False)
        try:
            table = Table()
            table.add_column("name")
            table.add_row(highlight_text("red", [(0, 3)], "bold"))
            rendered = render_to_string(table)
        finally:
            set_color(True)
        assert "red" in rendered
        assert "\x1b[" not in rendered

    def test_colored_when_enabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TERM", "xterm-256color")
        set_color(True)
        rendered = render_to_string(highlight_text("red", [(0, 3)], "bold"))
        assert "\x1b[1m" in rendered


class TestSetVerbosity:
    def teardown_method(self) -> None:
        set_verbosity()

    def test_levels(self) -> None:
        set_verbosity()
        assert logging.getLogger().level == logging.WARNING
        assert not output.is_verbose()

        set_verbosity(verbose=True)
        assert logging.getLogger().level == logging.INFO
        assert output.is_verbose()

        set_verbosity(debug=True)
        assert logging.getLogger().level == logging.DEBUG
        assert output.is_verbose()
