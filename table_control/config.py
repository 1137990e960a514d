"""Configuration management for table-control."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w
from rich.errors import StyleSyntaxError
from rich.style import Style

from table_control.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

DEFAULT_HIGHLIGHT_STYLE = "bold black on yellow"
DEFAULT_ENCODING = "utf-8"


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "table-control" / "config.toml"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        colored_output: Whether to use colored terminal output.
        highlight_style: Rich style applied to matched text in table output.
        max_rows: Maximum number of rows printed (0 = unlimited).
        delimiter: Field delimiter for delimited text sources. Empty means
            guess from the file extension and contents.
        encoding: Text encoding of file sources.
        excluded_columns: Column names that plain search terms skip. They
            can still be searched with ``name:value``.
        default_directive: Directive applied when none is given.
        config_path: Path where config was loaded from (None if defaults).
    """

    colored_output: bool = True
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE
    max_rows: int = 0
    delimiter: str = ""
    encoding: str = DEFAULT_ENCODING
    excluded_columns: list[str] = field(default_factory=list)
    default_directive: str = ""
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        if self.max_rows < 0:
            raise ConfigValidationError("display.max_rows", self.max_rows, "must be >= 0")

        try:
            Style.parse(self.highlight_style)
        except StyleSyntaxError:
            warnings.append(
                f"display.highlight_style={self.highlight_style!r} is not a valid style, "
                f"using {DEFAULT_HIGHLIGHT_STYLE!r}"
            )
            self.highlight_style = DEFAULT_HIGHLIGHT_STYLE

        if len(self.delimiter) > 1:
            warnings.append(
                f"input.delimiter={self.delimiter!r} is longer than one character, "
                f"delimiter will be guessed"
            )
            self.delimiter = ""

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        # Use defaults
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: table-control init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    # Load from file
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    if "highlight_style" in display:
        value = display["highlight_style"]
        if not isinstance(value, str):
            raise ConfigValidationError("display.highlight_style", value, "must be a string")
        config.highlight_style = value

    if "max_rows" in display:
        value = display["max_rows"]
        # bool is an int subclass
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigValidationError("display.max_rows", value, "must be an integer")
        config.max_rows = value

    # Parse [input] section
    input_section = data.get("input", {})
    if "delimiter" in input_section:
        value = input_section["delimiter"]
        if not isinstance(value, str):
            raise ConfigValidationError("input.delimiter", value, "must be a string")
        config.delimiter = value

    if "encoding" in input_section:
        value = input_section["encoding"]
        if not isinstance(value, str) or not value:
            raise ConfigValidationError("input.encoding", value, "must be a non-empty string")
        config.encoding = value

    # Parse [search] section
    search = data.get("search", {})
    if "excluded_columns" in search:
        value = search["excluded_columns"]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigValidationError(
                "search.excluded_columns", value, "must be a list of strings"
            )
        config.excluded_columns = list(value)

    if "default_directive" in search:
        value = search["default_directive"]
        if not isinstance(value, str):
            raise ConfigValidationError("search.default_directive", value, "must be a string")
        config.default_directive = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Build TOML structure
    data: dict[str, Any] = {
        "display": {
            "colored_output": config.colored_output,
            "highlight_style": config.highlight_style,
            "max_rows": config.max_rows,
        },
        "input": {
            "delimiter": config.delimiter,
            "encoding": config.encoding,
        },
    }

    # Build [search] section (only if non-default values)
    search_data: dict[str, Any] = {}
    if config.excluded_columns:
        search_data["excluded_columns"] = list(config.excluded_columns)
    if config.default_directive:
        search_data["default_directive"] = config.default_directive
    if search_data:
        data["search"] = search_data

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
