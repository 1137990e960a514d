"""Unit tests for configuration."""

from pathlib import Path

import pytest

from table_control.config import (
    DEFAULT_HIGHLIGHT_STYLE,
    Config,
    load_config,
    save_config,
)
from table_control.exceptions import ConfigParseError, ConfigValidationError


def test_default_config() -> None:
    """Test that default config has sensible values."""
    config = Config()
    assert config.colored_output is True
    assert config.highlight_style == DEFAULT_HIGHLIGHT_STYLE
    assert config.max_rows == 0
    assert config.excluded_columns == []
    assert config.default_directive == ""


def test_load_missing_config(temp_dir: Path) -> None:
    """Test loading when config file doesn't exist."""
    config_path = temp_dir / "nonexistent.toml"
    config, warnings = load_config(config_path)

    assert config.config_path is None
    assert any("No config file found" in w for w in warnings)


def test_load_valid_config(sample_config: Path) -> None:
    """Test loading a valid config file."""
    config, warnings = load_config(sample_config)

    assert warnings == []
    assert config.colored_output is False
    assert config.highlight_style == "bold"
    assert config.config_path == sample_config.resolve()


def test_load_search_section(temp_dir: Path) -> None:
    config_path = temp_dir / "search.toml"
    config_path.write_text("""[search]
excluded_columns = ["notes", "id"]
default_directive = "sort:name"

[input]
delimiter = ";"
encoding = "latin-1"
""")
    config, _ = load_config(config_path)

    assert config.excluded_columns == ["notes", "id"]
    assert config.default_directive == "sort:name"
    assert config.delimiter == ";"
    assert config.encoding == "latin-1"


def test_load_invalid_toml(temp_dir: Path) -> None:
    """Test loading invalid TOML raises error."""
    config_path = temp_dir / "invalid.toml"
    config_path.write_text("this is not valid [ toml")

    with pytest.raises(ConfigParseError):
        load_config(config_path)


@pytest.mark.parametrize(
    "content,key",
    [
        ('[display]\ncolored_output = "not a boolean"\n', "display.colored_output"),
        ("[display]\nmax_rows = true\n", "display.max_rows"),
        ('[display]\nmax_rows = "10"\n', "display.max_rows"),
        ("[search]\nexcluded_columns = [1, 2]\n", "search.excluded_columns"),
        ('[input]\nencoding = ""\n', "input.encoding"),
    ],
)
def test_config_validation_invalid_type(temp_dir: Path, content: str, key: str) -> None:
    """Test that invalid types raise validation error."""
    config_path = temp_dir / "bad_types.toml"
    config_path.write_text(content)

    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(config_path)
    assert exc_info.value.key == key


def test_negative_max_rows_is_fatal() -> None:
    with pytest.raises(ConfigValidationError):
        Config(max_rows=-1).validate()


def test_invalid_highlight_style_warns() -> None:
    config = Config(highlight_style="not a [style")
    warnings = config.validate()

    assert len(warnings) == 1
    assert config.highlight_style == DEFAULT_HIGHLIGHT_STYLE


def test_long_delimiter_warns() -> None:
    config = Config(delimiter="::")
    warnings = config.validate()

    assert len(warnings) == 1
    assert config.delimiter == ""


def test_save_and_reload(temp_dir: Path) -> None:
    config = Config(
        colored_output=False,
        max_rows=50,
        excluded_columns=["notes"],
        default_directive="sort:-date",
    )
    config_path = temp_dir / "nested" / "config.toml"
    save_config(config, config_path)

    loaded, warnings = load_config(config_path)
    assert warnings == []
    assert loaded.colored_output is False
    assert loaded.max_rows == 50
    assert loaded.excluded_columns == ["notes"]
    assert loaded.default_directive == "sort:-date"
