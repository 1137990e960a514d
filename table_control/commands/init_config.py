"""Initialize configuration file for table-control."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from table_control.cli import Context, pass_context
from table_control.config import get_default_config_path
from table_control.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("table_control").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/table-control/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    The generated file lists every option with its default value and a
    short comment.

    Examples:

    \b
      # Create config at default location
      table-control init-config

    \b
      # Create config at custom location
      table-control init-config --output ./my-config.toml

    \b
      # Overwrite existing config
      table-control init-config --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    config_content = _load_example_config()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(config_content)
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1)

    success(f"Created config file: {config_path}")
    info("Edit this file to customize your settings.")
