"""config command implementation.

Shows the effective configuration and writes a default configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer
from rich.syntax import Syntax

from vfskit.core.config import ConfigError, VfsConfig, config_to_dict, require_config, save_config
from vfskit.core.paths import get_config_path
from vfskit.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show(
    path: Annotated[
        Path | None,
        typer.Option("--path", "-p", help="Configuration file to read."),
    ] = None,
) -> None:
    """Print the effective configuration as TOML."""
    config_path = path or get_config_path()
    config = require_config(config_path)
    if not config_path.exists():
        print_info(f"No configuration file at {config_path}; showing defaults.")
    console.print(Syntax(tomli_w.dumps(config_to_dict(config)), "toml"))


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option("--path", "-p", help="Where to write the configuration file."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing configuration file."),
    ] = False,
) -> None:
    """Write a configuration file with default settings."""
    config_path = path or get_config_path()
    if config_path.exists() and not force:
        print_error(f"Configuration already exists: {config_path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(VfsConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Configuration written to {saved}")
