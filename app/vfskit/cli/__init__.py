"""CLI package for vfskit.

This package contains the Typer application and all subcommands.
"""

from vfskit.cli.main import app

__all__ = ["app"]
