"""CLI commands for vfskit.

This package contains all subcommand implementations.
"""

from vfskit.cli.commands import cache, config, copy, ls, path, prune

__all__ = ["cache", "config", "copy", "ls", "path", "prune"]
