"""prune command implementation.

Runs the folder pruner once, or keeps it running with --watch.
"""

import time
from typing import Annotated

import typer

from vfskit.cli.display import print_removed
from vfskit.cli.types import duration_option, get_registry, percent_option, size_option
from vfskit.core.config import require_config
from vfskit.filesystem import matchers
from vfskit.filesystem.errors import PruneCycleError
from vfskit.filesystem.pruner import FolderPruner
from vfskit.utils.formatting import print_error, print_info
from vfskit.utils.units import format_duration


def prune_folder(
    folder: Annotated[str, typer.Argument(help="Folder to prune.")],
    capacity: Annotated[
        str | None,
        typer.Option("--capacity", "-c", help="Prune while files total more than this (e.g. 10GB)."),
    ] = None,
    min_age: Annotated[
        str | None,
        typer.Option("--min-age", help="Only remove files older than this (e.g. 14d)."),
    ] = None,
    min_usable: Annotated[
        str | None,
        typer.Option("--min-usable", help="Prune while usable disk space is below this percentage."),
    ] = None,
    patterns: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Only prune files whose name matches (repeatable)."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be removed."),
    ] = False,
    watch: Annotated[
        bool,
        typer.Option("--watch", "-w", help="Keep pruning in the background until interrupted."),
    ] = False,
    interval: Annotated[
        str | None,
        typer.Option("--interval", "-i", help="Pause between cycles with --watch (e.g. 30s)."),
    ] = None,
) -> None:
    """Prune FOLDER, oldest files first, under the configured limits.

    Options override the [pruner] section of the configuration file.
    """
    if watch and dry_run:
        print_error("--watch cannot be combined with --dry-run")
        raise typer.Exit(code=1)

    handle = get_registry().folder(folder)
    if not handle.exists():
        print_error(f"Folder not found: {handle}")
        raise typer.Exit(code=1)

    pruner = FolderPruner(handle)
    pruner.configure(require_config().pruner)
    if capacity is not None:
        pruner.capacity = size_option(capacity)
    if min_age is not None:
        pruner.minimum_age = duration_option(min_age)  # type: ignore[assignment]
    if min_usable is not None:
        pruner.minimum_usable_percent = percent_option(min_usable)  # type: ignore[assignment]
    if interval is not None:
        pruner.frequency = duration_option(interval)  # type: ignore[assignment]
    if patterns:
        pruner.matcher = matchers.glob(*patterns)

    if watch:
        _watch(pruner)
        return

    try:
        removed = pruner.prune(dry_run=dry_run)
    except PruneCycleError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_removed(removed, dry_run)


def _watch(pruner: FolderPruner) -> None:
    """Run the pruner thread until Ctrl+C."""
    print_info(f"Pruning {pruner.folder} every {format_duration(pruner.frequency)}. Press Ctrl+C to stop.")
    pruner.start()
    try:
        while pruner.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        print_info("Stopping pruner...")
    finally:
        pruner.stop(timeout=10)
