"""cache command implementation.

Adds files to, lists and prunes the cache folder named in the
configuration file.
"""

from typing import Annotated

import typer

from vfskit.cli.display import RichProgressReporter, print_entries_table, print_removed
from vfskit.cli.types import get_registry
from vfskit.core.config import VfsConfig, require_config
from vfskit.filesystem.cache import FileCache
from vfskit.filesystem.copy import CopyMode
from vfskit.filesystem.errors import VfsError
from vfskit.filesystem.pruner import FolderPruner
from vfskit.utils.formatting import print_error, print_info, print_success

app = typer.Typer(
    help="Manage the file cache.",
    no_args_is_help=True,
)


def _open_cache(config: VfsConfig) -> FileCache:
    try:
        return FileCache(
            get_registry().folder(config.cache.folder),
            minimum_usable_percent=config.cache.minimum_usable_percent,
            maximum_age=config.cache.maximum_age,
        )
    except VfsError as e:
        print_error(f"Unable to open cache {config.cache.folder}: {e}")
        raise typer.Exit(code=1) from e


@app.command()
def add(
    resource: Annotated[str, typer.Argument(help="File to add to the cache.")],
    name: Annotated[
        str | None,
        typer.Option("--as", help="Name to cache the file under."),
    ] = None,
    mode: Annotated[
        CopyMode,
        typer.Option("--mode", "-m", help="Copy mode.", case_sensitive=False),
    ] = CopyMode.OVERWRITE,
) -> None:
    """Copy RESOURCE into the cache unless a file of that name is cached."""
    cache = _open_cache(require_config())
    source = get_registry().file(resource)
    if not source.is_file():
        print_error(f"File not found: {resource}")
        raise typer.Exit(code=1)

    filename = name or source.name
    if cache.file(filename).exists():
        print_info(f"Already cached: {cache.file(filename)}")
        return

    try:
        with RichProgressReporter(f"Caching {filename}") as reporter:
            cached = cache.add_as(source, filename, mode, reporter)
    except (VfsError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Cached {source} as {cached}")


@app.command("ls")
def list_cache() -> None:
    """List cached files."""
    cache = _open_cache(require_config())
    files = cache.files()
    if not files:
        print_info(f"Cache {cache.folder_handle} is empty.")
        return
    print_entries_table(f"Cache ({cache.folder_handle})", files)


@app.command()
def prune(
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be removed."),
    ] = False,
) -> None:
    """Run one pruning cycle on the cache with the configured limits."""
    config = require_config()
    cache = _open_cache(config)
    pruner = FolderPruner(cache.folder_handle)
    pruner.configure(config.pruner)
    pruner.minimum_usable_percent = cache.minimum_usable_percent
    if cache.maximum_age is not None:
        pruner.minimum_age = cache.maximum_age

    try:
        removed = pruner.prune(dry_run=dry_run)
    except VfsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_removed(removed, dry_run)
