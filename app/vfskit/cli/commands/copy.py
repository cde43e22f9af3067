"""copy command implementation.

Copies a file or a folder tree. File copies are always atomic; folder
copies are atomic per file, or as a whole with --atomic-folder.
"""

from typing import Annotated

import typer

from vfskit.cli.display import RichProgressReporter
from vfskit.cli.types import get_registry
from vfskit.filesystem.copy import CopyMode, copy_folder, safe_copy, safe_copy_folder
from vfskit.filesystem.errors import DestinationExistsError, VfsError
from vfskit.utils.formatting import print_error, print_info, print_success


def copy_entry(
    source: Annotated[str, typer.Argument(help="File or folder to copy.")],
    destination: Annotated[str, typer.Argument(help="Destination file or folder.")],
    mode: Annotated[
        CopyMode,
        typer.Option("--mode", "-m", help="What to do when the destination exists.", case_sensitive=False),
    ] = CopyMode.OVERWRITE,
    atomic_folder: Annotated[
        bool,
        typer.Option("--atomic-folder", help="Publish a folder copy in one step."),
    ] = False,
) -> None:
    """Copy SOURCE to DESTINATION without exposing partial content."""
    registry = get_registry()
    source_file = registry.file(source)
    source_folder = registry.folder(source)

    try:
        with RichProgressReporter(f"Copying {source_file.name}") as reporter:
            if source_file.is_file():
                target = registry.file(destination)
                if mode is CopyMode.UPDATE and target.exists() and target.has_same_content(source_file):
                    print_info(f"{target} is up to date.")
                    return
                safe_copy(source_file, target, mode, reporter)
                print_success(f"Copied {source_file} to {target}")
            elif source_folder.exists():
                target_folder = registry.folder(destination)
                if atomic_folder:
                    safe_copy_folder(source_folder, target_folder, mode, reporter=reporter)
                    print_success(f"Copied {source_folder} to {target_folder}")
                else:
                    copied = copy_folder(source_folder, target_folder, mode, reporter=reporter)
                    print_success(f"Copied {len(copied)} file(s) to {target_folder}")
            else:
                print_error(f"Source not found: {source}")
                raise typer.Exit(code=1)
    except DestinationExistsError as e:
        print_error(f"{e} (use --mode overwrite to replace it)")
        raise typer.Exit(code=1) from e
    except VfsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
