"""ls command implementation.

Lists the files and folders of a folder, optionally recursively.
"""

from typing import Annotated

import typer

from vfskit.cli.display import print_entries_json, print_entries_table
from vfskit.cli.types import OutputFormat, get_registry
from vfskit.filesystem import matchers
from vfskit.filesystem.errors import VfsError
from vfskit.filesystem.handles import FolderList
from vfskit.utils.formatting import print_error, print_info


def list_folder(
    folder: Annotated[str, typer.Argument(help="Folder to list.")],
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Include nested files."),
    ] = False,
    patterns: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Only list files whose name matches (repeatable)."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """List the files (and folders) of FOLDER."""
    handle = get_registry().folder(folder)
    matcher = matchers.glob(*patterns) if patterns else None

    try:
        if not handle.exists():
            print_error(f"Folder not found: {handle}")
            raise typer.Exit(code=1)
        if recursive:
            files = handle.nested_files(matcher)
            folders = FolderList()
        else:
            files = handle.files(matcher)
            folders = handle.folders()
    except VfsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        print_entries_json(files, folders)
        return

    if not files and not folders:
        print_info(f"{handle} is empty.")
        return
    print_entries_table(str(handle), files, folders, base=handle if recursive else None)
