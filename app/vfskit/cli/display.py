"""Shared Rich display functions for listings and copy progress."""

import json
from datetime import UTC, datetime
from types import TracebackType

from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

from vfskit.filesystem.handles import FileHandle, FileList, FolderHandle, FolderList
from vfskit.utils.formatting import (
    console,
    create_entry_table,
    format_file_row,
    format_folder_row,
    print_info,
    print_success,
)
from vfskit.utils.units import format_size


def _label(entry: FileHandle | FolderHandle, base: FolderHandle | None) -> str:
    if base is None:
        return entry.name
    return str(entry.relative_to(base))


def print_entries_table(
    title: str,
    files: FileList,
    folders: FolderList | None = None,
    base: FolderHandle | None = None,
) -> None:
    """Print folders then files as a table, with a size summary.

    Args:
        title: Table title.
        files: Files to list.
        folders: Folders to list before the files.
        base: When given, entries are labelled by their path relative to it.
    """
    now = datetime.now(UTC)
    table = create_entry_table(title)
    for folder in folders or []:
        table.add_row(*format_folder_row(folder, _label(folder, base)))
    for file in files:
        table.add_row(*format_file_row(file, now, _label(file, base)))
    console.print(table)
    console.print(f"\n[dim]{len(files)} files ({format_size(files.total_size())} total)[/dim]")


def print_entries_json(files: FileList, folders: FolderList | None = None) -> None:
    """Print folders and files as JSON."""
    data = [{"path": str(folder.path), "type": "folder"} for folder in folders or []]
    data.extend(
        {
            "path": str(file.path),
            "type": "file",
            "size": file.size(),
            "last_modified": file.last_modified().isoformat(),
        }
        for file in files
    )
    console.print_json(json.dumps(data))


def print_removed(files: FileList, dry_run: bool) -> None:
    """Summarize files removed (or removable) by a prune."""
    if not files:
        print_success("Nothing to prune.")
        return
    verb = "Would remove" if dry_run else "Removed"
    for file in files:
        console.print(f"[entry.removed]{verb}[/] {file}")
    summary = f"{verb} {len(files)} file(s)"
    if dry_run:
        print_info(f"Dry-run: {summary}.")
    else:
        print_success(f"{summary}.")


class RichProgressReporter:
    """ProgressReporter drawing a Rich progress bar for one copy."""

    def __init__(self, description: str) -> None:
        self._description = description
        self._progress = Progress(
            TextColumn("[info]{task.description}[/]"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=console,
            transient=True,
        )
        self._task = self._progress.add_task(description, total=None, start=False)

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self._progress.stop()

    def start(self, total: int | None) -> None:
        self._progress.update(self._task, total=total)
        self._progress.start_task(self._task)
        self._progress.start()

    def advance(self, amount: int) -> None:
        self._progress.advance(self._task, amount)

    def end(self) -> None:
        self._progress.stop()
