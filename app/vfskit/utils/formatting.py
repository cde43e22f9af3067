"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from vfskit.core.theme import get_theme
from vfskit.utils.units import format_duration, format_size

if TYPE_CHECKING:
    from vfskit.filesystem.handles import FileHandle, FolderHandle


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_entry_table(title: str) -> Table:
    """Create a pre-configured table for listing files and folders.

    Args:
        title: Table title.

    Returns:
        Rich Table with Name, Size, Modified and Age columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping for readability
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Size", style="entry.size", justify="right")
    table.add_column("Modified", style="muted")
    table.add_column("Age", style="entry.age", justify="right")
    return table


def format_file_row(
    file: FileHandle, now: datetime | None = None, label: str | None = None
) -> tuple[str, str, str, str]:
    """Format a file as a table row.

    Args:
        file: File to describe.
        now: Reference time for the age column.
        label: Name to show instead of the file name (e.g. a relative path).

    Returns:
        Tuple of (name, size, modified, age) with Rich markup.
    """
    modified = file.last_modified()
    age = max((now or datetime.now(UTC)) - modified, timedelta(0))
    return (
        f"[entry.file]{label or file.name}[/]",
        format_size(file.size()),
        modified.astimezone().strftime("%Y-%m-%d %H:%M"),
        format_duration(age),
    )


def format_folder_row(folder: FolderHandle, label: str | None = None) -> tuple[str, str, str, str]:
    """Format a folder as a table row (size and age are left blank)."""
    return (f"[entry.folder]{label or folder.name}/[/]", "", "", "")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
