"""Shared types and option parsers for CLI commands."""

from datetime import timedelta
from enum import Enum

import typer

from vfskit.filesystem.registry import BackendRegistry, default_registry
from vfskit.utils.units import parse_bytes, parse_duration, parse_percent


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def get_registry() -> BackendRegistry:
    """Registry used by CLI commands."""
    return default_registry()


def size_option(value: str | None) -> int | None:
    """Parse a size option such as "10GB"."""
    if value is None:
        return None
    try:
        return parse_bytes(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def duration_option(value: str | None) -> timedelta | None:
    """Parse a duration option such as "14d"."""
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def percent_option(value: str | None) -> float | None:
    """Parse a percentage option such as "15%"."""
    if value is None:
        return None
    try:
        return parse_percent(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
