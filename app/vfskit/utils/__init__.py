"""Utility modules for vfskit.

This module exports commonly used utility functions.
"""

from vfskit.utils.formatting import (
    console,
    create_entry_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from vfskit.utils.units import format_duration, format_size, parse_bytes, parse_duration, parse_percent

__all__ = [
    "console",
    "create_entry_table",
    "err_console",
    "format_duration",
    "format_size",
    "parse_bytes",
    "parse_duration",
    "parse_percent",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
