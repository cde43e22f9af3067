"""Human-readable sizes, durations and percentages.

Used by configuration and CLI options, e.g. ``capacity = "10GB"`` or
``--min-age 2w``.
"""

import re
from datetime import timedelta

_SIZE_PATTERN = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[A-Za-z]*)\s*$")
_DURATION_PART = re.compile(r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|[smhdw])", re.IGNORECASE)

_SIZE_UNITS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1000,
    "KIB": 1024,
    "M": 1024**2,
    "MB": 1000**2,
    "MIB": 1024**2,
    "G": 1024**3,
    "GB": 1000**3,
    "GIB": 1024**3,
    "T": 1024**4,
    "TB": 1000**4,
    "TIB": 1024**4,
}

_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


def parse_bytes(text: str | int | float) -> int:
    """Parse a size such as "512", "1.5MB" or "10GiB".

    KB/MB/GB/TB are decimal; K/M/G/T and KiB/MiB/GiB/TiB are binary.

    Raises:
        ValueError: If the text is not a size.
    """
    if isinstance(text, int | float):
        if text < 0:
            msg = f"Size cannot be negative: {text}"
            raise ValueError(msg)
        return int(text)
    if not isinstance(text, str):
        msg = f"Invalid size: {text!r}"
        raise ValueError(msg)
    match = _SIZE_PATTERN.match(text)
    unit = match["unit"].upper() if match else None
    if match is None or unit not in _SIZE_UNITS:
        msg = f"Invalid size: {text!r}"
        raise ValueError(msg)
    return int(float(match["value"]) * _SIZE_UNITS[unit])


def format_size(size: int) -> str:
    """Format a byte count with binary units, e.g. "1.5 MiB"."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(value) < 1024 or unit == "TiB":
            return f"{int(value)} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def parse_duration(text: str | int | float) -> timedelta:
    """Parse a duration such as "30s", "14d" or "1h30m". Bare numbers are seconds.

    Raises:
        ValueError: If the text is not a duration.
    """
    if isinstance(text, int | float):
        return timedelta(seconds=text)
    if not isinstance(text, str):
        msg = f"Invalid duration: {text!r}"
        raise ValueError(msg)
    stripped = text.strip()
    if re.fullmatch(r"\d+(?:\.\d+)?", stripped):
        return timedelta(seconds=float(stripped))

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(stripped):
        if stripped[position : match.start()].strip():
            break
        total += float(match["value"]) * _DURATION_UNITS[match["unit"].lower()]
        position = match.end()
    if position == 0 or stripped[position:].strip():
        msg = f"Invalid duration: {text!r}"
        raise ValueError(msg)
    return total


def format_duration(duration: timedelta) -> str:
    """Format a duration in the largest units that divide it, e.g. "2w", "1m30s", "1d12h"."""
    seconds = int(duration.total_seconds())
    if seconds == 0:
        return "0s"
    parts = []
    for unit, size in (("w", 604800), ("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts)


def parse_percent(text: str | int | float) -> float:
    """Parse a percentage such as "15", "15%" or 12.5.

    Raises:
        ValueError: If the value is not a number between 0 and 100.
    """
    if isinstance(text, str):
        stripped = text.strip().removesuffix("%").strip()
        try:
            value = float(stripped)
        except ValueError as e:
            msg = f"Invalid percentage: {text!r}"
            raise ValueError(msg) from e
    elif isinstance(text, int | float):
        value = float(text)
    else:
        msg = f"Invalid percentage: {text!r}"
        raise ValueError(msg)
    if not 0 <= value <= 100:
        msg = f"Percentage must be between 0 and 100: {text!r}"
        raise ValueError(msg)
    return value
