"""Readable resources that can be copied into the filesystem.

FileHandle satisfies the Resource protocol, so any file can be the source of
a copy. BytesResource wraps in-memory content.
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class Resource(Protocol):
    """Something with a name whose bytes can be read."""

    @property
    def name(self) -> str: ...

    def open_for_reading(self) -> BinaryIO: ...

    def size(self) -> int | None:
        """Size in bytes, or None if unknown."""
        ...

    def last_modified(self) -> datetime | None:
        """Modification time, or None if unknown."""
        ...


class BytesResource:
    """In-memory resource.

    Args:
        name: File name the resource is stored under when copied.
        data: Content.
        modified: Optional modification time.
    """

    def __init__(self, name: str, data: bytes, modified: datetime | None = None) -> None:
        self._name = name
        self._data = data
        self._modified = modified

    def __repr__(self) -> str:
        return f"BytesResource({self._name!r}, {len(self._data)} bytes)"

    @classmethod
    def from_text(cls, name: str, text: str, encoding: str = "utf-8") -> BytesResource:
        return cls(name, text.encode(encoding))

    @property
    def name(self) -> str:
        return self._name

    def open_for_reading(self) -> BinaryIO:
        return io.BytesIO(self._data)

    def size(self) -> int:
        return len(self._data)

    def last_modified(self) -> datetime | None:
        return self._modified
