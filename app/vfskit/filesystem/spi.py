"""Capability interfaces implemented by filesystem backends.

A backend exposes, for a given path, a file service or a folder service.
FileHandle and FolderHandle only ever talk to these protocols, so any object
with the right methods can act as a backend; there is no base class to
inherit from.

Backends that can hand out a real local path additionally implement
LocalPathCapable. Callers that need one check for it explicitly with
``isinstance(service, LocalPathCapable)``.
"""

from __future__ import annotations

from collections.abc import Hashable
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from vfskit.filesystem.path import PathValue


@runtime_checkable
class FileSystemObjectService(Protocol):
    """Operations shared by file and folder services."""

    @property
    def path(self) -> PathValue:
        """Path this service operates on."""
        ...

    def exists(self) -> bool: ...

    def is_file(self) -> bool: ...

    def is_folder(self) -> bool: ...

    def last_modified(self) -> datetime:
        """Last modification time (timezone-aware)."""
        ...

    def created(self) -> datetime:
        """Creation time where the backend knows it, else its best approximation."""
        ...

    def delete(self) -> bool:
        """Delete the object. Returns False if nothing was deleted."""
        ...

    def rename_to(self, target: FileSystemObjectService) -> bool:
        """Rename onto another service of the same backend."""
        ...

    def parent(self) -> FolderService: ...


@runtime_checkable
class FileService(FileSystemObjectService, Protocol):
    """Capability object for a single file."""

    def size(self) -> int:
        """Size in bytes."""
        ...

    def open_for_reading(self) -> BinaryIO: ...

    def open_for_writing(self) -> BinaryIO:
        """Open for writing, truncating any existing content."""
        ...

    def set_last_modified(self, when: datetime) -> bool: ...


@runtime_checkable
class FolderService(FileSystemObjectService, Protocol):
    """Capability object for a folder."""

    def file(self, name: str) -> FileService: ...

    def folder(self, name: str) -> FolderService: ...

    def files(self) -> list[FileService]:
        """Direct child files."""
        ...

    def folders(self) -> list[FolderService]:
        """Direct child folders."""
        ...

    def mkdirs(self) -> bool:
        """Create this folder and any missing parents."""
        ...

    def free_space(self) -> int: ...

    def usable_space(self) -> int:
        """Space available to the current user, in bytes."""
        ...

    def total_space(self) -> int: ...

    def identity(self) -> Hashable | None:
        """Resolved identity of the folder, used to break symlink cycles.

        Returns None when the backend cannot tell; cycle handling is then
        the backend's responsibility.
        """
        ...


@runtime_checkable
class LocalPathCapable(Protocol):
    """Optional extension for services backed by the local filesystem."""

    def local_path(self) -> Path: ...
