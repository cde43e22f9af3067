"""File and folder facades over backend capability objects.

FileHandle and FolderHandle are the public face of the filesystem layer.
Each wraps a capability object obtained lazily from a BackendRegistry and
caches it for its lifetime. Handles compare equal when their paths are equal.

Failure reporting:
- delete, rename_to, mkdirs and set_last_modified return a bool; backend
  OSErrors are logged and reported as False.
- Everything else raises BackendOperationError chained to the backend error.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from vfskit.filesystem.errors import BackendOperationError
from vfskit.filesystem.matchers import Matcher
from vfskit.filesystem.path import CURRENT_FOLDER, PARENT_FOLDER, PathValue, to_path_value
from vfskit.filesystem.spi import (
    FileService,
    FileSystemObjectService,
    FolderService,
    LocalPathCapable,
)

if TYPE_CHECKING:
    from vfskit.filesystem.copy import CopyMode, ProgressReporter
    from vfskit.filesystem.registry import BackendRegistry
    from vfskit.filesystem.resource import Resource

logger = logging.getLogger(__name__)

# Serializes allocation of temporary file and folder names
_temporary_lock = threading.Lock()

_DIGEST_CHUNK_SIZE = 64 * 1024


@contextmanager
def _translated(action: str, target: object) -> Iterator[None]:
    """Translate backend OSErrors into BackendOperationError."""
    try:
        yield
    except OSError as e:
        raise BackendOperationError(f"Unable to {action} {target}: {e}") from e


def _relative_segments(name: str | PathValue) -> tuple[str, ...]:
    relative = PathValue.parse(name) if isinstance(name, str) else name
    if relative.is_absolute:
        msg = f"Expected a relative path, got: {relative}"
        raise ValueError(msg)
    segments = tuple(s for s in relative.normalized().segments if s != CURRENT_FOLDER)
    if PARENT_FOLDER in segments:
        msg = f"Relative path escapes its folder: {relative}"
        raise ValueError(msg)
    return segments


class _FileSystemObject(ABC):
    """State and behaviour shared by FileHandle and FolderHandle."""

    def __init__(
        self,
        path: PathValue | str,
        registry: BackendRegistry,
        service: FileSystemObjectService | None = None,
    ) -> None:
        self._path = to_path_value(path)
        self._registry = registry
        self._service = service

    @abstractmethod
    def _resolve_service(self) -> FileSystemObjectService:
        """Backend service for this path, resolved on first use."""

    @property
    def path(self) -> PathValue:
        return self._path

    @property
    def registry(self) -> BackendRegistry:
        return self._registry

    @property
    def name(self) -> str:
        return self._path.name

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._path.without_trailing_slash() == other._path.without_trailing_slash()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path.without_trailing_slash()))

    def __str__(self) -> str:
        return str(self._path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self._path)!r})"

    def exists(self) -> bool:
        with _translated("check existence of", self):
            return self._resolve_service().exists()

    def last_modified(self) -> datetime:
        with _translated("read modification time of", self):
            return self._resolve_service().last_modified()

    def created(self) -> datetime:
        with _translated("read creation time of", self):
            return self._resolve_service().created()

    def age(self, now: datetime | None = None) -> timedelta:
        """Time elapsed since last modification."""
        return (now or datetime.now(UTC)) - self.last_modified()

    def delete(self) -> bool:
        logger.debug("Deleting %s", self)
        try:
            return self._resolve_service().delete()
        except OSError as e:
            logger.warning("Unable to delete %s: %s", self, e)
            return False

    def parent(self) -> FolderHandle:
        with _translated("resolve parent of", self):
            service = self._resolve_service().parent()
        return FolderHandle(service.path, self._registry, service)

    def local_path(self) -> Path | None:
        """Local filesystem path, if the backend exposes one."""
        service = self._resolve_service()
        if isinstance(service, LocalPathCapable):
            return service.local_path()
        return None

    def relative_to(self, folder: FolderHandle) -> PathValue:
        """Path of this object relative to a containing folder."""
        return self._path.without_trailing_slash().relative_to(folder.path.without_trailing_slash())

    def _rename(self, target: _FileSystemObject) -> bool:
        logger.debug("Renaming %s to %s", self, target)
        try:
            return self._resolve_service().rename_to(target._resolve_service())
        except OSError as e:
            logger.warning("Unable to rename %s to %s: %s", self, target, e)
            return False


class FileHandle(_FileSystemObject):
    """A file on some backend.

    Example:
        >>> registry = default_registry()
        >>> report = registry.file("/tmp/report.txt")
        >>> report.write_text("done")
        >>> report.size()
        4
    """

    def __init__(
        self,
        path: PathValue | str,
        registry: BackendRegistry,
        service: FileService | None = None,
    ) -> None:
        super().__init__(path, registry, service)

    @property
    def service(self) -> FileService:
        """Capability object, created on first access."""
        if self._service is None:
            self._service = self._registry.file_service(self._path)
        return self._service  # type: ignore[return-value]

    def _resolve_service(self) -> FileService:
        return self.service

    def is_file(self) -> bool:
        with _translated("inspect", self):
            return self.service.is_file()

    def is_folder(self) -> bool:
        with _translated("inspect", self):
            return self.service.is_folder()

    def size(self) -> int:
        with _translated("read size of", self):
            return self.service.size()

    def is_non_empty(self) -> bool:
        return self.exists() and self.size() > 0

    def is_older_than(self, other: FileHandle) -> bool:
        return self.last_modified() < other.last_modified()

    def is_newer_than(self, other: FileHandle) -> bool:
        return self.last_modified() > other.last_modified()

    def set_last_modified(self, when: datetime) -> bool:
        try:
            return self.service.set_last_modified(when)
        except OSError as e:
            logger.warning("Unable to set modification time of %s: %s", self, e)
            return False

    def open_for_reading(self) -> BinaryIO:
        with _translated("open for reading", self):
            return self.service.open_for_reading()

    def open_for_writing(self) -> BinaryIO:
        with _translated("open for writing", self):
            return self.service.open_for_writing()

    def read_bytes(self) -> bytes:
        with self.open_for_reading() as stream, _translated("read", self):
            return stream.read()

    def write_bytes(self, data: bytes) -> None:
        """Write content directly (not atomically; see safe_copy_to)."""
        with self.open_for_writing() as stream, _translated("write", self):
            stream.write(data)

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.read_bytes().decode(encoding)

    def write_text(self, text: str, encoding: str = "utf-8") -> None:
        self.write_bytes(text.encode(encoding))

    def rename_to(self, target: FileHandle) -> bool:
        return self._rename(target)

    def digest(self) -> str:
        """SHA-256 of the file content, as hex."""
        sha = hashlib.sha256()
        with self.open_for_reading() as stream, _translated("read", self):
            for chunk in iter(lambda: stream.read(_DIGEST_CHUNK_SIZE), b""):
                sha.update(chunk)
        return sha.hexdigest()

    def has_same_content(self, other: FileHandle) -> bool:
        """Best-effort content comparison: sizes first, then digests."""
        if not (self.exists() and other.exists()):
            return False
        if self.size() != other.size():
            return False
        return self.digest() == other.digest()

    def copy_to(
        self,
        destination: FileHandle,
        mode: CopyMode | None = None,
        reporter: ProgressReporter | None = None,
    ) -> bool:
        """Copy straight into destination (not atomic). Returns False if the mode refused."""
        from vfskit.filesystem.copy import CopyMode, copy_resource

        return copy_resource(self, destination, mode or CopyMode.OVERWRITE, reporter)

    def safe_copy_to(
        self,
        destination: FileHandle,
        mode: CopyMode | None = None,
        reporter: ProgressReporter | None = None,
    ) -> FileHandle:
        """Copy atomically into destination. See vfskit.filesystem.copy.safe_copy."""
        from vfskit.filesystem.copy import CopyMode, safe_copy

        return safe_copy(self, destination, mode or CopyMode.OVERWRITE, reporter)

    def safe_copy_from(
        self,
        resource: Resource,
        mode: CopyMode | None = None,
        reporter: ProgressReporter | None = None,
    ) -> FileHandle:
        from vfskit.filesystem.copy import CopyMode, safe_copy

        return safe_copy(resource, self, mode or CopyMode.OVERWRITE, reporter)


class FolderHandle(_FileSystemObject):
    """A folder on some backend.

    Example:
        >>> registry = default_registry()
        >>> logs = registry.folder("/var/log/app")
        >>> old = logs.nested_files(matchers.older_than(timedelta(days=7)))
    """

    def __init__(
        self,
        path: PathValue | str,
        registry: BackendRegistry,
        service: FolderService | None = None,
    ) -> None:
        super().__init__(path, registry, service)

    @property
    def service(self) -> FolderService:
        """Capability object, created on first access."""
        if self._service is None:
            self._service = self._registry.folder_service(self._path)
        return self._service  # type: ignore[return-value]

    def _resolve_service(self) -> FolderService:
        return self.service

    def is_folder(self) -> bool:
        with _translated("inspect", self):
            return self.service.is_folder()

    def mkdirs(self) -> bool:
        """Create this folder and missing parents. True if it exists afterwards."""
        logger.debug("Creating folder %s", self)
        try:
            return self.service.mkdirs() and self.service.exists()
        except OSError as e:
            logger.warning("Unable to create folder %s: %s", self, e)
            return False

    def ensure_exists(self) -> FolderHandle:
        """Create the folder if needed.

        Raises:
            BackendOperationError: If the folder cannot be created.
        """
        if not self.exists() and not self.mkdirs():
            raise BackendOperationError(f"Unable to create folder {self}")
        return self

    def rename_to(self, target: FolderHandle) -> bool:
        return self._rename(target)

    # === Children ===

    def file(self, name: str | PathValue) -> FileHandle:
        """File at a name or relative path under this folder."""
        segments = _relative_segments(name)
        if not segments:
            msg = f"Not a file name: {name!r}"
            raise ValueError(msg)
        folder = self
        for segment in segments[:-1]:
            folder = folder.folder(segment)
        service = folder.service.file(segments[-1])
        return FileHandle(service.path, self._registry, service)

    def folder(self, name: str | PathValue) -> FolderHandle:
        """Folder at a name or relative path under this folder. "." is this folder."""
        folder = self
        for segment in _relative_segments(name):
            service = folder.service.folder(segment)
            folder = FolderHandle(service.path, self._registry, service)
        return folder

    def files(self, matcher: Matcher | None = None) -> FileList:
        """Direct child files accepted by matcher."""
        files = FileList()
        if not self.exists():
            return files
        with _translated("list files in", self):
            services = self.service.files()
        for service in services:
            file = FileHandle(service.path, self._registry, service)
            if matcher is None or matcher(file):
                files.append(file)
        logger.debug("Files in %s: %d", self, len(files))
        return files

    def folders(self, matcher: Matcher | None = None) -> FolderList:
        """Direct child folders accepted by matcher, sorted by name."""
        folders = FolderList()
        if not self.exists():
            return folders
        with _translated("list folders in", self):
            services = self.service.folders()
        for service in services:
            folder = FolderHandle(service.path, self._registry, service)
            if matcher is None or matcher(folder):
                folders.append(folder)
        folders.sort(key=lambda f: f.name)
        return folders

    def nested_files(self, matcher: Matcher | None = None) -> FileList:
        """All files under this folder, recursively, accepted by matcher."""
        files = FileList()
        for folder in self._walk():
            files.extend(folder.files(matcher))
        logger.debug("Nested files in %s: %d", self, len(files))
        return files

    def nested_folders(self, matcher: Matcher | None = None) -> FolderList:
        """All folders under (not including) this folder accepted by matcher."""
        folders = FolderList()
        for folder in self._walk():
            if folder is not self and (matcher is None or matcher(folder)):
                folders.append(folder)
        return folders

    def _walk(self) -> Iterator[FolderHandle]:
        """Depth-first walk over this folder and its descendants.

        Folders whose backend identity was already visited are skipped, which
        terminates symlink cycles on backends that report identities.
        """
        visited: set[object] = set()
        stack: list[FolderHandle] = [self]
        while stack:
            folder = stack.pop()
            with _translated("inspect", folder):
                identity = folder.service.identity()
            if identity is not None:
                if identity in visited:
                    logger.debug("Skipping already visited folder %s", folder)
                    continue
                visited.add(identity)
            yield folder
            stack.extend(reversed(folder.folders()))

    def is_empty(self) -> bool:
        with _translated("list", self):
            return self.exists() and not self.service.files() and not self.service.folders()

    def size(self) -> int:
        """Total size of all nested files."""
        return self.nested_files().total_size()

    def oldest(self, matcher: Matcher | None = None) -> FileHandle | None:
        """Least recently modified direct child file accepted by matcher."""
        files = self.files(matcher).sorted_oldest_to_newest()
        return files[0] if files else None

    def disk(self) -> Disk:
        return Disk(self)

    # === Bulk removal ===

    def clear_all(self) -> FolderHandle:
        """Delete everything inside this folder, keeping the folder itself."""
        logger.debug("Clearing %s", self)
        for file in self.files():
            if not file.delete():
                logger.warning("Unable to remove %s", file)
        for folder in self.folders():
            folder.clear_all()
            if not folder.delete():
                logger.warning("Unable to remove %s", folder)
        return self

    def clear_all_and_delete(self) -> bool:
        """Delete this folder and everything in it."""
        if not self.exists():
            return False
        self.clear_all()
        return self.delete()

    # === Temporaries ===

    def temporary_file(self, base_name: str, suffix: str = ".tmp") -> FileHandle:
        """Reserve a new, empty, uniquely named file in this folder."""
        with _temporary_lock:
            self.ensure_exists()
            sequence = 0
            while True:
                file = self.file(f"{base_name}-{sequence}{suffix}")
                if not file.exists():
                    break
                sequence += 1
            file.write_bytes(b"")
        return file

    def temporary_folder(self, base_name: str) -> FolderHandle:
        """Create a new, uniquely named folder in this folder."""
        with _temporary_lock:
            sequence = 0
            while True:
                folder = self.folder(f"{base_name}-{sequence}")
                if not folder.exists():
                    break
                sequence += 1
            folder.ensure_exists()
        return folder

    # === Copying ===

    def copy_to(
        self,
        destination: FolderHandle,
        mode: CopyMode | None = None,
        matcher: Matcher | None = None,
        reporter: ProgressReporter | None = None,
    ) -> FileList:
        """Safe-copy matching nested files one by one. See copy.copy_folder."""
        from vfskit.filesystem.copy import CopyMode, copy_folder

        return copy_folder(self, destination, mode or CopyMode.OVERWRITE, matcher, reporter)

    def safe_copy_to(
        self,
        destination: FolderHandle,
        mode: CopyMode | None = None,
        matcher: Matcher | None = None,
        reporter: ProgressReporter | None = None,
    ) -> FolderHandle:
        """Copy the whole tree, publishing it in one rename. See copy.safe_copy_folder."""
        from vfskit.filesystem.copy import CopyMode, safe_copy_folder

        return safe_copy_folder(self, destination, mode or CopyMode.OVERWRITE, matcher, reporter)


class FileList(list[FileHandle]):
    """List of files with size and age helpers."""

    def total_size(self) -> int:
        return sum(file.size() for file in self)

    def sorted_oldest_to_newest(self) -> FileList:
        return FileList(sorted(self, key=lambda file: file.last_modified()))

    def sorted_newest_to_oldest(self) -> FileList:
        return FileList(sorted(self, key=lambda file: file.last_modified(), reverse=True))

    def largest(self) -> FileHandle | None:
        return max(self, key=lambda file: file.size(), default=None)

    def paths(self) -> list[PathValue]:
        return [file.path for file in self]


class FolderList(list[FolderHandle]):
    """List of folders."""

    def paths(self) -> list[PathValue]:
        return [folder.path for folder in self]


class Disk:
    """Space figures for the volume holding a folder."""

    def __init__(self, folder: FolderHandle) -> None:
        self._folder = folder

    def __repr__(self) -> str:
        return f"Disk({str(self._folder)!r})"

    def free_space(self) -> int:
        with _translated("query free space for", self._folder):
            return self._folder.service.free_space()

    def usable_space(self) -> int:
        with _translated("query usable space for", self._folder):
            return self._folder.service.usable_space()

    def total_space(self) -> int:
        with _translated("query total space for", self._folder):
            return self._folder.service.total_space()

    def percent_usable(self) -> float:
        """Usable space as a percentage (0-100) of total space."""
        total = self.total_space()
        if total <= 0:
            return 100.0
        return self.usable_space() / total * 100.0
