"""Local disk backend.

Implements the file and folder capability interfaces on top of pathlib,
os and shutil. Boolean mutations log and return False on OSError; metadata
and stream operations let OSError propagate for the handles to translate.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Hashable
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from vfskit.filesystem.path import PathValue
from vfskit.filesystem.spi import FileSystemObjectService, LocalPathCapable

logger = logging.getLogger(__name__)


def _timestamp(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=UTC)


def _created(stat: os.stat_result) -> datetime:
    # st_birthtime exists on macOS/BSD (and Linux on Python 3.12+ where supported)
    birthtime = getattr(stat, "st_birthtime", None)
    return _timestamp(birthtime if birthtime is not None else stat.st_ctime)


def _rename(source: Path, target: FileSystemObjectService) -> bool:
    """Rename a local entry onto another local service."""
    if not isinstance(target, LocalPathCapable):
        logger.warning("Cannot rename %s across filesystems to %s", source, target)
        return False
    try:
        os.replace(source, target.local_path())
    except OSError as e:
        logger.warning("Unable to rename %s to %s: %s", source, target, e)
        return False
    return True


class LocalFile:
    """File capability object for a path on local disk."""

    def __init__(self, path: PathValue) -> None:
        self._path = path
        self._file = path.as_local_path()

    def __repr__(self) -> str:
        return f"LocalFile({str(self._path)!r})"

    def __str__(self) -> str:
        return str(self._path)

    @property
    def path(self) -> PathValue:
        return self._path

    def local_path(self) -> Path:
        return self._file

    def exists(self) -> bool:
        return self._file.exists()

    def is_file(self) -> bool:
        return self._file.is_file()

    def is_folder(self) -> bool:
        return self._file.is_dir()

    def size(self) -> int:
        return self._file.stat().st_size

    def last_modified(self) -> datetime:
        return _timestamp(self._file.stat().st_mtime)

    def created(self) -> datetime:
        return _created(self._file.stat())

    def open_for_reading(self) -> BinaryIO:
        return self._file.open("rb")

    def open_for_writing(self) -> BinaryIO:
        self._file.parent.mkdir(parents=True, exist_ok=True)
        return self._file.open("wb")

    def set_last_modified(self, when: datetime) -> bool:
        try:
            accessed = self._file.stat().st_atime
            os.utime(self._file, (accessed, when.timestamp()))
        except OSError as e:
            logger.warning("Unable to set modification time of %s: %s", self._file, e)
            return False
        return True

    def delete(self) -> bool:
        """Delete the file (or symlink, live or dead)."""
        if not (self._file.exists() or self._file.is_symlink()):
            return False
        try:
            self._file.unlink()
        except OSError as e:
            logger.warning("Unable to delete %s: %s", self._file, e)
            return False
        return True

    def rename_to(self, target: FileSystemObjectService) -> bool:
        return _rename(self._file, target)

    def parent(self) -> LocalFolder:
        return LocalFolder(self._path.parent())


class LocalFolder:
    """Folder capability object for a path on local disk.

    Hidden folders (names starting with ".") are not reported as child
    folders; hidden files are.
    """

    def __init__(self, path: PathValue) -> None:
        self._path = path.without_trailing_slash()
        self._folder = path.as_local_path()

    def __repr__(self) -> str:
        return f"LocalFolder({str(self._path)!r})"

    def __str__(self) -> str:
        return str(self._path)

    @property
    def path(self) -> PathValue:
        return self._path

    def local_path(self) -> Path:
        return self._folder

    def exists(self) -> bool:
        return self._folder.is_dir()

    def is_file(self) -> bool:
        return self._folder.is_file()

    def is_folder(self) -> bool:
        return self._folder.is_dir()

    def last_modified(self) -> datetime:
        return _timestamp(self._folder.stat().st_mtime)

    def created(self) -> datetime:
        return _created(self._folder.stat())

    def file(self, name: str) -> LocalFile:
        return LocalFile(self._path.with_child(name))

    def folder(self, name: str) -> LocalFolder:
        return LocalFolder(self._path.with_child(name))

    def files(self) -> list[LocalFile]:
        if not self._folder.is_dir():
            return []
        return [
            LocalFile(self._path.with_child(entry.name))
            for entry in sorted(self._folder.iterdir())
            if entry.is_file()
        ]

    def folders(self) -> list[LocalFolder]:
        if not self._folder.is_dir():
            return []
        return [
            LocalFolder(self._path.with_child(entry.name))
            for entry in sorted(self._folder.iterdir())
            if entry.is_dir() and not entry.name.startswith(".")
        ]

    def mkdirs(self) -> bool:
        try:
            self._folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Unable to create folder %s: %s", self._folder, e)
            return False
        return True

    def delete(self) -> bool:
        """Delete the folder if it is empty (or is a symlink to a folder)."""
        try:
            if self._folder.is_symlink():
                self._folder.unlink()
                return True
            if not self._folder.is_dir():
                return False
            if any(self._folder.iterdir()):
                logger.warning("Cannot delete non-empty folder %s", self._folder)
                return False
            self._folder.rmdir()
        except OSError as e:
            logger.warning("Unable to delete folder %s: %s", self._folder, e)
            return False
        return True

    def rename_to(self, target: FileSystemObjectService) -> bool:
        return _rename(self._folder, target)

    def parent(self) -> LocalFolder:
        return LocalFolder(self._path.parent())

    def free_space(self) -> int:
        anchor = self._existing_anchor()
        if hasattr(os, "statvfs"):
            stat = os.statvfs(anchor)
            return stat.f_bfree * stat.f_frsize
        return shutil.disk_usage(anchor).free

    def usable_space(self) -> int:
        return shutil.disk_usage(self._existing_anchor()).free

    def total_space(self) -> int:
        return shutil.disk_usage(self._existing_anchor()).total

    def identity(self) -> Hashable | None:
        try:
            stat = self._folder.stat()
        except OSError:
            return None
        return (stat.st_dev, stat.st_ino)

    def _existing_anchor(self) -> Path:
        """Nearest existing ancestor, so disk queries work before mkdirs."""
        anchor = self._folder.absolute()
        while not anchor.exists() and anchor != anchor.parent:
            anchor = anchor.parent
        return anchor


class LocalFileSystem:
    """Provider for paths without a scheme."""

    name = "local"

    def accepts(self, path: PathValue) -> bool:
        return path.scheme is None

    def file_service(self, path: PathValue) -> LocalFile:
        return LocalFile(path)

    def folder_service(self, path: PathValue) -> LocalFolder:
        return LocalFolder(path)
