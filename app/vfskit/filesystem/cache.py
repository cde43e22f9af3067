"""Folder-backed file cache.

Resources are copied into the cache folder once, under their own name or a
chosen one, and later adds of the same name return the cached file. An
optional FolderPruner keeps the folder within disk and age limits.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from vfskit.filesystem.copy import CopyMode, ProgressReporter, safe_copy
from vfskit.filesystem.handles import FileHandle, FileList, FolderHandle
from vfskit.filesystem.pruner import DEFAULT_FREQUENCY, FolderPruner
from vfskit.filesystem.resource import Resource

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_USABLE_PERCENT = 10.0


def _check_filename(filename: str) -> None:
    if not filename or "/" in filename or "\\" in filename or filename in (".", ".."):
        msg = f"Cache file name must be a single path segment: {filename!r}"
        raise ValueError(msg)


class FileCache:
    """Cache of files in a folder, keyed by file name.

    Entries are keyed by name only: adding a different resource under a
    name that is already cached returns the existing file unchanged.

    Args:
        folder: Cache folder. Created if missing.
        minimum_usable_percent: Disk headroom the pruner maintains (0-100).
        maximum_age: Files older than this may be pruned. None keeps the
            pruner default.

    Raises:
        BackendOperationError: If the cache folder cannot be created.
    """

    def __init__(
        self,
        folder: FolderHandle,
        minimum_usable_percent: float = DEFAULT_MINIMUM_USABLE_PERCENT,
        maximum_age: timedelta | None = None,
    ) -> None:
        self._folder = folder.ensure_exists()
        self.minimum_usable_percent = minimum_usable_percent
        self.maximum_age = maximum_age
        self._locks: dict[str, threading.Lock] = {}
        self._lock_users: Counter[str] = Counter()
        self._locks_guard = threading.Lock()
        self._pruner: FolderPruner | None = None

    def __repr__(self) -> str:
        return f"FileCache({str(self._folder)!r})"

    @property
    def folder_handle(self) -> FolderHandle:
        """The cache folder."""
        return self._folder

    @property
    def pruner(self) -> FolderPruner | None:
        return self._pruner

    @contextmanager
    def _locked(self, filename: str) -> Iterator[None]:
        """Hold the lock for filename, dropping it once no add uses it."""
        with self._locks_guard:
            lock = self._locks.setdefault(filename, threading.Lock())
            self._lock_users[filename] += 1
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                self._lock_users[filename] -= 1
                if not self._lock_users[filename]:
                    del self._lock_users[filename]
                    del self._locks[filename]

    def add(
        self,
        resource: Resource,
        mode: CopyMode = CopyMode.OVERWRITE,
        reporter: ProgressReporter | None = None,
    ) -> FileHandle:
        """Cache a resource under its own name."""
        return self.add_as(resource, resource.name, mode, reporter)

    def add_as(
        self,
        resource: Resource,
        filename: str,
        mode: CopyMode = CopyMode.OVERWRITE,
        reporter: ProgressReporter | None = None,
    ) -> FileHandle:
        """Cache a resource under filename.

        Adds of the same filename are serialized; different filenames are
        copied concurrently. The resource is copied only if no file of that
        name is cached yet.

        The lock only covers adds through this FileCache. A file of the same
        name written by another process during the copy is replaced, except
        under DO_NOT_OVERWRITE, which checks again before publishing.

        Returns:
            The cached file.

        Raises:
            ValueError: If filename is not a single path segment.
            DestinationExistsError: DO_NOT_OVERWRITE and another writer
                created filename during the copy.
        """
        _check_filename(filename)
        with self._locked(filename):
            file = self._folder.file(filename)
            if file.exists():
                logger.debug("Cache hit for %s", filename)
                return file
            logger.debug("Caching %s as %s", resource.name, file)
            return safe_copy(resource, file, mode, reporter)

    def file(self, name: str) -> FileHandle:
        return self._folder.file(name)

    def folder(self, name: str) -> FolderHandle:
        return self._folder.folder(name)

    def files(self) -> FileList:
        """Files currently in the cache folder (not nested)."""
        return self._folder.files()

    def start_pruner(self, frequency: timedelta = DEFAULT_FREQUENCY) -> FolderPruner:
        """Start a pruner on the cache folder and return it.

        The caller owns the pruner's lifetime; stop it with stop_pruner().
        Calling again while a pruner is running returns that pruner.
        """
        if self._pruner is not None and self._pruner.is_running:
            return self._pruner
        pruner = FolderPruner(
            self._folder,
            frequency,
            minimum_usable_percent=self.minimum_usable_percent,
        )
        if self.maximum_age is not None:
            pruner.minimum_age = self.maximum_age
        pruner.start()
        self._pruner = pruner
        return pruner

    def stop_pruner(self, timeout: float | timedelta | None = None) -> bool:
        """Stop the cache pruner if one was started.

        Returns:
            True if no pruner is left running.
        """
        if self._pruner is None:
            return True
        return self._pruner.stop(timeout)
