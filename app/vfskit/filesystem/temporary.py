"""Per-process temporary folders.

Each process gets ``<root>/processes/vfskit-process-<pid>``. The folder is
cleared the first time it is requested, so leftovers from an earlier
process with the same pid never leak in. Folders of type CLEAN_UP_ON_EXIT
are removed by close(); set VFSKIT_KEEP_TEMPORARY_FILES to keep them for
inspection.
"""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from types import TracebackType

from vfskit.core.paths import get_temporary_dir
from vfskit.filesystem.handles import FolderHandle
from vfskit.filesystem.registry import BackendRegistry

logger = logging.getLogger(__name__)

KEEP_TEMPORARY_FILES_ENV = "VFSKIT_KEEP_TEMPORARY_FILES"


class FolderType(str, Enum):
    """Whether a process folder outlives close()."""

    NORMAL = "normal"
    CLEAN_UP_ON_EXIT = "clean-up-on-exit"


def keep_temporary_files() -> bool:
    value = os.environ.get(KEEP_TEMPORARY_FILES_ENV, "")
    return value.strip().lower() not in ("", "0", "false", "no")


class TemporaryFolders:
    """Hands out the temporary folder of the current process.

    Use as a context manager, or call close() during shutdown.

    Args:
        registry: Registry used to resolve the root folder.
        root: Root under which process folders live. Defaults to
            ``<system temp>/vfskit``.
    """

    def __init__(self, registry: BackendRegistry, root: FolderHandle | str | Path | None = None) -> None:
        if isinstance(root, FolderHandle):
            self._root = root
        else:
            self._root = registry.folder(root or get_temporary_dir())
        self._lock = threading.Lock()
        self._folder: FolderHandle | None = None
        self._clean_up = False

    def __enter__(self) -> TemporaryFolders:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def root(self) -> FolderHandle:
        return self._root

    def folder_for_process(self, folder_type: FolderType = FolderType.NORMAL) -> FolderHandle:
        """Temporary folder of this process, created and cleared on first use.

        Raises:
            BackendOperationError: If the folder cannot be created.
        """
        with self._lock:
            if folder_type is FolderType.CLEAN_UP_ON_EXIT:
                self._clean_up = True
            if self._folder is None:
                folder = self._root.folder("processes").folder(f"vfskit-process-{os.getpid()}")
                folder.ensure_exists().clear_all()
                logger.debug("Process temporary folder is %s", folder)
                self._folder = folder
            return self._folder

    def close(self) -> None:
        """Remove the process folder if it was requested as CLEAN_UP_ON_EXIT."""
        with self._lock:
            folder, clean_up = self._folder, self._clean_up
            self._folder = None
            self._clean_up = False
        if folder is None or not clean_up:
            return
        if keep_temporary_files():
            logger.info("Keeping temporary folder %s (%s is set)", folder, KEEP_TEMPORARY_FILES_ENV)
            return
        if not folder.clear_all_and_delete():
            logger.warning("Unable to remove temporary folder %s", folder)
