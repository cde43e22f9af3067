"""Virtual filesystem layer.

Handles (FileHandle, FolderHandle) resolved through a BackendRegistry,
atomic copying, a folder-backed file cache and a folder pruner.
"""

from vfskit.filesystem.cache import FileCache
from vfskit.filesystem.copy import (
    CopyMode,
    NullProgressReporter,
    ProgressReporter,
    copy_folder,
    safe_copy,
    safe_copy_folder,
)
from vfskit.filesystem.errors import (
    BackendOperationError,
    DestinationExistsError,
    PartialCopyError,
    PruneCycleError,
    UnresolvedBackendError,
    VfsError,
)
from vfskit.filesystem.handles import Disk, FileHandle, FileList, FolderHandle, FolderList
from vfskit.filesystem.path import PathValue
from vfskit.filesystem.pruner import FolderPruner, PrunerState
from vfskit.filesystem.registry import BackendRegistry, FileSystemProvider, default_registry
from vfskit.filesystem.resource import BytesResource, Resource
from vfskit.filesystem.temporary import FolderType, TemporaryFolders

__all__ = [
    "BackendOperationError",
    "BackendRegistry",
    "BytesResource",
    "CopyMode",
    "DestinationExistsError",
    "Disk",
    "FileCache",
    "FileHandle",
    "FileList",
    "FileSystemProvider",
    "FolderHandle",
    "FolderList",
    "FolderPruner",
    "FolderType",
    "NullProgressReporter",
    "PartialCopyError",
    "PathValue",
    "ProgressReporter",
    "PruneCycleError",
    "PrunerState",
    "Resource",
    "TemporaryFolders",
    "UnresolvedBackendError",
    "VfsError",
    "copy_folder",
    "default_registry",
    "safe_copy",
    "safe_copy_folder",
]
