"""Backend provider registry.

The registry maps a path to the provider that can serve it. It is an
ordinary object owned by the application: build one with
``default_registry()`` (local disk only) or construct an empty one and
register providers explicitly.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from vfskit.filesystem.errors import UnresolvedBackendError
from vfskit.filesystem.local import LocalFileSystem
from vfskit.filesystem.path import PathValue, to_path_value
from vfskit.filesystem.spi import FileService, FolderService

if TYPE_CHECKING:
    from vfskit.filesystem.handles import FileHandle, FolderHandle

logger = logging.getLogger(__name__)


@runtime_checkable
class FileSystemProvider(Protocol):
    """A backend able to produce capability objects for the paths it accepts."""

    @property
    def name(self) -> str: ...

    def accepts(self, path: PathValue) -> bool:
        """Whether this provider serves the given path form."""
        ...

    def file_service(self, path: PathValue) -> FileService: ...

    def folder_service(self, path: PathValue) -> FolderService: ...


class BackendRegistry:
    """Ordered list of filesystem providers.

    Resolution tries providers in registration order and returns the first
    that accepts the path.

    Example:
        >>> registry = default_registry()
        >>> folder = registry.folder("/var/cache/app")
        >>> folder.files()
    """

    def __init__(self, providers: Iterable[FileSystemProvider] = ()) -> None:
        self._lock = threading.Lock()
        self._providers: list[FileSystemProvider] = list(providers)

    @property
    def providers(self) -> tuple[FileSystemProvider, ...]:
        """Registered providers in resolution order."""
        with self._lock:
            return tuple(self._providers)

    def register(self, provider: FileSystemProvider) -> None:
        """Append a provider. Earlier registrations win on overlap."""
        with self._lock:
            self._providers.append(provider)
        logger.debug("Registered filesystem provider %s", provider.name)

    def resolve(self, path: PathValue) -> FileSystemProvider:
        """Find the provider for a path.

        Args:
            path: Path to resolve.

        Returns:
            First provider that accepts the path.

        Raises:
            UnresolvedBackendError: If no provider accepts the path.
        """
        for provider in self.providers:
            if provider.accepts(path):
                return provider
        raise UnresolvedBackendError(path)

    def file_service(self, path: PathValue) -> FileService:
        return self.resolve(path).file_service(path)

    def folder_service(self, path: PathValue) -> FolderService:
        return self.resolve(path).folder_service(path)

    def file(self, path: PathValue | str | os.PathLike[str]) -> FileHandle:
        """Create a FileHandle for a path served by this registry."""
        from vfskit.filesystem.handles import FileHandle

        return FileHandle(to_path_value(path), self)

    def folder(self, path: PathValue | str | os.PathLike[str]) -> FolderHandle:
        """Create a FolderHandle for a path served by this registry."""
        from vfskit.filesystem.handles import FolderHandle

        return FolderHandle(to_path_value(path), self)


def default_registry() -> BackendRegistry:
    """Build a new registry containing the local filesystem provider."""
    return BackendRegistry([LocalFileSystem()])
