"""Copying resources, files and folders.

safe_copy never lets a partially written destination become visible:
content is streamed into a temporary file beside the destination and
published with a single rename. safe_copy_folder does the same for a whole
tree, staging it in a temporary sibling folder.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from vfskit.filesystem.errors import BackendOperationError, DestinationExistsError, PartialCopyError
from vfskit.filesystem.handles import FileHandle, FileList, FolderHandle
from vfskit.filesystem.matchers import Matcher
from vfskit.filesystem.resource import Resource

logger = logging.getLogger(__name__)

BUFFER_SIZE = 64 * 1024


class CopyMode(str, Enum):
    """What to do when the destination already exists."""

    OVERWRITE = "overwrite"
    DO_NOT_OVERWRITE = "do-not-overwrite"
    UPDATE = "update"  # only if missing, different size, or older than the source


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives byte progress while a copy runs."""

    def start(self, total: int | None) -> None:
        """Called once before copying. total is None when the size is unknown."""
        ...

    def advance(self, amount: int) -> None: ...

    def end(self) -> None: ...


class NullProgressReporter:
    """Reporter that ignores progress."""

    def start(self, total: int | None) -> None:
        pass

    def advance(self, amount: int) -> None:
        pass

    def end(self) -> None:
        pass


class _AdvanceOnly:
    """Forwards advance() only, so one reporter can span many file copies."""

    def __init__(self, reporter: ProgressReporter) -> None:
        self._reporter = reporter

    def start(self, total: int | None) -> None:
        pass

    def advance(self, amount: int) -> None:
        self._reporter.advance(amount)

    def end(self) -> None:
        pass


def copy_stream(source: Resource, destination: FileHandle, reporter: ProgressReporter) -> int:
    """Stream all bytes of source into destination.

    Returns:
        Number of bytes copied.
    """
    copied = 0
    reporter.start(source.size())
    try:
        with source.open_for_reading() as reader, destination.open_for_writing() as writer:
            while chunk := reader.read(BUFFER_SIZE):
                writer.write(chunk)
                copied += len(chunk)
                reporter.advance(len(chunk))
    finally:
        reporter.end()
    return copied


def _needs_copy(source: Resource, destination: FileHandle, mode: CopyMode) -> bool:
    """Apply the copy mode to an existing or missing destination.

    Raises:
        DestinationExistsError: DO_NOT_OVERWRITE onto a non-empty destination.
    """
    if mode is CopyMode.OVERWRITE:
        return True
    if mode is CopyMode.DO_NOT_OVERWRITE:
        if destination.is_non_empty():
            raise DestinationExistsError(destination.path)
        return True

    if not destination.exists():
        return True
    size = source.size()
    if size is not None and size != destination.size():
        return True
    modified = source.last_modified()
    if modified is None:
        return size is None
    return destination.last_modified() < modified


def _discard(temporary: FileHandle | FolderHandle) -> None:
    removed = temporary.clear_all_and_delete() if isinstance(temporary, FolderHandle) else temporary.delete()
    if not removed and temporary.exists():
        logger.warning("Unable to remove temporary copy %s", temporary)


def _safe_copy(
    source: Resource,
    destination: FileHandle,
    mode: CopyMode,
    reporter: ProgressReporter,
) -> bool:
    folder = destination.parent().ensure_exists()
    if not _needs_copy(source, destination, mode):
        logger.debug("Skipping %s, destination %s is up to date", source.name, destination)
        return False

    temporary = folder.temporary_file(destination.name)
    logger.debug("Copying %s to %s via %s", source.name, destination, temporary.name)
    try:
        copy_stream(source, temporary, reporter)
    except Exception as e:
        _discard(temporary)
        raise PartialCopyError(source.name, destination.path, str(e)) from e

    # Another writer may have created destination while we streamed
    if mode is CopyMode.DO_NOT_OVERWRITE and destination.is_non_empty():
        _discard(temporary)
        raise DestinationExistsError(destination.path)
    _publish(temporary, destination)
    logger.info("Copied %s to %s", source.name, destination)
    return True


def _publish(temporary: FileHandle, destination: FileHandle) -> None:
    """Rename temporary onto destination.

    Backends whose rename replaces the target atomically (os.replace) publish
    in one step. Otherwise the destination is deleted first and the rename
    retried.
    """
    if temporary.rename_to(destination):
        return
    if destination.exists() and not destination.delete():
        _discard(temporary)
        raise BackendOperationError(f"Unable to replace {destination}")
    if not temporary.rename_to(destination):
        _discard(temporary)
        raise BackendOperationError(f"Unable to move {temporary} to {destination}")


def safe_copy(
    source: Resource,
    destination: FileHandle,
    mode: CopyMode = CopyMode.OVERWRITE,
    reporter: ProgressReporter | None = None,
) -> FileHandle:
    """Copy source into destination atomically.

    Readers of destination see either its previous content or the complete
    new content, never a mixture.

    Args:
        source: Resource (or FileHandle) to read.
        destination: File to create or replace.
        mode: Behaviour when destination exists.
        reporter: Optional progress reporter.

    Returns:
        The destination handle (untouched when UPDATE found it current).

    Raises:
        DestinationExistsError: DO_NOT_OVERWRITE and destination is non-empty.
        PartialCopyError: Reading or writing failed; destination is untouched.
        BackendOperationError: The destination could not be replaced.
    """
    _safe_copy(source, destination, mode, reporter or NullProgressReporter())
    return destination


def copy_resource(
    source: Resource,
    destination: FileHandle,
    mode: CopyMode = CopyMode.OVERWRITE,
    reporter: ProgressReporter | None = None,
) -> bool:
    """Copy straight into destination without a temporary file.

    A failure part way leaves a truncated destination; use safe_copy where
    readers may be watching.

    Returns:
        True if bytes were copied, False if UPDATE found destination current.
    """
    if not _needs_copy(source, destination, mode):
        return False
    try:
        copy_stream(source, destination, reporter or NullProgressReporter())
    except OSError as e:
        # Open failures arrive translated; read and write failures on the streams are OSError
        raise BackendOperationError(f"Unable to copy {source.name} to {destination}: {e}") from e
    return True


def copy_folder(
    source: FolderHandle,
    destination: FolderHandle,
    mode: CopyMode = CopyMode.OVERWRITE,
    matcher: Matcher | None = None,
    reporter: ProgressReporter | None = None,
) -> FileList:
    """Safe-copy every matching nested file to the same relative path.

    Files the mode refuses are skipped. Copied files keep the source's
    modification time.

    Returns:
        Destination handles of the files actually copied.
    """
    reporter = reporter or NullProgressReporter()
    files = source.nested_files(matcher)
    copied = FileList()
    reporter.start(files.total_size())
    try:
        for file in files:
            target = destination.file(file.relative_to(source))
            try:
                if not _safe_copy(file, target, mode, _AdvanceOnly(reporter)):
                    continue
            except DestinationExistsError:
                logger.debug("Not overwriting %s", target)
                continue
            target.set_last_modified(file.last_modified())
            copied.append(target)
    finally:
        reporter.end()
    logger.debug("Copied %d of %d files from %s to %s", len(copied), len(files), source, destination)
    return copied


def safe_copy_folder(
    source: FolderHandle,
    destination: FolderHandle,
    mode: CopyMode = CopyMode.OVERWRITE,
    matcher: Matcher | None = None,
    reporter: ProgressReporter | None = None,
) -> FolderHandle:
    """Copy a folder tree so the destination appears complete or not at all.

    The tree is staged in a hidden temporary sibling of destination. Any
    previous destination is renamed aside, the staged tree is renamed into
    place, and only then is the old tree removed. UPDATE merges into the
    existing destination file by file instead, since only changed files are
    to be replaced.

    Raises:
        DestinationExistsError: DO_NOT_OVERWRITE and destination is non-empty.
        PartialCopyError: Staging failed; destination is untouched.
        BackendOperationError: The staged tree could not be published;
            destination is untouched.
    """
    if mode is CopyMode.DO_NOT_OVERWRITE and destination.exists() and not destination.is_empty():
        raise DestinationExistsError(destination.path)
    if mode is CopyMode.UPDATE and destination.exists():
        copy_folder(source, destination, mode, matcher, reporter)
        return destination

    parent = destination.parent().ensure_exists()
    staging = parent.temporary_folder(f".{destination.name}")
    logger.debug("Staging %s in %s", source, staging)
    try:
        copy_folder(source, staging, CopyMode.OVERWRITE, matcher, reporter)
    except Exception as e:
        _discard(staging)
        raise PartialCopyError(source.path, destination.path, str(e)) from e

    _publish_folder(staging, destination)
    logger.info("Copied folder %s to %s", source, destination)
    return destination


def _publish_folder(staging: FolderHandle, destination: FolderHandle) -> None:
    """Swap staging in for destination with renames only.

    An existing destination is moved to a hidden sibling first and restored
    if the staged tree cannot take its place.
    """
    if not destination.exists():
        if not staging.rename_to(destination):
            _discard(staging)
            raise BackendOperationError(f"Unable to move {staging} to {destination}")
        return

    retired = destination.parent().temporary_folder(f".{destination.name}-old")
    if not destination.rename_to(retired):
        retired.delete()
        _discard(staging)
        raise BackendOperationError(f"Unable to replace folder {destination}")
    if not staging.rename_to(destination):
        if not retired.rename_to(destination):
            logger.error("Unable to restore %s, previous content is in %s", destination, retired)
        _discard(staging)
        raise BackendOperationError(f"Unable to move {staging} to {destination}")
    _discard(retired)
