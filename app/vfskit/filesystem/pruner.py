"""Background removal of old files from a folder.

A FolderPruner periodically looks at every nested file of its folder,
oldest first, and deletes files while the folder is over capacity or the
disk is short of usable space, as long as each file is older than the
minimum age.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from vfskit.filesystem.errors import PruneCycleError
from vfskit.filesystem.handles import FileHandle, FileList, FolderHandle
from vfskit.filesystem.matchers import Matcher, from_patterns, match_all

if TYPE_CHECKING:
    from vfskit.core.config import PrunerSettings

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = timedelta(seconds=30)
DEFAULT_MINIMUM_AGE = timedelta(weeks=2)
DEFAULT_MINIMUM_USABLE_PERCENT = 15.0

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PrunerState(str, Enum):
    """Lifecycle state of a FolderPruner."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True, slots=True)
class _Policy:
    """Policy values read once at the start of a cycle."""

    matcher: Matcher
    minimum_age: timedelta
    minimum_usable_percent: float
    capacity: int | None


class FolderPruner:
    """Deletes old files from a folder under capacity or disk pressure.

    Policy fields may be changed from any thread while the pruner runs;
    a cycle in progress keeps the values it started with.

    Subclasses can refine the decision through the age(), can_remove() and
    on_file_removed() hooks.

    Args:
        folder: Folder to prune (nested files included).
        frequency: Pause between cycles.
        matcher: Selects the files eligible for removal.
        minimum_age: Files must be older than this to be removed.
        minimum_usable_percent: Prune while usable disk space is below this
            percentage (0-100).
        capacity: Prune while the matched files total more than this many
            bytes. None means unbounded.
        clock: Supplies the current time for age computation.

    Example:
        >>> pruner = FolderPruner(registry.folder("/var/cache/app"), capacity=10 * 1024**3)
        >>> pruner.start()
        >>> ...
        >>> pruner.stop(timeout=5)
    """

    def __init__(
        self,
        folder: FolderHandle,
        frequency: timedelta = DEFAULT_FREQUENCY,
        *,
        matcher: Matcher | None = None,
        minimum_age: timedelta = DEFAULT_MINIMUM_AGE,
        minimum_usable_percent: float = DEFAULT_MINIMUM_USABLE_PERCENT,
        capacity: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._folder = folder
        self._lock = threading.Lock()
        self._frequency = frequency
        self._matcher = matcher or match_all()
        self._minimum_age = minimum_age
        self._minimum_usable_percent = minimum_usable_percent
        self._capacity = capacity
        self._clock = clock or _utc_now
        self._state = PrunerState.STOPPED
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    def __repr__(self) -> str:
        return f"FolderPruner({str(self._folder)!r}, state={self._state.value})"

    @property
    def folder(self) -> FolderHandle:
        return self._folder

    @property
    def state(self) -> PrunerState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is PrunerState.RUNNING

    # === Policy ===

    @property
    def frequency(self) -> timedelta:
        with self._lock:
            return self._frequency

    @frequency.setter
    def frequency(self, value: timedelta) -> None:
        with self._lock:
            self._frequency = value

    @property
    def matcher(self) -> Matcher:
        with self._lock:
            return self._matcher

    @matcher.setter
    def matcher(self, value: Matcher) -> None:
        with self._lock:
            self._matcher = value

    @property
    def minimum_age(self) -> timedelta:
        with self._lock:
            return self._minimum_age

    @minimum_age.setter
    def minimum_age(self, value: timedelta) -> None:
        with self._lock:
            self._minimum_age = value

    @property
    def minimum_usable_percent(self) -> float:
        with self._lock:
            return self._minimum_usable_percent

    @minimum_usable_percent.setter
    def minimum_usable_percent(self, value: float) -> None:
        if not 0 <= value <= 100:
            msg = f"Percentage must be between 0 and 100, got {value}"
            raise ValueError(msg)
        with self._lock:
            self._minimum_usable_percent = value

    @property
    def capacity(self) -> int | None:
        with self._lock:
            return self._capacity

    @capacity.setter
    def capacity(self, value: int | None) -> None:
        with self._lock:
            self._capacity = value

    def configure(self, settings: PrunerSettings) -> None:
        """Apply a [pruner] configuration block."""
        with self._lock:
            self._frequency = settings.frequency
            self._minimum_age = settings.minimum_age
            self._minimum_usable_percent = settings.minimum_usable_percent
            self._capacity = settings.capacity
            self._matcher = from_patterns(settings.include, settings.exclude)

    def _policy(self) -> _Policy:
        with self._lock:
            return _Policy(
                matcher=self._matcher,
                minimum_age=self._minimum_age,
                minimum_usable_percent=self._minimum_usable_percent,
                capacity=self._capacity,
            )

    # === Lifecycle ===

    def start(self) -> None:
        """Start pruning in a daemon thread. Does nothing if already running.

        A worker left finishing its last cycle by a timed-out stop() is
        waited for first, so cycles never overlap.
        """
        with self._lock:
            if self._state is PrunerState.RUNNING:
                logger.debug("Pruner for %s is already running", self._folder)
                return
            previous = self._thread
        if previous is not None and previous.is_alive():
            logger.debug("Waiting for the previous pruner worker for %s", self._folder)
            previous.join()

        with self._lock:
            if self._state is PrunerState.RUNNING:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name=f"FolderPruner-{self._folder.name or 'root'}",
                daemon=True,
            )
            self._state = PrunerState.RUNNING
            self._thread.start()
        logger.debug("Started pruner for %s", self._folder)

    def stop(self, timeout: float | timedelta | None = None) -> bool:
        """Signal the worker to stop and wait for it.

        A cycle in progress is allowed to complete. After a timeout the
        worker is still tracked; call stop() again to keep waiting.

        Args:
            timeout: Maximum wait (seconds or timedelta). None waits forever.

        Returns:
            True if the worker has finished, False if it is still running
            after the timeout.
        """
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._state = PrunerState.STOPPED
        if thread is None or stop_event is None:
            return True

        stop_event.set()
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Pruner for %s did not stop within %ss", self._folder, timeout)
            return False
        with self._lock:
            if self._thread is thread:
                self._thread = None
                self._stop_event = None
        logger.debug("Stopped pruner for %s", self._folder)
        return True

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.prune()
            except PruneCycleError:
                logger.exception("Folder pruner cycle failed for %s", self._folder)
            stop_event.wait(self.frequency.total_seconds())

    # === Pruning ===

    def prune(self, dry_run: bool = False) -> FileList:
        """Run one pruning cycle on the calling thread.

        Args:
            dry_run: Report what would be removed without deleting.

        Returns:
            Files removed (or, in a dry run, that would be removed).

        Raises:
            PruneCycleError: If the cycle failed.
        """
        policy = self._policy()
        try:
            return self._prune(policy, dry_run)
        except Exception as e:
            raise PruneCycleError(f"Unable to prune {self._folder}: {e}") from e

    def _prune(self, policy: _Policy, dry_run: bool) -> FileList:
        files = self._folder.nested_files(policy.matcher).sorted_oldest_to_newest()
        total = files.total_size()
        disk = self._folder.disk()
        removed = FileList()

        for file in files:
            over_capacity = policy.capacity is not None and total > policy.capacity
            if not (over_capacity or disk.percent_usable() < policy.minimum_usable_percent):
                continue
            if self.age(file) <= policy.minimum_age or not self.can_remove(file, files):
                continue

            size = file.size()
            if dry_run:
                logger.info("Pruner would remove %s", file)
                removed.append(file)
            else:
                self.on_file_removed(file)
                if file.delete():
                    removed.append(file)
            # Counted as freed even when the delete failed
            total -= size

        logger.debug("Pruned %d of %d files in %s", len(removed), len(files), self._folder)
        return removed

    # === Hooks ===

    def age(self, file: FileHandle) -> timedelta:
        """Age used to decide whether a file is old enough to remove."""
        return file.age(self._clock())

    def can_remove(self, file: FileHandle, files: FileList) -> bool:
        """Final veto on removing a file. Always True here."""
        return True

    def on_file_removed(self, file: FileHandle) -> None:
        """Called just before a file is deleted."""
        logger.warning("Folder pruner removing %s", file)
