"""Unit tests for FileCache."""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from vfskit.filesystem.cache import FileCache
from vfskit.filesystem.errors import BackendOperationError, PartialCopyError
from vfskit.filesystem.handles import FileHandle, FolderHandle
from vfskit.filesystem.pruner import FolderPruner
from vfskit.filesystem.resource import BytesResource


@pytest.fixture
def cache(root: FolderHandle) -> FileCache:
    return FileCache(root.folder("cache"))


class TestAdd:
    """Tests for adding resources."""

    def test_creates_folder(self, root: FolderHandle) -> None:
        FileCache(root.folder("a/b"))
        assert root.folder("a/b").exists()

    def test_folder_that_cannot_be_created(self, root: FolderHandle) -> None:
        root.file("blocker").write_bytes(b"")

        with pytest.raises(BackendOperationError):
            FileCache(root.folder("blocker/cache"))

    def test_add_uses_resource_name(self, cache: FileCache) -> None:
        file = cache.add(BytesResource.from_text("report.csv", "a,b"))

        assert file == cache.file("report.csv")
        assert file.read_text() == "a,b"

    def test_add_as(self, cache: FileCache) -> None:
        file = cache.add_as(BytesResource.from_text("report.csv", "a,b"), "renamed.csv")

        assert file.name == "renamed.csv"
        assert [f.name for f in cache.files()] == ["renamed.csv"]

    def test_add_file_handle(self, cache: FileCache, root: FolderHandle) -> None:
        source = root.file("outside.bin")
        source.write_bytes(b"\x00\x01")

        assert cache.add(source).read_bytes() == b"\x00\x01"

    def test_existing_name_is_returned_unchanged(self, cache: FileCache) -> None:
        """Entries are keyed by name: the first content stays."""
        first = cache.add(BytesResource.from_text("x", "first"))
        second = cache.add(BytesResource.from_text("x", "second"))

        assert first == second
        assert second.read_text() == "first"

    @pytest.mark.parametrize("name", ["", "a/b", "..", ".", "a\\b"])
    def test_rejects_bad_names(self, cache: FileCache, name: str) -> None:
        with pytest.raises(ValueError, match="single path segment"):
            cache.add_as(BytesResource("x", b""), name)

    def test_concurrent_adds_of_same_name(self, cache: FileCache) -> None:
        """Concurrent adds of one name copy once and agree on the result."""
        results: list[FileHandle] = []
        lock = threading.Lock()

        def add(index: int) -> None:
            file = cache.add_as(BytesResource("shared", str(index).encode() * 1000), "shared")
            with lock:
                results.append(file)

        threads = [threading.Thread(target=add, args=(i,)) for i in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 1
        content = cache.file("shared").read_bytes()
        assert content in {str(i).encode() * 1000 for i in range(6)}
        assert [f.name for f in cache.files()] == ["shared"]

    def test_name_locks_are_released(self, cache: FileCache) -> None:
        """Per-name locks do not outlive the adds using them."""
        for index in range(50):
            cache.add_as(BytesResource("x", b"1"), f"file-{index}").delete()

        threads = [
            threading.Thread(target=cache.add_as, args=(BytesResource("x", b"1"), "shared")) for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cache._locks == {}  # pyright: ignore[reportPrivateUsage]
        assert not cache._lock_users  # pyright: ignore[reportPrivateUsage]

    def test_lock_released_when_copy_fails(self, cache: FileCache, root: FolderHandle) -> None:
        with pytest.raises(PartialCopyError):
            cache.add(root.file("missing"))

        assert cache._locks == {}  # pyright: ignore[reportPrivateUsage]


class TestAccess:
    """Tests for file and folder accessors."""

    def test_file_and_folder(self, cache: FileCache) -> None:
        assert cache.file("a").parent() == cache.folder_handle
        assert cache.folder("sub").parent() == cache.folder_handle

    def test_files_excludes_nested(self, cache: FileCache) -> None:
        cache.add(BytesResource("top", b"1"))
        cache.folder("sub").file("nested").write_bytes(b"2")

        assert [f.name for f in cache.files()] == ["top"]


class TestCachePruner:
    """Tests for the cache's pruner."""

    def test_start_and_stop(self, cache: FileCache) -> None:
        pruner = cache.start_pruner(timedelta(milliseconds=10))
        try:
            assert isinstance(pruner, FolderPruner)
            assert pruner.is_running
            assert pruner.folder == cache.folder_handle
            assert cache.start_pruner() is pruner
        finally:
            assert cache.stop_pruner(timeout=5)
        assert not pruner.is_running

    def test_stop_without_pruner(self, cache: FileCache) -> None:
        assert cache.stop_pruner() is True
        assert cache.pruner is None

    def test_pruner_uses_cache_limits(self, root: FolderHandle) -> None:
        cache = FileCache(root.folder("c"), minimum_usable_percent=25.0, maximum_age=timedelta(days=3))

        pruner = cache.start_pruner(timedelta(seconds=60))
        try:
            assert pruner.minimum_usable_percent == 25.0
            assert pruner.minimum_age == timedelta(days=3)
        finally:
            cache.stop_pruner(timeout=5)

    def test_pruner_keeps_default_age_without_maximum(self, cache: FileCache) -> None:
        pruner = cache.start_pruner(timedelta(seconds=60))
        try:
            assert pruner.minimum_age == timedelta(weeks=2)
            assert pruner.minimum_usable_percent == 10.0
        finally:
            cache.stop_pruner(timeout=5)

    def test_cached_files_are_pruned_by_age(
        self, root: FolderHandle, make_file: Callable[..., Path], clock: Callable[[], datetime]
    ) -> None:
        """An old cached file is pruned under capacity pressure; a fresh one stays."""
        cache = FileCache(root.folder("cache"), minimum_usable_percent=0.0, maximum_age=timedelta(days=1))
        make_file("cache/stale", 100, age=timedelta(days=5))
        make_file("cache/fresh", 100, age=timedelta(hours=1))
        pruner = FolderPruner(
            cache.folder_handle,
            capacity=0,
            minimum_age=cache.maximum_age,  # type: ignore[arg-type]
            minimum_usable_percent=cache.minimum_usable_percent,
            clock=clock,
        )

        removed = pruner.prune()

        assert [f.name for f in removed] == ["stale"]
        assert [f.name for f in cache.files()] == ["fresh"]

    def test_fresh_file_pruned_with_zero_minimum_age(self, cache: FileCache) -> None:
        """A just-copied file is older than a zero minimum age and goes at capacity 0."""
        file = cache.add(BytesResource("x.txt", b"cached"))
        time.sleep(0.01)
        pruner = FolderPruner(cache.folder_handle, minimum_age=timedelta(0), capacity=0)

        removed = pruner.prune()

        assert removed == [file]
        assert not file.exists()
