"""Unit tests for FileHandle, FolderHandle, FileList and Disk."""

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest
from vfskit.filesystem import matchers
from vfskit.filesystem.errors import BackendOperationError
from vfskit.filesystem.handles import (
    FileHandle,
    FileList,
    FolderHandle,
    _FileSystemObject,  # pyright: ignore[reportPrivateUsage]
)
from vfskit.filesystem.local import LocalFile
from vfskit.filesystem.registry import BackendRegistry


class TestIdentity:
    """Tests for handle equality and hashing."""

    def test_equal_by_path(self, registry: BackendRegistry, tmp_path: Path) -> None:
        """Handles for the same path are equal and hash alike."""
        a = registry.file(tmp_path / "x")
        b = registry.file(str(tmp_path / "x"))

        assert a == b
        assert len({a, b}) == 1

    def test_trailing_slash_ignored(self, registry: BackendRegistry, tmp_path: Path) -> None:
        """Folder equality ignores a trailing slash."""
        assert registry.folder(f"{tmp_path}/sub/") == registry.folder(tmp_path / "sub")

    def test_file_never_equals_folder(self, registry: BackendRegistry, tmp_path: Path) -> None:
        assert registry.file(tmp_path) != registry.folder(tmp_path)

    def test_service_is_cached(self, registry: BackendRegistry, tmp_path: Path) -> None:
        """The capability object is created once, on first use."""
        file = registry.file(tmp_path / "x")

        with patch.object(registry, "file_service", wraps=registry.file_service) as spy:
            file.exists()
            file.exists()

        assert spy.call_count == 1

    def test_base_is_abstract(self, registry: BackendRegistry, tmp_path: Path) -> None:
        """The shared base cannot be instantiated directly."""
        with pytest.raises(TypeError):
            _FileSystemObject(tmp_path, registry)  # type: ignore[abstract]


class TestFileHandle:
    """Tests for FileHandle."""

    def test_text_round_trip(self, root: FolderHandle) -> None:
        """write_text then read_text returns the text."""
        file = root.file("notes.txt")
        file.write_text("hello")

        assert file.read_text() == "hello"
        assert file.size() == 5
        assert file.is_non_empty()

    def test_missing_file_size_raises(self, root: FolderHandle) -> None:
        """Non-boolean failures become BackendOperationError."""
        with pytest.raises(BackendOperationError, match="read size"):
            root.file("missing").size()

    def test_delete_failure_is_false(self, root: FolderHandle) -> None:
        """Boolean failures are logged and returned as False."""
        file = root.file("x")
        file.write_bytes(b"1")

        with patch.object(LocalFile, "delete", side_effect=OSError("busy")):
            assert file.delete() is False
        assert file.exists()

    def test_age_and_order(
        self, root: FolderHandle, make_file: Callable[..., Path], clock: Callable[[], datetime]
    ) -> None:
        """age() is measured from last modification."""
        make_file("old", 1, age=timedelta(days=3))
        make_file("new", 1, age=timedelta(days=1))
        old, new = root.file("old"), root.file("new")

        assert old.age(clock()) == timedelta(days=3)
        assert old.is_older_than(new)
        assert new.is_newer_than(old)

    def test_relative_to(self, root: FolderHandle) -> None:
        file = root.folder("a").file("b.txt")
        assert str(file.relative_to(root)) == "a/b.txt"

    def test_local_path(self, root: FolderHandle, tmp_path: Path) -> None:
        assert root.file("x").local_path() == tmp_path / "x"

    def test_has_same_content(self, root: FolderHandle) -> None:
        """Same size and digest means same content."""
        a, b, c, d = (root.file(name) for name in "abcd")
        a.write_bytes(b"same")
        b.write_bytes(b"same")
        c.write_bytes(b"diff")
        d.write_bytes(b"longer")

        assert a.has_same_content(b)
        assert not a.has_same_content(c)
        assert not a.has_same_content(d)
        assert not a.has_same_content(root.file("missing"))

    def test_set_last_modified(self, root: FolderHandle) -> None:
        file = root.file("x")
        file.write_bytes(b"1")
        when = datetime(2021, 5, 5, tzinfo=UTC)

        assert file.set_last_modified(when)
        assert file.last_modified() == when

    def test_rename(self, root: FolderHandle) -> None:
        source = root.file("a")
        source.write_text("content")
        target = root.file("b")

        assert source.rename_to(target)
        assert not source.exists()
        assert target.read_text() == "content"


class TestFolderHandle:
    """Tests for FolderHandle."""

    def test_file_accepts_relative_path(self, root: FolderHandle, tmp_path: Path) -> None:
        """file() resolves slash-separated relative paths."""
        file = root.file("a/b/c.txt")

        assert file.local_path() == tmp_path / "a" / "b" / "c.txt"
        assert file.parent() == root.folder("a/b")

    def test_file_rejects_escaping_paths(self, root: FolderHandle) -> None:
        with pytest.raises(ValueError, match="escapes"):
            root.file("../outside")

    def test_dot_folder_is_self(self, root: FolderHandle) -> None:
        assert root.folder(".") == root

    def test_files_and_folders(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        """files() lists direct children only; folders() sorts by name."""
        make_file("a.txt")
        make_file("b.log")
        make_file("z/inner.txt")
        make_file("m/inner.txt")

        assert [f.name for f in root.files()] == ["a.txt", "b.log"]
        assert [f.name for f in root.files(matchers.glob("*.txt"))] == ["a.txt"]
        assert [f.name for f in root.folders()] == ["m", "z"]

    def test_nested(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        """nested_files and nested_folders descend recursively."""
        make_file("top.txt")
        make_file("a/one.txt")
        make_file("a/b/two.txt")

        assert sorted(f.name for f in root.nested_files()) == ["one.txt", "top.txt", "two.txt"]
        assert sorted(f.name for f in root.nested_folders()) == ["a", "b"]

    def test_nested_files_terminates_on_symlink_cycle(
        self, root: FolderHandle, tmp_path: Path, make_file: Callable[..., Path]
    ) -> None:
        """Folders already visited are skipped."""
        make_file("a/file.txt")
        (tmp_path / "a" / "loop").symlink_to(tmp_path)

        names = [f.name for f in root.nested_files()]

        assert names == ["file.txt"]

    def test_missing_folder(self, root: FolderHandle) -> None:
        """A missing folder is empty rather than an error."""
        missing = root.folder("missing")

        assert missing.files() == []
        assert missing.nested_files() == []
        assert not missing.is_empty()

    def test_is_empty_and_size(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        assert root.is_empty()
        make_file("a", 10)
        make_file("sub/b", 5)

        assert not root.is_empty()
        assert root.size() == 15

    def test_oldest(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        make_file("new", age=timedelta(days=1))
        make_file("old", age=timedelta(days=9))

        assert root.oldest() == root.file("old")
        assert root.folder("missing").oldest() is None

    def test_ensure_exists(self, root: FolderHandle) -> None:
        folder = root.folder("x/y").ensure_exists()
        assert folder.exists()

    def test_ensure_exists_failure(self, root: FolderHandle) -> None:
        """A folder that cannot be created raises."""
        root.file("blocker").write_bytes(b"")

        with pytest.raises(BackendOperationError, match="Unable to create folder"):
            root.folder("blocker/child").ensure_exists()

    def test_clear_all_and_delete(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        make_file("victim/a")
        make_file("victim/sub/b")
        victim = root.folder("victim")

        assert victim.clear_all().is_empty()
        assert victim.exists()
        make_file("victim/sub/c")
        assert victim.clear_all_and_delete()
        assert not victim.exists()


class TestTemporaries:
    """Tests for temporary file and folder allocation."""

    def test_temporary_file_names(self, root: FolderHandle) -> None:
        """Temporary files are named base-N.tmp and reserved on creation."""
        first = root.temporary_file("data")
        second = root.temporary_file("data")

        assert first.name == "data-0.tmp"
        assert second.name == "data-1.tmp"
        assert first.exists()

    def test_concurrent_temporary_files_are_distinct(self, root: FolderHandle) -> None:
        """Threads never receive the same temporary name."""
        results: list[FileHandle] = []
        lock = threading.Lock()

        def allocate() -> None:
            file = root.temporary_file("race")
            with lock:
                results.append(file)

        threads = [threading.Thread(target=allocate) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 8

    def test_temporary_folder(self, root: FolderHandle) -> None:
        first = root.temporary_folder("stage")
        second = root.temporary_folder("stage")

        assert first.name == "stage-0"
        assert second.name == "stage-1"
        assert first.exists() and second.exists()


class TestFileList:
    """Tests for FileList."""

    def test_sorting_and_totals(self, root: FolderHandle, make_file: Callable[..., Path]) -> None:
        make_file("a", 10, age=timedelta(days=2))
        make_file("b", 30, age=timedelta(days=5))
        make_file("c", 20, age=timedelta(days=1))
        files = root.files()

        assert files.total_size() == 60
        assert [f.name for f in files.sorted_oldest_to_newest()] == ["b", "a", "c"]
        assert [f.name for f in files.sorted_newest_to_oldest()] == ["c", "a", "b"]
        assert files.largest() == root.file("b")
        assert isinstance(files.sorted_oldest_to_newest(), FileList)

    def test_empty(self) -> None:
        files = FileList()

        assert files.total_size() == 0
        assert files.largest() is None
        assert files.paths() == []


class TestDisk:
    """Tests for Disk."""

    def test_percent_usable(self, root: FolderHandle) -> None:
        disk = root.disk()

        assert 0.0 <= disk.percent_usable() <= 100.0
        assert disk.total_space() >= disk.usable_space()

    def test_zero_total_is_fully_usable(self, root: FolderHandle) -> None:
        disk = root.disk()

        with patch.object(type(disk), "total_space", return_value=0):
            assert disk.percent_usable() == 100.0
