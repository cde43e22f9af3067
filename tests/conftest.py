"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from vfskit.filesystem.handles import FolderHandle
from vfskit.filesystem.registry import BackendRegistry, default_registry

# Fixed reference time for age-based tests
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def registry() -> BackendRegistry:
    """Registry with the local filesystem provider."""
    return default_registry()


@pytest.fixture
def root(tmp_path: Path, registry: BackendRegistry) -> FolderHandle:
    """FolderHandle for the test's temporary directory."""
    return registry.folder(tmp_path)


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a file under tmp_path with given size and age.

    Ages are relative to NOW.
    """

    def _make(relative: str, content: bytes | int = b"", age: timedelta | None = None) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * content if isinstance(content, int) else content)
        if age is not None:
            stamp = (NOW - age).timestamp()
            os.utime(path, (stamp, stamp))
        return path

    return _make


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock returning NOW."""
    return lambda: NOW


@pytest.fixture
def xdg_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and cache homes into tmp_path.

    Returns:
        The directory holding both homes.
    """
    home = tmp_path / "home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / "cache"))
    return home
