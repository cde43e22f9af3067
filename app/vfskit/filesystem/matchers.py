"""File matchers used to select files for listing, copying and pruning.

A matcher is any callable taking a FileHandle (or FolderHandle) and
returning a bool. Name patterns are glob-style and matched with fnmatch
against the entry name.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vfskit.filesystem.handles import FileHandle

Matcher = Callable[[Any], bool]


def match_all() -> Matcher:
    """Matcher accepting everything."""
    return lambda _: True


def glob(*patterns: str) -> Matcher:
    """Match entries whose name matches any of the glob patterns."""

    def matches(entry: Any) -> bool:
        return any(fnmatch.fnmatch(entry.name, pattern) for pattern in patterns)

    return matches


def excluding(patterns: Iterable[str]) -> Matcher:
    """Match entries whose name matches none of the glob patterns."""
    excluded = tuple(patterns)

    def matches(entry: Any) -> bool:
        return not any(fnmatch.fnmatch(entry.name, pattern) for pattern in excluded)

    return matches


def extension(*suffixes: str) -> Matcher:
    """Match files by extension. Suffixes may be given with or without the dot."""
    wanted = {s if s.startswith(".") else f".{s}" for s in suffixes}

    def matches(entry: Any) -> bool:
        return entry.path.suffix in wanted

    return matches


def older_than(age: timedelta) -> Matcher:
    """Match files whose age (since last modification) exceeds the given age."""

    def matches(file: FileHandle) -> bool:
        return file.age() > age

    return matches


def larger_than(size: int) -> Matcher:
    """Match files larger than size bytes."""

    def matches(file: FileHandle) -> bool:
        return file.size() > size

    return matches


def all_of(*matchers: Matcher) -> Matcher:
    return lambda entry: all(matcher(entry) for matcher in matchers)


def any_of(*matchers: Matcher) -> Matcher:
    return lambda entry: any(matcher(entry) for matcher in matchers)


def from_patterns(include: Iterable[str] = ("*",), exclude: Iterable[str] = ()) -> Matcher:
    """Build a matcher from include and exclude glob lists (as found in config)."""
    include = tuple(include) or ("*",)
    exclude = tuple(exclude)
    if not exclude:
        return glob(*include)
    return all_of(glob(*include), excluding(exclude))
