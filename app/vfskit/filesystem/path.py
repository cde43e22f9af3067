"""Immutable, schemed, hierarchical path values.

A PathValue is the parsed form of ``[scheme:][//authority/]segment(/segment)*[/]``.
It never touches a filesystem: resolving a path to storage is the job of the
BackendRegistry.

Examples:
    >>> PathValue.parse("a/./b/../c").normalized()
    PathValue('a/c')
    >>> str(PathValue.parse("s3://bucket/data/"))
    's3://bucket/data/'
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, replace
from pathlib import Path, PurePath

# Two or more characters, so "C:" stays a drive root rather than a scheme
_SCHEME_PATTERN = re.compile(r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]+):(?P<rest>.*)$", re.DOTALL)
_DRIVE_PATTERN = re.compile(r"^(?P<drive>[A-Za-z]):(?:[/\\]|$)")

CURRENT_FOLDER = "."
PARENT_FOLDER = ".."


@dataclass(frozen=True, slots=True)
class PathValue:
    """A parsed path.

    Attributes:
        segments: Path elements, without separators.
        root: Root element: "/", a drive root such as "C:/", an authority
            root such as "//host:8020/", or None for relative paths.
        scheme: Scheme without the colon (e.g. "s3"), or None for local paths.
        trailing_slash: True when the path explicitly names a folder.
    """

    segments: tuple[str, ...] = ()
    root: str | None = None
    scheme: str | None = None
    trailing_slash: bool = False

    def __post_init__(self) -> None:
        """Validate segments and drop a meaningless trailing slash."""
        for segment in self.segments:
            if not segment or "/" in segment:
                msg = f"Invalid path segment: {segment!r}"
                raise ValueError(msg)
        if self.trailing_slash and not self.segments:
            object.__setattr__(self, "trailing_slash", False)

    @classmethod
    def parse(cls, text: str) -> PathValue:
        """Parse a path string.

        The ``file`` scheme is dropped, since a file URI names a plain local
        path. Redundant separators collapse. Blank text yields the empty path.

        Args:
            text: Path string to parse.

        Returns:
            Parsed PathValue.
        """
        if not text or not text.strip():
            return cls()

        scheme: str | None = None
        rest = text
        match = _SCHEME_PATTERN.match(text)
        if match:
            scheme = match["scheme"].lower()
            rest = match["rest"]

        root: str | None = None
        if scheme is None:
            drive = _DRIVE_PATTERN.match(rest)
            if drive:
                root = f"{drive['drive'].upper()}:/"
                rest = rest[2:].replace("\\", "/")

        if root is None:
            if rest.startswith("//"):
                authority, _, rest = rest[2:].partition("/")
                root = f"//{authority}/" if authority else "/"
            elif rest.startswith("/"):
                root = "/"

        if scheme == "file":
            scheme = None

        trailing = rest.endswith("/")
        segments = tuple(segment for segment in rest.split("/") if segment)
        return cls(segments=segments, root=root, scheme=scheme, trailing_slash=trailing)

    def __str__(self) -> str:
        prefix = f"{self.scheme}:" if self.scheme else ""
        text = prefix + (self.root or "") + "/".join(self.segments)
        if self.trailing_slash and self.segments:
            text += "/"
        return text

    def __repr__(self) -> str:
        return f"PathValue({str(self)!r})"

    def __truediv__(self, child: str) -> PathValue:
        return self.with_child(child)

    # === Properties ===

    @property
    def name(self) -> str:
        """Last segment, or an empty string for a root or empty path."""
        return self.segments[-1] if self.segments else ""

    @property
    def suffix(self) -> str:
        """Extension of the last segment including the dot (e.g. ".txt")."""
        return PurePath(self.name).suffix if self.name else ""

    @property
    def stem(self) -> str:
        """Last segment without its extension."""
        return PurePath(self.name).stem if self.name else ""

    @property
    def is_absolute(self) -> bool:
        """A path with a root or a scheme is absolute."""
        return self.root is not None or self.scheme is not None

    @property
    def is_root(self) -> bool:
        return self.root is not None and not self.segments

    @property
    def is_empty(self) -> bool:
        return not self.segments and self.root is None and self.scheme is None

    @property
    def has_scheme(self) -> bool:
        return self.scheme is not None

    # === Transformations ===

    def normalized(self) -> PathValue:
        """Remove "." segments and resolve ".." against preceding segments.

        A ".." with nothing left to consume is dropped on rooted or schemed
        paths (it never climbs past the root or scheme) and kept on plain
        relative paths. A relative path that reduces to nothing becomes ".".

        Returns:
            Normalized PathValue.
        """
        anchored = self.root is not None or self.scheme is not None
        stack: list[str] = []
        for segment in self.segments:
            if segment == CURRENT_FOLDER:
                continue
            if segment == PARENT_FOLDER:
                if stack and stack[-1] != PARENT_FOLDER:
                    stack.pop()
                elif not anchored:
                    stack.append(segment)
                continue
            stack.append(segment)

        if not stack and not anchored and self.segments:
            return replace(self, segments=(CURRENT_FOLDER,), trailing_slash=False)
        return replace(self, segments=tuple(stack))

    def parent(self) -> PathValue:
        """Path without its last segment. A root or empty path is its own parent."""
        if not self.segments:
            return self
        return replace(self, segments=self.segments[:-1], trailing_slash=False)

    def with_child(self, *names: str) -> PathValue:
        """Append one or more children. Names may contain "/" separators."""
        children: list[str] = []
        for name in names:
            children.extend(part for part in name.split("/") if part)
        return replace(self, segments=self.segments + tuple(children), trailing_slash=False)

    def with_trailing_slash(self) -> PathValue:
        return replace(self, trailing_slash=True)

    def without_trailing_slash(self) -> PathValue:
        return replace(self, trailing_slash=False)

    def with_scheme(self, scheme: str) -> PathValue:
        return replace(self, scheme=scheme.lower())

    def without_scheme(self) -> PathValue:
        return replace(self, scheme=None)

    def starts_with(self, prefix: PathValue) -> bool:
        """Whether this path lies at or under prefix (same scheme and root)."""
        if self.scheme != prefix.scheme or self.root != prefix.root:
            return False
        count = len(prefix.segments)
        return self.segments[:count] == prefix.segments

    def relative_to(self, base: PathValue) -> PathValue:
        """Express this path relative to a base folder path.

        Args:
            base: Folder path this path lies under.

        Returns:
            Relative PathValue (no scheme, no root).

        Raises:
            ValueError: If this path is not under base.
        """
        if not self.starts_with(base):
            msg = f"{self} is not under {base}"
            raise ValueError(msg)
        remainder = self.segments[len(base.segments) :]
        return PathValue(segments=remainder, trailing_slash=self.trailing_slash)

    def resolve(self, base: PathValue) -> PathValue:
        """Resolve a relative path against a base folder path.

        Absolute paths are returned unchanged (normalized).
        """
        if self.is_absolute:
            return self.normalized()
        resolved = base.with_child(*self.segments).normalized()
        return replace(resolved, trailing_slash=self.trailing_slash)

    def as_local_path(self) -> Path:
        """Convert to a pathlib.Path.

        Raises:
            ValueError: If the path carries a scheme.
        """
        if self.scheme is not None:
            msg = f"Path with scheme '{self.scheme}' has no local form: {self}"
            raise ValueError(msg)
        if self.is_empty:
            return Path(CURRENT_FOLDER)
        return Path(str(self))


def to_path_value(value: PathValue | str | os.PathLike[str]) -> PathValue:
    """Coerce a string, os.PathLike or PathValue into a PathValue."""
    if isinstance(value, PathValue):
        return value
    if isinstance(value, PurePath):
        return PathValue.parse(value.as_posix())
    return PathValue.parse(os.fspath(value))
