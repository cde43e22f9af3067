"""Exception hierarchy for the virtual filesystem layer.

Boolean mutations (delete, rename, mkdirs) report failure through their
return value. Everything else that can fail raises one of the exceptions
below so callers can tell configuration problems, refused copies and I/O
failures apart.
"""


class VfsError(Exception):
    """Base exception for virtual filesystem errors."""


class UnresolvedBackendError(VfsError):
    """Raised when no registered provider accepts a path.

    This is a configuration error: the operation is not retried and no
    default backend is substituted.
    """

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"No filesystem provider accepts path: {path}")


class DestinationExistsError(VfsError):
    """Raised when a non-overwriting copy meets a populated destination."""

    def __init__(self, destination: object) -> None:
        self.destination = destination
        super().__init__(f"Destination exists and is not empty: {destination}")


class PartialCopyError(VfsError):
    """Raised when a copy fails part way through.

    The temporary copy has been removed (best effort) and the destination is
    in its pre-copy state. The original exception is chained as __cause__.
    """

    def __init__(self, source: object, destination: object, reason: str) -> None:
        self.source = source
        self.destination = destination
        super().__init__(f"Unable to copy {source} to {destination}: {reason}")


class PruneCycleError(VfsError):
    """Raised when a single folder pruner cycle fails."""


class BackendOperationError(VfsError):
    """Raised when a backend operation fails and cannot be reported as a bool."""
