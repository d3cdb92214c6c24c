"""Custom exception hierarchy for disk operations."""

from __future__ import annotations


class DiskError(Exception):
    """Base exception for all disk errors.

    Attributes:
        code: Stable identifier for the error kind (the class name).
        path: Virtual path (or disk name) implicated in the failure, if any.
        message: Human-readable description.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    @property
    def code(self) -> str:
        return type(self).__name__


class PathNotFoundError(DiskError):
    """Raised when a file or directory does not exist on the disk."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__(f"File or directory not found: {path or '(not specified)'}", path)


class NotAFileError(DiskError):
    """Raised when a path resolves to something other than a file."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__(f"Not a file: {path or '(not specified)'}", path)


class NotADirectoryPathError(DiskError):
    """Raised when a path expected to be a directory is not one."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__(f"Not a directory: {path or '(not specified)'}", path)


class NotWritableDestinationError(DiskError):
    """Raised when a path cannot be written to (e.g. it is a directory)."""

    def __init__(self, path: str | None = None) -> None:
        super().__init__(
            f"Not a writable destination (i.e. is a directory, etc.): {path or '(not specified)'}",
            path,
        )


class BadDriverError(DiskError):
    """Raised when a disk specification names an unknown or missing driver."""

    def __init__(self, disk_name: str | None = None, driver: object = None) -> None:
        disk_name = disk_name or "(not specified)"
        super().__init__(
            f"Unrecognized or unspecified driver '{driver or '(unknown)'}' for disk '{disk_name}'.",
            disk_name,
        )
        self.driver = driver


class DiskNotFoundError(DiskError):
    """Raised when a disk name cannot be resolved from the manager config."""

    def __init__(self, disk_name: str) -> None:
        super().__init__(f"Disk not found in disks config: {disk_name}.", disk_name)


class CapabilityNotSupportedError(DiskError):
    """Raised when a backend doesn't support a requested operation."""
