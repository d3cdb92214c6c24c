"""AsyncFSModule protocol: the file primitives an FSDisk is built on.

Any backend exposing this set of async operations can be adapted into an
:class:`~disks.fs.fs_disk.FSDisk`.  Failures are reported as ``OSError``
with a meaningful ``errno`` (``ENOENT``, ``EISDIR``, ``ENOTDIR``, ...), the
same way the ``os`` module reports them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import ModuleType

    from disks.streams import ReadableStream, WritableStream


class EntryKind(Enum):
    """Type of a raw directory entry, without following symlinks."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class DirEntry:
    """A raw directory entry as reported by ``readdir``."""

    name: str
    kind: EntryKind


@dataclass(frozen=True, slots=True)
class StatResult:
    """What ``stat`` reports about the target of a path (symlinks followed)."""

    is_file: bool
    is_directory: bool
    size: int = 0


@runtime_checkable
class AsyncFSModule(Protocol):
    """Async file primitives for one filesystem-like backend."""

    path: ModuleType
    """Path flavor used for real paths (``os.path`` or ``posixpath``)."""

    async def write_file(self, path: str, data: bytes) -> None:
        """Create or truncate *path* and write *data* to it."""
        ...

    async def read_file(self, path: str) -> bytes: ...

    async def readdir(self, path: str) -> list[DirEntry]:
        """Entries of the directory at *path* in the backend's native order."""
        ...

    async def stat(self, path: str) -> StatResult: ...

    def create_read_stream(self, path: str) -> ReadableStream: ...

    def create_write_stream(self, path: str) -> WritableStream:
        """Return a stream that opens *path* on first use, not immediately."""
        ...

    async def unlink(self, path: str) -> None: ...

    async def mkdirp(self, path: str) -> None:
        """Create *path* and any missing parents; no-op if it is a directory."""
        ...

    async def access(self, path: str, mode: int | None = None) -> None: ...
