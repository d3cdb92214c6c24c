"""FSDisk: a disk on top of any AsyncFSModule."""

from __future__ import annotations

import os
from abc import abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from disks.disk import Disk
from disks.exceptions import NotAFileError
from disks.streams import is_stream_body, pipe_stream, to_bytes
from disks.translation import Operation, translate_errors
from disks.utils import resolve_path_under_root

from .listing import normalize_listing

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import ModuleType

    from disks.streams import Body, ReadableStream, WritableStream
    from disks.types import DiskListingObject

    from .protocol import AsyncFSModule

T = TypeVar("T")


class FSDisk(Disk):
    """A disk that stores files in a traditional (possibly virtual) filesystem.

    Subclasses supply the file primitives (:meth:`create_fs_module`) and the
    root directory (:meth:`compute_root_path`); both are computed once at
    construction.  Every virtual path is chrooted under the root.

    Entities that are neither directories, files, nor symlinks are ignored.
    Symlinks are followed; ones that don't resolve to a file or directory are
    left out of listings.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, name: str | None = None) -> None:
        super().__init__(config, name)
        self.fs: AsyncFSModule = self.create_fs_module()
        self.root_path: str = self.compute_root_path()

    @abstractmethod
    def create_fs_module(self) -> AsyncFSModule:
        """Return the file primitives this disk operates on."""

    @abstractmethod
    def compute_root_path(self) -> str:
        """Return the absolute real path all virtual paths are resolved under."""

    @property
    def path_module(self) -> ModuleType:
        return getattr(self.fs, "path", os.path)

    # =========================================================================
    # Path Resolution
    # =========================================================================

    def get_full_path(self, path: str | None = None) -> str:
        """Resolve a virtual path to a real path inside the root.

        The path is resolved against a theoretical ``/`` using posix rules
        and the result is then joined onto the root, so ``..`` can never
        climb above the root.  None or "" returns the root itself.
        """
        return resolve_path_under_root(self.root_path, path, self.path_module)

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, path: str) -> bytes:
        full_path = self.get_full_path(path)
        with translate_errors(Operation.READ, path):
            return await self.fs.read_file(full_path)

    async def create_read_stream(self, path: str) -> ReadableStream:
        full_path = self.get_full_path(path)
        # Stat first so that opening the stream never creates a file.
        with translate_errors(Operation.READ_STREAM, path):
            stats = await self.fs.stat(full_path)
        if not stats.is_file:
            raise NotAFileError(path)
        return self.fs.create_read_stream(full_path)

    # =========================================================================
    # Write
    # =========================================================================

    async def _prepare_and_execute_write(
        self,
        path: str,
        execute: Callable[[str], Awaitable[T]],
    ) -> T:
        """Create the leading directories of *path*, then run *execute*.

        Expected failures of either step are translated into
        ``NotWritableDestinationError``.
        """
        full_path = self.get_full_path(path)
        with translate_errors(Operation.PREPARE_WRITE, path):
            await self.fs.mkdirp(self.path_module.dirname(full_path))
        with translate_errors(Operation.WRITE, path):
            return await execute(full_path)

    async def write(self, path: str, body: Body) -> None:
        async def execute(full_path: str) -> None:
            if is_stream_body(body):
                await pipe_stream(body, self.fs.create_write_stream(full_path))  # type: ignore[arg-type]
            else:
                await self.fs.write_file(full_path, to_bytes(body))  # type: ignore[arg-type]

        await self._prepare_and_execute_write(path, execute)

    async def create_write_stream(self, path: str) -> WritableStream:
        """Open a write stream after creating the leading directories.

        The target itself is only opened on the first write or close, so
        errors like the target being a directory surface there as raw
        ``OSError``s rather than ``NotWritableDestinationError``.
        """

        async def execute(full_path: str) -> WritableStream:
            return self.fs.create_write_stream(full_path)

        return await self._prepare_and_execute_write(path, execute)

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self, path: str) -> None:
        full_path = self.get_full_path(path)
        with translate_errors(Operation.DELETE, path):
            await self.fs.unlink(full_path)

    # =========================================================================
    # List
    # =========================================================================

    async def list(self, path: str | None = None) -> list[DiskListingObject]:
        full_path = self.get_full_path(path)
        with translate_errors(Operation.LIST, path):
            entries = await self.fs.readdir(full_path)

        def join(name: str) -> str:
            return self.path_module.join(full_path, name)

        return await normalize_listing(entries, self.fs.stat, join)
