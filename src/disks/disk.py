"""Disk: the operation contract every backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .tempfiles import temp_file
from .utils import SEP, join_url, sanitize_path_on_disk

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager
    from pathlib import Path

    from .streams import Body, ReadableStream, WritableStream
    from .types import DiskListingObject

DEFAULT_TEMPORARY_URL_EXPIRY = 3600


class Disk(ABC):
    """A named, configured handle to a storage backend.

    Paths passed to every operation are virtual: ``/``-separated and
    relative to the disk root no matter whether they look absolute.

    Config keys shared by all drivers:
        url: Base URL that files on the disk are served from.
        temporary_url_fallback: If True, ``get_temporary_url`` falls back to
            the permanent URL on disks that cannot sign URLs.
    """

    SEP = SEP

    def __init__(self, config: Mapping[str, Any] | None = None, name: str | None = None) -> None:
        self._config: Mapping[str, Any] = MappingProxyType(dict(config or {}))
        self._name = name

    @property
    def name(self) -> str | None:
        """Name the disk was registered under (always the resolved name)."""
        return self._name

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"

    # =========================================================================
    # Operations
    # =========================================================================

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Read a file into memory.

        Raises:
            PathNotFoundError: If the path does not exist on the disk.
            NotAFileError: If the path exists but is not a file.
        """

    @abstractmethod
    async def create_read_stream(self, path: str) -> ReadableStream:
        """Obtain a readable stream for a file on the disk.

        Raises:
            PathNotFoundError: If the path does not exist on the disk.
            NotAFileError: If the path exists but is not a file.
        """

    @abstractmethod
    async def write(self, path: str, body: Body) -> None:
        """Write *body* to *path*, replacing any existing contents.

        *body* may be bytes, text (written as UTF-8), or an async iterable
        of byte chunks which is streamed to the destination in full.

        Raises:
            NotWritableDestinationError: If the destination is not writable,
                e.g. it is a directory.
        """

    @abstractmethod
    async def create_write_stream(self, path: str) -> WritableStream:
        """Obtain a writable stream to a file on the disk.

        Raises:
            NotWritableDestinationError: If the destination is known to be
                unwritable before the stream is opened.
        """

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a single file.

        Raises:
            PathNotFoundError: If the path does not exist.
            NotAFileError: If the path is a directory.
        """

    @abstractmethod
    async def list(self, path: str | None = None) -> list[DiskListingObject]:
        """List the files and directories in a directory (the root by default).

        Directories are listed first and their names end in ``/``.

        Raises:
            PathNotFoundError: If the directory does not exist.
            NotADirectoryPathError: If the path exists but is not a directory.
        """

    # =========================================================================
    # URLs
    # =========================================================================

    def get_url_base(self) -> str | None:
        """Base URL for files on the disk, or None if the disk has none."""
        url = self._config.get("url")
        return str(url) if url else None

    def get_url(self, path: str) -> str | None:
        """Permanent URL for a file, or None if the disk has no URL base."""
        base = self.get_url_base()
        if base is None:
            return None
        return join_url(base, sanitize_path_on_disk(path))

    def get_temporary_url(
        self,
        path: str,
        expires: int = DEFAULT_TEMPORARY_URL_EXPIRY,
        fallback: bool | None = None,
    ) -> str | None:
        """Time-limited URL for a file.

        Disks that can't sign URLs return the permanent URL when *fallback*
        is True (defaulting to the ``temporary_url_fallback`` config option)
        and None otherwise.
        """
        if fallback is None:
            fallback = bool(self._config.get("temporary_url_fallback", False))
        return self.get_url(path) if fallback else None

    # =========================================================================
    # Local copies
    # =========================================================================

    def with_temp_file(self, path: str, *, keep: bool = False) -> AbstractAsyncContextManager[Path]:
        """Copy a file to a local scratch file for the duration of a block.

        Usage::

            async with disk.with_temp_file("reports/q1.pdf") as local_path:
                process(local_path)
        """
        return temp_file(self, path, keep=keep)
