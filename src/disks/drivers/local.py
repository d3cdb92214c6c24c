"""LocalDisk: files on the host filesystem."""

from __future__ import annotations

import asyncio
import errno
import os
from pathlib import Path
from stat import S_ISDIR, S_ISREG
from typing import IO, TYPE_CHECKING

from disks.fs.fs_disk import FSDisk
from disks.fs.protocol import DirEntry, EntryKind, StatResult
from disks.streams import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class LocalWriteStream:
    """Write stream to a local file, opened lazily on first use."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._handle: IO[bytes] | None = None
        self._closed = False

    async def _ensure_open(self) -> IO[bytes]:
        if self._handle is None:
            self._handle = await asyncio.to_thread(open, self._path, "wb")
        return self._handle

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ValueError(f"Write to closed stream: {self._path}")
        handle = await self._ensure_open()
        await asyncio.to_thread(handle.write, data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        handle = self._handle
        if handle is None:
            # Nothing was written; still leave an empty file behind.
            handle = await asyncio.to_thread(open, self._path, "wb")
        await asyncio.to_thread(handle.close)

    async def __aenter__(self) -> LocalWriteStream:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()


class LocalFSModule:
    """AsyncFSModule over the ``os`` module; blocking calls run in threads."""

    path = os.path

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    async def write_file(self, path: str, data: bytes) -> None:
        await asyncio.to_thread(Path(path).write_bytes, data)

    async def read_file(self, path: str) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)

    async def readdir(self, path: str) -> list[DirEntry]:
        def _scan() -> list[DirEntry]:
            entries: list[DirEntry] = []
            with os.scandir(path) as it:
                for entry in it:
                    if entry.is_symlink():
                        kind = EntryKind.SYMLINK
                    elif entry.is_dir(follow_symlinks=False):
                        kind = EntryKind.DIRECTORY
                    elif entry.is_file(follow_symlinks=False):
                        kind = EntryKind.FILE
                    else:
                        kind = EntryKind.OTHER
                    entries.append(DirEntry(name=entry.name, kind=kind))
            # scandir order is arbitrary; name order is this module's native order.
            entries.sort(key=lambda e: e.name)
            return entries

        return await asyncio.to_thread(_scan)

    async def stat(self, path: str) -> StatResult:
        st = await asyncio.to_thread(os.stat, path)
        return StatResult(
            is_file=S_ISREG(st.st_mode),
            is_directory=S_ISDIR(st.st_mode),
            size=st.st_size,
        )

    async def _read_chunks(self, path: str) -> AsyncIterator[bytes]:
        handle = await asyncio.to_thread(open, path, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(handle.read, self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await asyncio.to_thread(handle.close)

    def create_read_stream(self, path: str) -> AsyncIterator[bytes]:
        return self._read_chunks(path)

    def create_write_stream(self, path: str) -> LocalWriteStream:
        return LocalWriteStream(path)

    async def unlink(self, path: str) -> None:
        await asyncio.to_thread(os.unlink, path)

    async def mkdirp(self, path: str) -> None:
        await asyncio.to_thread(os.makedirs, path, exist_ok=True)

    async def access(self, path: str, mode: int | None = None) -> None:
        allowed = await asyncio.to_thread(os.access, path, os.F_OK if mode is None else mode)
        if not allowed:
            raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), path)


class LocalDisk(FSDisk):
    """A disk backed by a directory on the local filesystem.

    Paths passed to the disk are always posix-like; only the ``root`` config
    option is OS-specific (drive letters and backslashes on Windows).

    Config:
        root: Directory files are stored under.  Relative roots resolve
            against the current working directory, which is also the
            default.
        url: Base URL for files; defaults to the ``file://`` URI of the root.
    """

    def create_fs_module(self) -> LocalFSModule:
        return LocalFSModule()

    def compute_root_path(self) -> str:
        raw_root = self.config.get("root")
        if raw_root:
            root = str(raw_root).strip().rstrip("/\\")
            # Stripping a bare "/" leaves nothing; that still means the fs root.
            return os.path.abspath(root or os.sep)
        return os.path.abspath(".")

    def get_root_path(self) -> str:
        return self.root_path

    def get_url_base(self) -> str | None:
        base = super().get_url_base()
        if base is not None:
            return base
        return Path(self.root_path).as_uri()
