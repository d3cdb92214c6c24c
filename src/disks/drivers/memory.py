"""MemoryDisk: an isolated in-memory filesystem per disk instance."""

from __future__ import annotations

import errno
import os
import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from disks.fs.fs_disk import FSDisk
from disks.fs.protocol import DirEntry, EntryKind, StatResult
from disks.streams import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

MAX_SYMLINK_DEPTH = 40


def _error(code: int, path: str) -> OSError:
    # OSError picks the matching subclass (FileNotFoundError, ...) from the errno.
    return OSError(code, os.strerror(code), path)


@dataclass
class _File:
    data: bytearray = field(default_factory=bytearray)


@dataclass
class _Directory:
    children: dict[str, _Node] = field(default_factory=dict)


@dataclass
class _Symlink:
    target: str


_Node = _File | _Directory | _Symlink


class MemoryWriteStream:
    """Write stream into a MemoryVolume file, opened lazily on first use."""

    def __init__(self, volume: MemoryVolume, path: str) -> None:
        self._volume = volume
        self._path = path
        self._file: _File | None = None
        self._closed = False

    def _ensure_open(self) -> _File:
        if self._file is None:
            self._file = self._volume.open_for_write(self._path)
        return self._file

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ValueError(f"Write to closed stream: {self._path}")
        self._ensure_open().data.extend(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._ensure_open()

    async def __aenter__(self) -> MemoryWriteStream:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()


class MemoryVolume:
    """A posix-like filesystem held entirely in memory.

    Implements the AsyncFSModule protocol and reports failures as
    ``OSError``s with the errno the ``os`` module would use.  Supports
    files, directories and symlinks; there is no permissions model.
    """

    path = posixpath

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._root = _Directory()
        self.chunk_size = chunk_size

    # =========================================================================
    # Node Lookup
    # =========================================================================

    @staticmethod
    def _parts(path: str) -> list[str]:
        return [part for part in posixpath.normpath("/" + path).split("/") if part]

    def _walk(self, path: str, follow_last: bool = True, depth: int = 0) -> tuple[_Node, str]:
        """Walk *path* from the root, following symlinks along the way.

        Returns the node and its real path (symlinks replaced by targets).
        """
        node: _Node = self._root
        current = "/"
        parts = self._parts(path)
        for index, part in enumerate(parts):
            if not isinstance(node, _Directory):
                raise _error(errno.ENOTDIR, path)
            child = node.children.get(part)
            if child is None:
                raise _error(errno.ENOENT, path)
            is_last = index == len(parts) - 1
            if isinstance(child, _Symlink) and (follow_last or not is_last):
                if depth >= MAX_SYMLINK_DEPTH:
                    raise _error(errno.ELOOP, path)
                target = posixpath.normpath(posixpath.join(current, child.target))
                child, current = self._walk(target, True, depth + 1)
            else:
                current = posixpath.join(current, part)
            node = child
        return node, current

    def _resolve(self, path: str, follow_last: bool = True) -> _Node:
        node, _ = self._walk(path, follow_last)
        return node

    def _resolve_parent(self, path: str) -> tuple[_Directory, str, str]:
        """Return the parent directory of *path*, its real path, and the last name."""
        parts = self._parts(path)
        if not parts:
            # The root has no parent; callers treat it as the directory it is.
            raise _error(errno.EISDIR, path)
        parent, parent_path = self._walk("/" + "/".join(parts[:-1]))
        if not isinstance(parent, _Directory):
            raise _error(errno.ENOTDIR, path)
        return parent, parent_path, parts[-1]

    def open_for_write(self, path: str, depth: int = 0) -> _File:
        """Create or truncate the file at *path* and return its node.

        A symlink at *path* is written through, creating its target if the
        link dangles.
        """
        parent, parent_path, name = self._resolve_parent(path)
        existing = parent.children.get(name)
        if isinstance(existing, _Symlink):
            if depth >= MAX_SYMLINK_DEPTH:
                raise _error(errno.ELOOP, path)
            target = posixpath.normpath(posixpath.join(parent_path, existing.target))
            return self.open_for_write(target, depth + 1)
        if isinstance(existing, _Directory):
            raise _error(errno.EISDIR, path)
        if isinstance(existing, _File):
            existing.data = bytearray()
            return existing
        created = _File()
        parent.children[name] = created
        return created

    # =========================================================================
    # AsyncFSModule
    # =========================================================================

    async def write_file(self, path: str, data: bytes) -> None:
        self.open_for_write(path).data.extend(data)

    async def read_file(self, path: str) -> bytes:
        node = self._resolve(path)
        if isinstance(node, _Directory):
            raise _error(errno.EISDIR, path)
        assert isinstance(node, _File)
        return bytes(node.data)

    async def readdir(self, path: str) -> list[DirEntry]:
        node = self._resolve(path)
        if not isinstance(node, _Directory):
            raise _error(errno.ENOTDIR, path)
        entries: list[DirEntry] = []
        for name in sorted(node.children):
            child = node.children[name]
            if isinstance(child, _Symlink):
                kind = EntryKind.SYMLINK
            elif isinstance(child, _Directory):
                kind = EntryKind.DIRECTORY
            else:
                kind = EntryKind.FILE
            entries.append(DirEntry(name=name, kind=kind))
        return entries

    async def stat(self, path: str) -> StatResult:
        node = self._resolve(path)
        if isinstance(node, _File):
            return StatResult(is_file=True, is_directory=False, size=len(node.data))
        return StatResult(is_file=False, is_directory=True)

    async def _read_chunks(self, path: str) -> AsyncIterator[bytes]:
        data = await self.read_file(path)
        for start in range(0, len(data), self.chunk_size):
            yield data[start : start + self.chunk_size]

    def create_read_stream(self, path: str) -> AsyncIterator[bytes]:
        return self._read_chunks(path)

    def create_write_stream(self, path: str) -> MemoryWriteStream:
        return MemoryWriteStream(self, path)

    async def unlink(self, path: str) -> None:
        parent, _, name = self._resolve_parent(path)
        child = parent.children.get(name)
        if child is None:
            raise _error(errno.ENOENT, path)
        if isinstance(child, _Directory):
            raise _error(errno.EISDIR, path)
        del parent.children[name]

    async def mkdirp(self, path: str) -> None:
        node: _Node = self._root
        current = "/"
        parts = self._parts(path)
        for index, part in enumerate(parts):
            assert isinstance(node, _Directory)
            current = posixpath.join(current, part)
            child: _Node | None = node.children.get(part)
            if child is None:
                child = _Directory()
                node.children[part] = child
            elif isinstance(child, _Symlink):
                try:
                    child, current = self._walk(current)
                except OSError:
                    # A dangling link still occupies the name.
                    child = None
            if not isinstance(child, _Directory):
                is_last = index == len(parts) - 1
                raise _error(errno.EEXIST if is_last else errno.ENOTDIR, path)
            node = child

    async def access(self, path: str, mode: int | None = None) -> None:
        self._resolve(path)

    async def symlink(self, target: str, path: str) -> None:
        """Create a symlink at *path* pointing to *target* (which need not exist)."""
        parent, _, name = self._resolve_parent(path)
        if name in parent.children:
            raise _error(errno.EEXIST, path)
        parent.children[name] = _Symlink(target=target)


class MemoryDisk(FSDisk):
    """A disk stored in memory, e.g. for tests and scratch data.

    Every instance owns its own :class:`MemoryVolume`; nothing is shared
    between instances and contents are lost with the instance.
    """

    def create_fs_module(self) -> MemoryVolume:
        return MemoryVolume()

    def compute_root_path(self) -> str:
        return "/"

    @property
    def volume(self) -> MemoryVolume:
        return self.fs  # type: ignore[return-value]
