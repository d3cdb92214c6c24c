"""Tests for directory listing normalization."""

from __future__ import annotations

import asyncio
import errno
import os
import posixpath

import pytest

from disks.fs.listing import normalize_listing
from disks.fs.protocol import DirEntry, EntryKind, StatResult
from disks.types import DiskListingObject, DiskObjectType

FILE = DiskObjectType.FILE
DIRECTORY = DiskObjectType.DIRECTORY


def join(name: str) -> str:
    return posixpath.join("/dir", name)


class FakeStat:
    """Stat results keyed by real path; missing paths raise ENOENT."""

    def __init__(self, results: dict[str, StatResult | OSError]) -> None:
        self.results = results
        self.calls: list[str] = []

    async def __call__(self, path: str) -> StatResult:
        self.calls.append(path)
        await asyncio.sleep(0)
        result = self.results.get(path)
        if result is None:
            raise OSError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        if isinstance(result, OSError):
            raise result
        return result


AS_FILE = StatResult(is_file=True, is_directory=False)
AS_DIRECTORY = StatResult(is_file=False, is_directory=True)


class TestNormalizeListing:
    async def test_directories_before_files_in_original_order(self):
        entries = [
            DirEntry("b.txt", EntryKind.FILE),
            DirEntry("z", EntryKind.DIRECTORY),
            DirEntry("a.txt", EntryKind.FILE),
            DirEntry("c", EntryKind.DIRECTORY),
        ]
        listing = await normalize_listing(entries, FakeStat({}), join)
        assert listing == [
            DiskListingObject("z/", DIRECTORY),
            DiskListingObject("c/", DIRECTORY),
            DiskListingObject("b.txt", FILE),
            DiskListingObject("a.txt", FILE),
        ]

    async def test_only_symlinks_are_statted(self):
        stat = FakeStat({"/dir/link": AS_FILE})
        entries = [
            DirEntry("plain", EntryKind.FILE),
            DirEntry("sub", EntryKind.DIRECTORY),
            DirEntry("link", EntryKind.SYMLINK),
        ]
        await normalize_listing(entries, stat, join)
        assert stat.calls == ["/dir/link"]

    async def test_symlinks_classified_by_target(self):
        stat = FakeStat({"/dir/to-file": AS_FILE, "/dir/to-dir": AS_DIRECTORY})
        entries = [
            DirEntry("to-file", EntryKind.SYMLINK),
            DirEntry("to-dir", EntryKind.SYMLINK),
        ]
        listing = await normalize_listing(entries, stat, join)
        assert listing == [
            DiskListingObject("to-dir/", DIRECTORY),
            DiskListingObject("to-file", FILE),
        ]

    async def test_broken_symlinks_and_unknown_entries_dropped(self):
        entries = [
            DirEntry("fifo", EntryKind.OTHER),
            DirEntry("broken", EntryKind.SYMLINK),
            DirEntry("keep.txt", EntryKind.FILE),
        ]
        listing = await normalize_listing(entries, FakeStat({}), join)
        assert listing == [DiskListingObject("keep.txt", FILE)]

    async def test_symlink_to_special_file_dropped(self):
        stat = FakeStat({"/dir/dev": StatResult(is_file=False, is_directory=False)})
        listing = await normalize_listing([DirEntry("dev", EntryKind.SYMLINK)], stat, join)
        assert listing == []

    async def test_other_stat_errors_propagate(self):
        stat = FakeStat({"/dir/loop": OSError(errno.ELOOP, os.strerror(errno.ELOOP), "/dir/loop")})
        with pytest.raises(OSError) as exc_info:
            await normalize_listing([DirEntry("loop", EntryKind.SYMLINK)], stat, join)
        assert exc_info.value.errno == errno.ELOOP

    async def test_single_trailing_separator(self):
        listing = await normalize_listing([DirEntry("d", EntryKind.DIRECTORY)], FakeStat({}), join)
        assert listing[0].name == "d/"

    async def test_empty(self):
        assert await normalize_listing([], FakeStat({}), join) == []
