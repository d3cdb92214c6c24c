"""Directory listing normalization for filesystem-like disks."""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import TYPE_CHECKING

from disks.types import DiskListingObject, DiskObjectType
from disks.utils import SEP

from .protocol import EntryKind

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from .protocol import DirEntry, StatResult

logger = logging.getLogger(__name__)


def directory_listing(name: str) -> DiskListingObject:
    return DiskListingObject(name=f"{name.rstrip(SEP)}{SEP}", type=DiskObjectType.DIRECTORY)


def file_listing(name: str) -> DiskListingObject:
    return DiskListingObject(name=name, type=DiskObjectType.FILE)


def order_listings(listings: Sequence[DiskListingObject | None]) -> list[DiskListingObject]:
    """Drop empty slots and put directories before files, keeping relative order."""
    directories = [
        listing
        for listing in listings
        if listing is not None and listing.type is DiskObjectType.DIRECTORY
    ]
    files = [
        listing for listing in listings if listing is not None and listing.type is DiskObjectType.FILE
    ]
    return directories + files


async def _resolve_symlink(
    entry: DirEntry,
    target: str,
    stat: Callable[[str], Awaitable[StatResult]],
) -> DiskListingObject | None:
    try:
        stats = await stat(target)
    except OSError as e:
        if e.errno != errno.ENOENT:
            raise
        logger.debug("Dropping unresolvable symlink from listing: %s", target)
        return None
    if stats.is_directory:
        return directory_listing(entry.name)
    if stats.is_file:
        return file_listing(entry.name)
    return None


async def normalize_listing(
    entries: Sequence[DirEntry],
    stat: Callable[[str], Awaitable[StatResult]],
    join: Callable[[str], str],
) -> list[DiskListingObject]:
    """Turn raw directory entries into an ordered disk listing.

    Args:
        entries: Entries of one directory, in the backend's native order.
        stat: Follows a real path to its target (used for symlinks only).
        join: Maps an entry name to its real path.

    Symlinks are resolved concurrently; targets that are missing are
    dropped, any other ``stat`` failure propagates.  Entries that are
    neither files nor directories are dropped.
    """

    async def classify(entry: DirEntry) -> DiskListingObject | None:
        if entry.kind is EntryKind.DIRECTORY:
            return directory_listing(entry.name)
        if entry.kind is EntryKind.FILE:
            return file_listing(entry.name)
        if entry.kind is EntryKind.SYMLINK:
            return await _resolve_symlink(entry, join(entry.name), stat)
        return None

    listings = await asyncio.gather(*(classify(entry) for entry in entries))
    return order_listings(listings)
