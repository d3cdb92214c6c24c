"""Filesystem-like disks: file primitives, listing normalization, FSDisk."""

from disks.fs.fs_disk import FSDisk
from disks.fs.listing import normalize_listing
from disks.fs.protocol import AsyncFSModule, DirEntry, EntryKind, StatResult

__all__ = [
    "AsyncFSModule",
    "DirEntry",
    "EntryKind",
    "FSDisk",
    "StatResult",
    "normalize_listing",
]
