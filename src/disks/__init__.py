"""disks: one async interface over memory, local and S3 storage.

Disks are usually obtained from a :class:`DiskManager`::

    manager = DiskManager({
        "default": "local",
        "local": {"driver": "local", "config": {"root": "/srv/files"}},
        "assets": {"driver": "s3", "config": {"bucket": "my-assets"}},
    })
    disk = manager.get_disk()
    await disk.write("reports/q1.txt", b"...")
    await disk.list("reports")
"""

__version__ = "0.1.0"

from disks.disk import Disk
from disks.drivers.local import LocalDisk, LocalFSModule
from disks.drivers.memory import MemoryDisk, MemoryVolume
from disks.drivers.s3 import S3Disk
from disks.exceptions import (
    BadDriverError,
    CapabilityNotSupportedError,
    DiskError,
    DiskNotFoundError,
    NotADirectoryPathError,
    NotAFileError,
    NotWritableDestinationError,
    PathNotFoundError,
)
from disks.fs.fs_disk import FSDisk
from disks.fs.protocol import AsyncFSModule, DirEntry, EntryKind, StatResult
from disks.manager import DiskManager, DiskManagerConfig
from disks.streams import WritableStream, pipe_stream, stream_to_bytes
from disks.tempfiles import temp_file
from disks.types import (
    DISK_OBJECT_TYPES,
    DiskDriver,
    DiskListingObject,
    DiskObjectType,
    DiskSpecification,
    NamedDiskSpecification,
)

DRIVERS: list[DiskDriver] = [DiskDriver.LOCAL, DiskDriver.S3, DiskDriver.MEMORY]
"""All available drivers."""

__all__ = [
    "DISK_OBJECT_TYPES",
    "DRIVERS",
    "AsyncFSModule",
    "BadDriverError",
    "CapabilityNotSupportedError",
    "DirEntry",
    "Disk",
    "DiskDriver",
    "DiskError",
    "DiskListingObject",
    "DiskManager",
    "DiskManagerConfig",
    "DiskNotFoundError",
    "DiskObjectType",
    "DiskSpecification",
    "EntryKind",
    "FSDisk",
    "LocalDisk",
    "LocalFSModule",
    "MemoryDisk",
    "MemoryVolume",
    "NamedDiskSpecification",
    "NotADirectoryPathError",
    "NotAFileError",
    "NotWritableDestinationError",
    "PathNotFoundError",
    "S3Disk",
    "StatResult",
    "WritableStream",
    "__version__",
    "pipe_stream",
    "stream_to_bytes",
    "temp_file",
]
