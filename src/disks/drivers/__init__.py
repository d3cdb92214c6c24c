"""Concrete disk drivers."""

from disks.drivers.local import LocalDisk
from disks.drivers.memory import MemoryDisk
from disks.drivers.s3 import S3Disk

__all__ = ["LocalDisk", "MemoryDisk", "S3Disk"]
