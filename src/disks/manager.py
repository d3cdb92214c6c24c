"""DiskManager: resolves named disk configs into memoized Disk instances."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .drivers.local import LocalDisk
from .drivers.memory import MemoryDisk
from .drivers.s3 import S3Disk
from .exceptions import BadDriverError, DiskNotFoundError
from .types import DiskDriver, DiskSpecification, NamedDiskSpecification

if TYPE_CHECKING:
    from .disk import Disk

logger = logging.getLogger(__name__)

DEFAULT_DISK_NAME = "default"
DEFAULT_MAX_LOOKUP = 10

DiskManagerConfig = Mapping[str, str | Mapping[str, Any]]
"""Disk names mapped to an alias (another disk's name) or a specification.

Example::

    {
        "default": "uploads",
        "uploads": {"driver": "s3", "config": {"bucket": "my-bucket"}},
        "scratch": {"driver": "local", "config": {"root": "/tmp/scratch"}},
        "tmp": "scratch",
    }
"""


class DiskManager:
    """Hands out one Disk instance per configured disk.

    Names are looked up in the config, following aliases.  Disks are cached
    under their resolved name, so a disk and every alias of it share the same
    instance, and ``disk.name`` is always the resolved name.
    """

    def __init__(self, config: DiskManagerConfig) -> None:
        self._config: dict[str, str | Mapping[str, Any]] = dict(config)
        self._disks: dict[str, Disk] = {}

    def resolve_disk_specification(
        self,
        name: str,
        max_lookup: int = DEFAULT_MAX_LOOKUP,
    ) -> NamedDiskSpecification | None:
        """Find the specification for *name*, following up to *max_lookup* aliases.

        Returns None if the name (or any alias along the way) is missing or
        the chain is longer than *max_lookup*, which also stops alias cycles.
        """
        current = name
        remaining = max_lookup
        while remaining > 0 and current in self._config:
            entry = self._config[current]
            if isinstance(entry, str):
                current = entry
                remaining -= 1
                continue
            if not isinstance(entry, Mapping):
                return None
            return NamedDiskSpecification(
                name=current,
                specification=DiskSpecification.from_mapping(entry),
            )
        return None

    def has_disk(self, name: str) -> bool:
        """True if a disk has been constructed for the resolved *name*."""
        resolved = self.resolve_disk_specification(name)
        return resolved is not None and resolved.name in self._disks

    def get_disk(self, name: str = DEFAULT_DISK_NAME, *, s3_client: Any = None) -> Disk:
        """Get the Disk for a configured name (aliases allowed).

        Args:
            name: Disk name or alias in the manager config.
            s3_client: Pre-built S3 client for ``s3`` disks.  Only used when
                the disk is constructed; a cached disk keeps its client.

        Raises:
            DiskNotFoundError: If the name can't be resolved.
            BadDriverError: If the resolved specification has an unknown driver.
        """
        resolved = self.resolve_disk_specification(name)
        if resolved is None:
            raise DiskNotFoundError(name)

        cached = self._disks.get(resolved.name)
        if cached is not None:
            return cached

        disk = self._create_disk(resolved, s3_client=s3_client)
        logger.debug("Created %s disk %r (requested as %r)", type(disk).__name__, resolved.name, name)
        self._disks[resolved.name] = disk
        return disk

    def _create_disk(self, resolved: NamedDiskSpecification, *, s3_client: Any = None) -> Disk:
        spec = resolved.specification
        if spec.driver == DiskDriver.LOCAL:
            return LocalDisk(spec.config, resolved.name)
        if spec.driver == DiskDriver.MEMORY:
            return MemoryDisk(spec.config, resolved.name)
        if spec.driver == DiskDriver.S3:
            return S3Disk(spec.config, resolved.name, client=s3_client)
        raise BadDriverError(resolved.name, spec.driver)
