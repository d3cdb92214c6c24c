"""Listing objects, driver identifiers, and disk specifications."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class DiskObjectType(Enum):
    """Type of an object on a disk."""

    FILE = "file"
    DIRECTORY = "directory"


DISK_OBJECT_TYPES: list[DiskObjectType] = [DiskObjectType.FILE, DiskObjectType.DIRECTORY]


@dataclass(frozen=True, slots=True)
class DiskListingObject:
    """An entry in a directory listing.

    ``name`` is the entry's name inside the listed directory, not a full
    path.  Directory names always end with a single ``/``.
    """

    name: str
    type: DiskObjectType


class DiskDriver(str, Enum):
    """Available drivers."""

    MEMORY = "memory"
    LOCAL = "local"
    S3 = "s3"


@dataclass(frozen=True)
class DiskSpecification:
    """A driver and the config to construct it with."""

    driver: str | None
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DiskSpecification:
        """Build a specification from a disk manager config entry.

        Older configs put the driver options next to ``driver`` instead of
        under ``config``; those keys are used as the config when no explicit
        ``config`` is given.
        """
        driver = raw.get("driver")
        config = raw.get("config")
        if config is None:
            config = {key: value for key, value in raw.items() if key not in ("driver", "config")}
        if isinstance(driver, DiskDriver):
            driver = driver.value
        return cls(driver=driver, config=config)


@dataclass(frozen=True)
class NamedDiskSpecification:
    """A specification paired with the name it was resolved under."""

    name: str
    specification: DiskSpecification
