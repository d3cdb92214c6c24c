"""Tests for DiskManager name resolution and caching."""

from __future__ import annotations

import logging
import os
from unittest.mock import MagicMock

import pytest

from disks.drivers.local import LocalDisk
from disks.drivers.memory import MemoryDisk
from disks.drivers.s3 import S3Disk
from disks.exceptions import BadDriverError, DiskNotFoundError
from disks.manager import DiskManager
from disks.types import DiskDriver, DiskSpecification


# ---------------------------------------------------------------------------
# Caching & aliases
# ---------------------------------------------------------------------------


class TestGetDisk:
    def test_same_instance_for_same_name(self):
        manager = DiskManager(
            {
                "default": "foo",
                "foo": {"driver": DiskDriver.MEMORY},
                "bar": {"driver": DiskDriver.MEMORY},
            }
        )
        default1 = manager.get_disk()
        default2 = manager.get_disk()
        foo1 = manager.get_disk("foo")
        foo2 = manager.get_disk("foo")
        bar = manager.get_disk("bar")

        assert default1 is default2
        assert foo1 is foo2
        assert default1 is foo1
        assert bar is not foo1

    def test_resolved_name_not_alias(self):
        manager = DiskManager(
            {
                "default": "foo",
                "foo": {"driver": DiskDriver.MEMORY},
                "bar": "foo",
            }
        )
        assert manager.get_disk().name == "foo"
        assert manager.get_disk("foo").name == "foo"
        assert manager.get_disk("bar").name == "foo"

    def test_old_config_style(self):
        manager = DiskManager(
            {
                "default": "foo",
                "foo": {"driver": DiskDriver.LOCAL, "root": "/tmp"},
            }
        )
        disk = manager.get_disk()
        assert isinstance(disk, LocalDisk)
        assert disk.get_root_path() == os.path.abspath("/tmp")

    def test_explicit_config_wins(self, tmp_path):
        manager = DiskManager(
            {"local": {"driver": "local", "root": "/ignored", "config": {"root": str(tmp_path)}}}
        )
        assert manager.get_disk("local").get_root_path() == str(tmp_path)

    def test_explicit_empty_config_kept(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        spec = DiskSpecification.from_mapping({"driver": "local", "root": "/ignored", "config": {}})
        assert dict(spec.config) == {}
        manager = DiskManager({"local": {"driver": "local", "root": "/ignored", "config": {}}})
        assert manager.get_disk("local").get_root_path() == os.path.abspath(".")

    def test_plain_string_drivers(self, tmp_path):
        manager = DiskManager(
            {
                "mem": {"driver": "memory"},
                "files": {"driver": "local", "config": {"root": str(tmp_path)}},
                "remote": {"driver": "s3", "config": {"bucket": "b"}},
            }
        )
        assert isinstance(manager.get_disk("mem"), MemoryDisk)
        assert isinstance(manager.get_disk("files"), LocalDisk)
        assert isinstance(manager.get_disk("remote", s3_client=MagicMock()), S3Disk)

    def test_config_passed_to_disk(self):
        manager = DiskManager(
            {"mem": {"driver": "memory", "config": {"url": "http://localhost:1234"}}}
        )
        assert manager.get_disk("mem").get_url("a.txt") == "http://localhost:1234/a.txt"

    def test_creation_logged(self, caplog):
        manager = DiskManager({"default": "mem", "mem": {"driver": "memory"}})
        with caplog.at_level(logging.DEBUG, logger="disks.manager"):
            manager.get_disk()
            manager.get_disk()
        created = [r for r in caplog.records if "Created" in r.getMessage()]
        assert len(created) == 1


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_unknown_name(self):
        manager = DiskManager({"foo": {"driver": "memory"}})
        with pytest.raises(DiskNotFoundError) as exc_info:
            manager.get_disk("nope")
        assert exc_info.value.path == "nope"

    def test_missing_default(self):
        manager = DiskManager({"foo": {"driver": "memory"}})
        with pytest.raises(DiskNotFoundError):
            manager.get_disk()

    def test_dangling_alias(self):
        manager = DiskManager({"default": "missing"})
        with pytest.raises(DiskNotFoundError):
            manager.get_disk()

    def test_alias_cycle(self):
        manager = DiskManager({"a": "b", "b": "a"})
        with pytest.raises(DiskNotFoundError):
            manager.get_disk("a")

    def test_unknown_driver(self):
        manager = DiskManager({"weird": {"driver": "ftp"}})
        with pytest.raises(BadDriverError) as exc_info:
            manager.get_disk("weird")
        assert exc_info.value.driver == "ftp"
        assert "weird" in str(exc_info.value)

    def test_missing_driver(self):
        manager = DiskManager({"nodriver": {"config": {"root": "/tmp"}}})
        with pytest.raises(BadDriverError):
            manager.get_disk("nodriver")

    def test_failed_construction_not_cached(self):
        manager = DiskManager({"remote": {"driver": "s3", "config": {}}})
        with pytest.raises(ValueError):
            manager.get_disk("remote", s3_client=MagicMock())
        assert not manager.has_disk("remote")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolveDiskSpecification:
    @pytest.fixture
    def chain(self):
        # d0 -> d1 -> d2 -> d3 (memory)
        return DiskManager(
            {"d0": "d1", "d1": "d2", "d2": "d3", "d3": {"driver": "memory"}}
        )

    def test_follows_aliases(self, chain):
        resolved = chain.resolve_disk_specification("d0")
        assert resolved is not None
        assert resolved.name == "d3"
        assert resolved.specification == DiskSpecification(driver="memory", config={})

    def test_max_lookup_bounds_the_chain(self, chain):
        assert chain.resolve_disk_specification("d0", max_lookup=3) is None
        assert chain.resolve_disk_specification("d0", max_lookup=4) is not None
        assert chain.resolve_disk_specification("d3", max_lookup=1) is not None

    def test_zero_lookups(self, chain):
        assert chain.resolve_disk_specification("d3", max_lookup=0) is None

    def test_non_mapping_entry(self):
        manager = DiskManager({"odd": 42})  # type: ignore[dict-item]
        assert manager.resolve_disk_specification("odd") is None

    def test_has_disk(self, chain):
        assert not chain.has_disk("d0")
        chain.get_disk("d1")
        assert chain.has_disk("d0")
        assert chain.has_disk("d3")
        assert not chain.has_disk("missing")


# ---------------------------------------------------------------------------
# S3 client injection
# ---------------------------------------------------------------------------


class TestS3Client:
    def test_client_used_on_construction(self):
        manager = DiskManager({"remote": {"driver": "s3", "config": {"bucket": "b"}}})
        client = MagicMock()
        disk = manager.get_disk("remote", s3_client=client)
        assert disk.client is client

    def test_first_client_wins(self):
        manager = DiskManager(
            {"default": "remote", "remote": {"driver": "s3", "config": {"bucket": "b"}}}
        )
        first = MagicMock()
        second = MagicMock()
        disk = manager.get_disk(s3_client=first)
        again = manager.get_disk("remote", s3_client=second)
        assert again is disk
        assert again.client is first

    def test_client_ignored_for_other_drivers(self):
        manager = DiskManager({"mem": {"driver": "memory"}})
        assert isinstance(manager.get_disk("mem", s3_client=MagicMock()), MemoryDisk)
