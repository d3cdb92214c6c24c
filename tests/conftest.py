"""Shared fixtures for disk tests."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any

import pytest
from botocore.exceptions import ClientError

from disks.drivers.local import LocalDisk
from disks.drivers.memory import MemoryDisk
from disks.drivers.s3 import S3Disk

if TYPE_CHECKING:
    from pathlib import Path


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client.

    Implements the handful of calls S3Disk makes, with the same error codes
    and ``list_objects_v2`` paging behavior as S3 (contents and common
    prefixes share the ``MaxKeys`` budget, in lexical order).
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls: list[dict[str, Any]] = []
        self.list_calls: list[dict[str, Any]] = []

    def add(self, bucket: str, key: str, body: bytes = b"") -> None:
        self.objects[(bucket, key)] = body

    def keys(self, bucket: str) -> list[str]:
        return sorted(key for b, key in self.objects if b == bucket)

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}

    def head_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self.objects:
            raise client_error("404", "HeadObject")
        return {"ContentLength": len(self.objects[(Bucket, Key)])}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **extra: Any) -> dict[str, Any]:
        self.put_calls.append({"Bucket": Bucket, "Key": Key, **extra})
        self.objects[(Bucket, Key)] = bytes(Body)
        return {}

    def delete_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        self.objects.pop((Bucket, Key), None)
        return {}

    def list_objects_v2(
        self,
        *,
        Bucket: str,
        Prefix: str = "",
        Delimiter: str = "",
        MaxKeys: int = 1000,
        ContinuationToken: str | None = None,
    ) -> dict[str, Any]:
        self.list_calls.append(
            {"Prefix": Prefix, "MaxKeys": MaxKeys, "ContinuationToken": ContinuationToken}
        )
        entries: list[tuple[str, bool]] = []
        seen_prefixes: set[str] = set()
        for key in self.keys(Bucket):
            if not key.startswith(Prefix):
                continue
            rest = key[len(Prefix) :]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest[: rest.index(Delimiter) + 1]
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    entries.append((common, True))
            else:
                entries.append((key, False))

        start = int(ContinuationToken) if ContinuationToken else 0
        page = entries[start : start + MaxKeys]
        truncated = start + MaxKeys < len(entries)
        response: dict[str, Any] = {
            "Contents": [{"Key": key} for key, is_prefix in page if not is_prefix],
            "CommonPrefixes": [{"Prefix": key} for key, is_prefix in page if is_prefix],
            "IsTruncated": truncated,
        }
        if truncated:
            response["NextContinuationToken"] = str(start + MaxKeys)
        return response

    def generate_presigned_url(
        self, operation: str, Params: dict[str, Any], ExpiresIn: int = 3600
    ) -> str:
        return (
            f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}"
            f"?X-Amz-Date=20240101T000000Z&X-Amz-Expires={ExpiresIn}&X-Amz-Signature=fake"
        )


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def s3_disk(s3_client: FakeS3Client) -> S3Disk:
    """S3Disk on bucket "test-bucket" under the "files" prefix."""
    return S3Disk({"bucket": "test-bucket", "root": "/files/"}, "remote", client=s3_client)


@pytest.fixture
def memory_disk() -> MemoryDisk:
    return MemoryDisk()


@pytest.fixture
def local_disk(tmp_path: Path) -> LocalDisk:
    """LocalDisk rooted at a "root" directory inside the temporary directory."""
    root = tmp_path / "root"
    root.mkdir()
    return LocalDisk({"root": str(root)}, "local")


@pytest.fixture(params=["memory", "local"])
def fs_disk(request: pytest.FixtureRequest, tmp_path: Path) -> MemoryDisk | LocalDisk:
    """Every filesystem-like disk, for behavior they must share."""
    if request.param == "memory":
        return MemoryDisk()
    root = tmp_path / "root"
    root.mkdir()
    return LocalDisk({"root": str(root)})
