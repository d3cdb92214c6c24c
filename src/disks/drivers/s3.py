"""S3Disk: a disk on an S3-compatible object store.

Works with AWS S3, MinIO, and any S3-compatible service.

All boto3 calls are wrapped in asyncio.to_thread() to avoid blocking
the event loop (boto3 is synchronous).

Objects whose keys end in ``/`` are directory markers; every other object is
a file.  This matches the way the S3 console emulates a filesystem.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs, urlparse

import boto3
from botocore.exceptions import ClientError

from disks.disk import DEFAULT_TEMPORARY_URL_EXPIRY, Disk
from disks.exceptions import (
    CapabilityNotSupportedError,
    NotAFileError,
    NotWritableDestinationError,
)
from disks.fs.listing import directory_listing, file_listing, order_listings
from disks.streams import DEFAULT_CHUNK_SIZE, is_stream_body, stream_to_bytes, to_bytes
from disks.translation import BackendSignal, Operation, translate_signal
from disks.utils import SEP, is_directory_key, join_url, sanitize_key_prefix, sanitize_path_on_disk

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from disks.streams import Body, WritableStream
    from disks.types import DiskListingObject

logger = logging.getLogger(__name__)

DEFAULT_PAGING_LIMIT = 1000

_MISSING_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def signal_from_client_error(error: ClientError) -> BackendSignal | None:
    """Classify a botocore ClientError, or return None if it has no meaning here."""
    code = str(error.response.get("Error", {}).get("Code", ""))
    if code in _MISSING_CODES:
        return BackendSignal.MISSING
    return None


def _parse_int(raw: object) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


@dataclass
class BucketListing:
    """Files and directories gathered from one or more listing pages."""

    files: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)


@dataclass
class BucketListingPage(BucketListing):
    """A single ``list_objects_v2`` page; ``next`` is None on the last page."""

    next: str | None = None


class S3Disk(Disk):
    """A disk on a remote S3 bucket.

    Config:
        bucket: The bucket to use (required).
        root: Key prefix for every object on the disk.
        url: Base URL objects are served from; defaults to
            ``https://<bucket>.s3.amazonaws.com/<root>``.
        paging_limit: Keys per ``list_objects_v2`` page (max 1000).
        expires: Seconds from upload to set ``Expires`` and
            ``Cache-Control: max-age`` on written objects.
        put_params: Extra arguments merged into every ``put_object`` call.
        client_config: Keyword arguments for ``boto3.client("s3", ...)``.

    Args:
        config: Disk config as above.
        name: Name the disk is registered under.
        client: Pre-built S3 client to use instead of creating one.
    """

    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        name: str | None = None,
        client: Any = None,
    ) -> None:
        super().__init__(config, name)
        bucket = self.config.get("bucket")
        if not bucket:
            raise ValueError("Missing config value `bucket` for `s3` disk.")
        self.bucket: str = str(bucket)
        self.key_prefix: str = sanitize_key_prefix(self.config.get("root"))
        self.paging_limit: int = _parse_int(self.config.get("paging_limit")) or DEFAULT_PAGING_LIMIT
        self.expires: int | None = _parse_int(self.config.get("expires"))
        if client is None:
            client = boto3.client("s3", **dict(self.config.get("client_config") or {}))
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    def set_client(self, client: Any) -> None:
        """Replace the S3 client used for every subsequent call."""
        self._client = client

    def __repr__(self) -> str:
        return f"S3Disk(name={self.name!r}, bucket={self.bucket!r}, prefix={self.key_prefix!r})"

    # =========================================================================
    # Keys & Params
    # =========================================================================

    def get_key(self, path: str | None) -> str:
        """Build the full object key for a path on the disk."""
        return self.key_prefix + sanitize_path_on_disk(path)

    def _object_params(self, path: str | None) -> dict[str, Any]:
        return {"Bucket": self.bucket, "Key": self.get_key(path)}

    def _put_params(self, path: str) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.expires:
            params["Expires"] = datetime.now(UTC) + timedelta(seconds=self.expires)
            params["CacheControl"] = f"max-age={self.expires}"
        params.update(self.config.get("put_params") or {})
        params.update(self._object_params(path))
        return params

    async def _call(self, method: str, **params: Any) -> Any:
        return await asyncio.to_thread(getattr(self._client, method), **params)

    def _translate(self, error: ClientError, operation: Operation, path: str) -> BaseException:
        translated = translate_signal(signal_from_client_error(error), operation, path)
        return translated if translated is not None else error

    # =========================================================================
    # Read
    # =========================================================================

    async def read(self, path: str) -> bytes:
        params = self._object_params(path)
        try:
            response = await self._call("get_object", **params)
        except ClientError as e:
            translated = self._translate(e, Operation.READ, path)
            if translated is e:
                raise
            raise translated from e
        # Checked after the fetch so a missing key reports as not found first.
        if is_directory_key(params["Key"]):
            raise NotAFileError(path)
        body = response.get("Body")
        if body is None:
            return b""
        return await asyncio.to_thread(body.read)

    async def create_read_stream(self, path: str) -> AsyncIterator[bytes]:
        params = self._object_params(path)
        await self._head(params, Operation.READ_STREAM, path)
        if is_directory_key(params["Key"]):
            raise NotAFileError(path)
        response = await self._call("get_object", **params)
        return self._iterate_body(response.get("Body"))

    @staticmethod
    async def _iterate_body(body: Any) -> AsyncIterator[bytes]:
        if body is None:
            return
        try:
            while True:
                chunk = await asyncio.to_thread(body.read, DEFAULT_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        finally:
            close = getattr(body, "close", None)
            if close is not None:
                close()

    async def _head(self, params: dict[str, Any], operation: Operation, path: str) -> Any:
        try:
            return await self._call("head_object", **params)
        except ClientError as e:
            translated = self._translate(e, operation, path)
            if translated is e:
                raise
            raise translated from e

    # =========================================================================
    # Write
    # =========================================================================

    async def _matches_directory_object(self, key: str) -> bool:
        """True if *key* is a directory marker or ``key + "/"`` exists.

        In S3 ``foo`` and ``foo/`` are distinct objects, but on a filesystem
        they would be the same entry, so writing ``foo`` is refused when the
        marker exists.
        """
        if is_directory_key(key):
            return True
        try:
            await self._call("head_object", Bucket=self.bucket, Key=f"{key}{SEP}")
        except ClientError as e:
            if signal_from_client_error(e) is BackendSignal.MISSING:
                return False
            raise
        return True

    async def write(self, path: str, body: Body) -> None:
        params = self._put_params(path)
        if await self._matches_directory_object(params["Key"]):
            raise NotWritableDestinationError(path)
        if is_stream_body(body):
            data = await stream_to_bytes(body)  # type: ignore[arg-type]
        else:
            data = to_bytes(body)  # type: ignore[arg-type]
        await self._call("put_object", Body=data, **params)

    async def create_write_stream(self, path: str) -> WritableStream:
        raise CapabilityNotSupportedError(
            "The s3 driver does not support direct write streams. "
            "Instead pass an async iterable as the body to `write`.",
            path,
        )

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self, path: str) -> None:
        params = self._object_params(path)
        if is_directory_key(params["Key"]):
            raise NotAFileError(path)
        await self._head(params, Operation.DELETE, path)
        await self._call("delete_object", **params)

    # =========================================================================
    # List
    # =========================================================================

    async def _list_page(
        self,
        prefix: str,
        continuation_token: str | None = None,
    ) -> BucketListingPage:
        """Fetch one page of the objects directly under *prefix*.

        Contents (files) and common prefixes (directories) are returned with
        *prefix* trimmed off; the prefix's own directory marker trims to an
        empty name and is dropped.
        """
        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "MaxKeys": self.paging_limit,
            "Prefix": prefix,
            "Delimiter": SEP,
        }
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        response = await self._call("list_objects_v2", **params)

        def trim(name: str | None) -> str:
            if not name:
                return ""
            return name[len(prefix) :] if name.startswith(prefix) else name

        files = [trim(obj.get("Key")) for obj in response.get("Contents") or []]
        directories = [trim(cp.get("Prefix")) for cp in response.get("CommonPrefixes") or []]
        next_token = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return BucketListingPage(
            files=[name for name in files if name],
            directories=[name for name in directories if name],
            next=next_token or None,
        )

    async def list_all_objects(self, prefix: str) -> BucketListing:
        """Collect every page under *prefix*, in order.

        Pages depend on the previous page's continuation token, so they are
        fetched one after another.  The result may contain duplicates.
        """
        listing = BucketListing()
        token: str | None = None
        pages = 0
        while True:
            page = await self._list_page(prefix, token)
            pages += 1
            listing.files.extend(page.files)
            listing.directories.extend(page.directories)
            if not page.next:
                break
            token = page.next
        logger.debug("Listed %s in %d page(s)", prefix or "(bucket root)", pages)
        return listing

    async def list(self, path: str | None = None) -> list[DiskListingObject]:
        """List the objects under a prefix.

        Never raises ``PathNotFoundError`` or ``NotADirectoryPathError``:
        objects can exist under a prefix without a marker for it (and vice
        versa), so a missing prefix is just an empty listing.
        """
        prefix = self.key_prefix + sanitize_key_prefix(path)
        raw = await self.list_all_objects(prefix)
        directories = [directory_listing(name) for name in dict.fromkeys(raw.directories)]
        files = [file_listing(name) for name in dict.fromkeys(raw.files)]
        return order_listings(directories + files)

    # =========================================================================
    # URLs
    # =========================================================================

    def get_url_base(self) -> str | None:
        base = super().get_url_base()
        if base is not None:
            return base
        return join_url(f"https://{self.bucket}.s3.amazonaws.com", self.key_prefix)

    def get_temporary_url(
        self,
        path: str,
        expires: int = DEFAULT_TEMPORARY_URL_EXPIRY,
        fallback: bool | None = None,
    ) -> str | None:
        """Presigned GET URL for the object, valid for *expires* seconds."""
        return self._client.generate_presigned_url(
            "get_object",
            Params=self._object_params(path),
            ExpiresIn=expires,
        )

    def is_temporary_url_valid(self, url: str, against: datetime | None = None) -> bool | None:
        """Check whether a presigned URL has expired.

        Understands SigV2 (``Expires``) and SigV4 (``X-Amz-Date`` plus
        ``X-Amz-Expires``) URLs.  Returns None if *url* isn't a presigned
        URL.  The signature itself is not verified.
        """
        against = against or datetime.now(UTC)
        if against.tzinfo is None:
            against = against.replace(tzinfo=UTC)
        query = parse_qs(urlparse(url).query)

        expires = _parse_int(query.get("Expires", [None])[0])
        if expires is not None:
            return against < datetime.fromtimestamp(expires, tz=UTC)

        signed_at = query.get("X-Amz-Date", [None])[0]
        lifetime = _parse_int(query.get("X-Amz-Expires", [None])[0])
        if signed_at and lifetime is not None:
            try:
                start = datetime.strptime(signed_at, "%Y%m%dT%H%M%SZ").replace(tzinfo=UTC)
            except ValueError:
                return None
            return against < start + timedelta(seconds=lifetime)
        return None
