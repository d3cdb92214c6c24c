"""Async byte-stream protocols and helpers."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from typing import Protocol, runtime_checkable

DEFAULT_CHUNK_SIZE = 64 * 1024

ReadableStream = AsyncIterator[bytes]
"""A readable byte stream is an async iterator of chunks."""

Body = bytes | bytearray | str | AsyncIterable[bytes]
"""Anything accepted as the contents of a write."""


@runtime_checkable
class WritableStream(Protocol):
    """Sink for bytes returned by ``create_write_stream``.

    Nothing is committed until the stream is closed.  Streams are async
    context managers that close themselves on exit.
    """

    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...

    async def __aenter__(self) -> WritableStream: ...

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None: ...


def to_bytes(data: bytes | bytearray | str) -> bytes:
    """Coerce a chunk to bytes (``str`` is encoded as UTF-8)."""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def is_stream_body(body: object) -> bool:
    """True if *body* is an async iterable rather than an in-memory payload."""
    return not isinstance(body, bytes | bytearray | str) and isinstance(body, AsyncIterable)


async def stream_to_bytes(stream: AsyncIterable[bytes | bytearray | str]) -> bytes:
    """Drain a readable stream into memory."""
    parts = [to_bytes(chunk) async for chunk in stream]
    return b"".join(parts)


async def pipe_stream(source: AsyncIterable[bytes | bytearray | str], sink: WritableStream) -> int:
    """Drain *source* into *sink* and close the sink.

    Returns the number of bytes written.  Errors from either side propagate;
    the sink is closed either way.
    """
    written = 0
    try:
        async for chunk in source:
            data = to_bytes(chunk)
            if data:
                await sink.write(data)
                written += len(data)
    finally:
        await sink.close()
    return written


async def iterate_bytes(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Expose an in-memory payload as a readable stream."""
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]
