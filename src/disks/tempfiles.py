"""Materialize disk files as local scratch files."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import posixpath
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .streams import to_bytes

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .disk import Disk

logger = logging.getLogger(__name__)


@asynccontextmanager
async def temp_file(disk: Disk, path: str, *, keep: bool = False) -> AsyncIterator[Path]:
    """Stream *path* from *disk* into a local temporary file and yield its path.

    The file keeps the extension of *path*.  It is removed when the block
    exits unless *keep* is True, in which case cleanup is the caller's job.
    Errors from the disk (e.g. ``PathNotFoundError``) propagate before any
    file is created.
    """
    stream = await disk.create_read_stream(path)
    _, suffix = posixpath.splitext(path.rstrip("/"))
    fd, tmp_name = tempfile.mkstemp(suffix=suffix)
    local_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            async for chunk in stream:
                await asyncio.to_thread(handle.write, to_bytes(chunk))
        yield local_path
    finally:
        if not keep:
            with contextlib.suppress(FileNotFoundError):
                local_path.unlink()
        else:
            logger.debug("Keeping temp copy of %s at %s", path, local_path)
