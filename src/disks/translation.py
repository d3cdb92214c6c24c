"""Translation of backend error signals into the disk error taxonomy.

Backends report failures in their own vocabulary: ``OSError.errno`` values
for filesystem-like backends, error codes for the S3 client.  Each backend
first classifies its error into a :class:`BackendSignal`; the table below
then decides which :class:`~disks.exceptions.DiskError` the caller sees for
a given :class:`Operation`.  Anything without a rule propagates unchanged.
"""

from __future__ import annotations

import errno
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from .exceptions import (
    DiskError,
    NotADirectoryPathError,
    NotAFileError,
    NotWritableDestinationError,
    PathNotFoundError,
)


class Operation(Enum):
    """Disk operations that have translation rules."""

    READ = "read"
    READ_STREAM = "read_stream"
    PREPARE_WRITE = "prepare_write"
    WRITE = "write"
    DELETE = "delete"
    LIST = "list"


class BackendSignal(Enum):
    """Backend-agnostic meaning of a backend failure."""

    MISSING = "missing"
    IS_DIRECTORY = "is_directory"
    NOT_A_DIRECTORY = "not_a_directory"
    EXISTS = "exists"
    ACCESS_DENIED = "access_denied"
    NOT_PERMITTED = "not_permitted"


_ERRNO_SIGNALS: dict[int, BackendSignal] = {
    errno.ENOENT: BackendSignal.MISSING,
    errno.EISDIR: BackendSignal.IS_DIRECTORY,
    errno.ENOTDIR: BackendSignal.NOT_A_DIRECTORY,
    errno.EEXIST: BackendSignal.EXISTS,
    errno.EACCES: BackendSignal.ACCESS_DENIED,
    errno.EPERM: BackendSignal.NOT_PERMITTED,
}

_RULES: dict[Operation, dict[BackendSignal, type[DiskError]]] = {
    Operation.READ: {
        BackendSignal.MISSING: PathNotFoundError,
        BackendSignal.IS_DIRECTORY: NotAFileError,
    },
    Operation.READ_STREAM: {
        BackendSignal.MISSING: PathNotFoundError,
        BackendSignal.IS_DIRECTORY: NotAFileError,
    },
    # mkdir-parents collides with an existing non-directory: EEXIST from the
    # os module, ENOTDIR when the collision is further up the path.
    Operation.PREPARE_WRITE: {
        BackendSignal.EXISTS: NotWritableDestinationError,
        BackendSignal.NOT_A_DIRECTORY: NotWritableDestinationError,
    },
    Operation.WRITE: {
        BackendSignal.IS_DIRECTORY: NotWritableDestinationError,
        BackendSignal.ACCESS_DENIED: NotWritableDestinationError,
    },
    # unlink() on a directory is EISDIR on Linux and EPERM on macOS.
    Operation.DELETE: {
        BackendSignal.MISSING: PathNotFoundError,
        BackendSignal.IS_DIRECTORY: NotAFileError,
        BackendSignal.NOT_PERMITTED: NotAFileError,
    },
    Operation.LIST: {
        BackendSignal.MISSING: PathNotFoundError,
        BackendSignal.NOT_A_DIRECTORY: NotADirectoryPathError,
    },
}


def signal_from_errno(code: int | None) -> BackendSignal | None:
    """Classify an ``errno`` value, or return None if it has no meaning here."""
    if code is None:
        return None
    return _ERRNO_SIGNALS.get(code)


def translate_signal(
    signal: BackendSignal | None,
    operation: Operation,
    path: str | None,
) -> DiskError | None:
    """Return the translated error for *signal* during *operation*, if any."""
    if signal is None:
        return None
    kind = _RULES[operation].get(signal)
    if kind is None:
        return None
    return kind(path)


def translate_os_error(error: OSError, operation: Operation, path: str | None) -> BaseException:
    """Translate *error* or hand it back unchanged when no rule matches."""
    translated = translate_signal(signal_from_errno(error.errno), operation, path)
    return translated if translated is not None else error


@contextmanager
def translate_errors(operation: Operation, path: str | None) -> Iterator[None]:
    """Translate ``OSError``s raised inside the block.

    Usage::

        with translate_errors(Operation.READ, path):
            return await fs.read_file(full_path)
    """
    try:
        yield
    except OSError as error:
        translated = translate_os_error(error, operation, path)
        if translated is error:
            raise
        raise translated from error
