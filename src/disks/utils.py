"""Path utilities, key prefixes, URL joining."""

from __future__ import annotations

import os
import posixpath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import ModuleType

SEP = "/"
"""Separator used for virtual paths regardless of the runtime OS."""


# =============================================================================
# Virtual Path Resolution
# =============================================================================


def normalize_virtual_path(path: str | None) -> str:
    """Normalize a virtual path as if it were rooted at ``/``.

    - Ensures a single leading /
    - Resolves .. and . references, clamping at the root
    - Removes double and trailing slashes

    Examples:
        normalize_virtual_path("foo.txt") -> "/foo.txt"
        normalize_virtual_path("/foo//bar.txt") -> "/foo/bar.txt"
        normalize_virtual_path("../../etc/passwd") -> "/etc/passwd"
        normalize_virtual_path("/foo/") -> "/foo"
        normalize_virtual_path(None) -> "/"
    """
    if not path:
        return SEP

    path = str(path).strip()
    # normpath keeps a leading "//" intact (POSIX allows it), so strip and
    # re-add the root ourselves.
    normalized = posixpath.normpath(SEP + path).lstrip(SEP)
    if normalized in ("", "."):
        return SEP
    return SEP + normalized


def resolve_path_under_root(
    root: str,
    path: str | None,
    path_module: ModuleType = os.path,
) -> str:
    """Resolve a virtual path to a real path contained in *root*.

    The virtual path is normalized against a synthetic ``/`` first, so the
    relative part that gets joined onto *root* never contains ``..``.  The
    result is *root* itself or one of its descendants.

    *path_module* is the path flavor of the backend (``os.path`` for the local
    filesystem, ``posixpath`` for in-memory volumes).
    """
    relative = normalize_virtual_path(path).lstrip(SEP)
    if not relative:
        return root
    return path_module.normpath(path_module.join(root, *relative.split(SEP)))


def sanitize_path_on_disk(path: str | None) -> str:
    """Treat any path (absolute or relative) as relative to the disk root.

    Used for object-store keys, which are literal: only surrounding
    whitespace and leading separators are removed.
    """
    if not path:
        return ""
    return str(path).strip().lstrip(SEP)


def sanitize_key_prefix(raw: str | None) -> str:
    """Return a key prefix with no leading ``/`` and one trailing ``/``.

    Examples:
        sanitize_key_prefix("/foo/bar/") -> "foo/bar/"
        sanitize_key_prefix(" foo ") -> "foo/"
        sanitize_key_prefix("/") -> ""
    """
    if not raw:
        return ""
    prefix = str(raw).strip().strip(SEP).strip()
    return f"{prefix}{SEP}" if prefix else ""


def is_directory_key(key: str) -> bool:
    """Object keys ending in ``/`` are directory markers."""
    return key.endswith(SEP)


# =============================================================================
# URLs
# =============================================================================


def join_url(base: str, *parts: str | None) -> str:
    """Join URL path segments onto *base* with exactly one ``/`` between them."""
    url = base.rstrip(SEP)
    for part in parts:
        segment = sanitize_path_on_disk(part).rstrip(SEP) if part else ""
        if segment:
            url = f"{url}{SEP}{segment}"
    return url
