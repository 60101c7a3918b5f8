"""Route canonicalization used when matching contract and code endpoints."""

import re

_REPEATED_SLASHES = re.compile(r"/{2,}")
_DYNAMIC_SEGMENT = re.compile(r"/:[^/]+")


def normalize_path(path: str) -> str:
    """Canonicalize a route for equality comparison.

    Strips one leading and one trailing slash, drops ``/:param`` segments and
    collapses repeated slashes, so ``/users/:id/posts/`` becomes
    ``users/posts``. Case, query strings and percent-encoding are left alone.
    """
    # Collapsing up front keeps the function idempotent for inputs like "//a".
    path = _REPEATED_SLASHES.sub("/", path)
    if path.startswith("/"):
        path = path[1:]
    path = _DYNAMIC_SEGMENT.sub("", path)
    if path.endswith("/"):
        path = path[:-1]
    return _REPEATED_SLASHES.sub("/", path)
