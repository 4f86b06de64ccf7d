"""
Cache key derivation.
"""

from typing import Any, Mapping


def _literal_path(scope: Mapping[str, Any]) -> str:
    raw_path = scope.get("raw_path")
    if isinstance(raw_path, (bytes, bytearray)) and raw_path:
        # some servers include the query in raw_path; it is keyed separately
        path = bytes(raw_path).split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope.get("path")
        if not isinstance(path, str):
            path = ""
    return path or "/"


def derive_cache_key(scope: Mapping[str, Any]) -> str:
    """Return the cache key for a request: its path as sent plus the raw query string.

    The method is ignored and nothing is normalised, so ``/x`` and ``/x/``,
    ``/a-b`` and ``/a%2Db``, or ``?a=1&b=2`` and ``?b=2&a=1`` are different
    keys. Never raises; a request without a path maps to ``/``.
    """
    path = _literal_path(scope)

    query = scope.get("query_string") or b""
    if isinstance(query, (bytes, bytearray)):
        # latin-1 maps every byte, so malformed UTF-8 still yields a stable key
        query = bytes(query).decode("latin-1")
    elif not isinstance(query, str):
        query = ""

    if query:
        return f"{path}?{query}"
    return path
