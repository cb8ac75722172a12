"""Cache key generation logic."""

import hashlib
import json
from typing import Any
from urllib.parse import quote


def _escape(value: Any) -> str:
    # ':' '?' '&' '=' are key separators; escape them so parts cannot collide
    return quote(str(value), safe="")


def make_key(namespace: str, *parts: Any, **params: Any) -> str:
    """
    Build a readable cache key.

    Positional parts are joined with ``:``; keyword params follow as a sorted
    query string. Parts and param values are percent-escaped, so
    ``make_key("f", "a:b")`` and ``make_key("f", "a", "b")`` differ. ``None``
    params are dropped so optional filters that were not supplied share a key
    with calls that omit them.

    Example:
        >>> make_key("jobs", "property", 42, status="open", page=None)
        'jobs:property:42?status=open'
    """
    key = ":".join([namespace, *(_escape(p) for p in parts)])
    query = "&".join(
        f"{_escape(k)}={_escape(params[k])}" for k in sorted(params) if params[k] is not None
    )
    return f"{key}?{query}" if query else key


def hashed_key(namespace: str, payload: Any) -> str:
    """
    Build a fixed-length key from a JSON-serializable payload.

    Example:
        >>> hashed_key("jobs", {"status": "open", "ids": [1, 2]})  # doctest: +SKIP
        'jobs:3f1c0a9be2d47c55'
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
    return f"{namespace}:{digest}"
