"""Cache key construction.

Invalidation is pattern based, so a key is only as good as its prefix.
Two namespaces exist and nothing else writes keys:

  cache:<path>[?<query>]            HTTP responses, query string verbatim
  graphql:<operation>:<json args>   query-layer results, args sorted

Examples:
  cache:/api/public/news?mediaType=video
  graphql:newsById:{"id":"6650c1e2"}
"""

from __future__ import annotations

import json
from typing import Any

HTTP_PREFIX = "cache:"
QUERY_PREFIX = "graphql:"

_GLOB_SPECIAL = {"*": "[*]", "?": "[?]", "[": "[[]"}


def http_cache_key(path: str, query_string: str = "") -> str:
    """Key for an HTTP GET response.

    The query string is kept exactly as the client sent it; `?a=1&b=2`
    and `?b=2&a=1` are different keys at this layer.
    """
    if query_string:
        return f"{HTTP_PREFIX}{path}?{query_string}"
    return f"{HTTP_PREFIX}{path}"


def query_cache_key(operation: str, args: dict[str, Any] | None = None) -> str:
    """Key for a query-layer result.

    Argument names are sorted at every nesting level, so argument order
    never changes the key.
    """
    serialized = json.dumps(args or {}, sort_keys=True, separators=(",", ":"))
    return f"{QUERY_PREFIX}{operation}:{serialized}"


def query_namespace(operation: str) -> str:
    """Pattern matching every cached variant of one query operation."""
    return f"{QUERY_PREFIX}{operation}:*"


def glob_escape(value: str) -> str:
    """Escape glob metacharacters so `value` matches only itself.

    Uses bracket classes, which both Redis and fnmatch understand.
    """
    return "".join(_GLOB_SPECIAL.get(ch, ch) for ch in value)
