"""URL composition for DEP API requests.

The query string is part of the signed canonical request, so it is always
serialized in ascending key order with RFC 3986 percent-encoding.
"""

import re
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

# Characters httpx leaves as they are in a path.
PATH_SAFE = "/~!$&'()*+,;=:@"

_ESCAPE = re.compile(r"(%[0-9A-Fa-f]{2})")


def join_path(base_path: str, path: Optional[str]) -> str:
    """Append ``path`` to ``base_path`` with exactly one separator between them."""
    endpoint = "/" + path.lstrip("/") if path else "/"
    endpoint = endpoint.rstrip("?")
    if not base_path:
        return endpoint
    return base_path.rstrip("/") + endpoint


def quote_path(path: str) -> str:
    """
    Percent-encode a path into the form it takes on the wire.

    Existing ``%XX`` escapes are kept, so quoting is idempotent.

    Example:
        >>> quote_path("/partner/café a%20b")
        '/partner/caf%C3%A9%20a%20b'
    """
    pieces = _ESCAPE.split(path)
    # Odd indexes hold the escapes matched by the split pattern.
    return "".join(
        piece if index % 2 else quote(piece, safe=PATH_SAFE)
        for index, piece in enumerate(pieces)
    )


def merge_query(base_query: str, query_parameters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """
    Merge the base URL query with caller parameters, caller values winning.

    ``None`` values are dropped; other values are converted with ``str()``.
    The result is ordered by ascending key.
    """
    merged: dict[str, Any] = dict(parse_qsl(base_query, keep_blank_values=True))
    merged.update(query_parameters or {})
    return {key: str(merged[key]) for key in sorted(merged) if merged[key] is not None}


def encode_query(parameters: Mapping[str, str]) -> str:
    """Serialize parameters with RFC 3986 encoding (space becomes %20)."""
    return "&".join(
        f"{quote(str(key), safe='')}={quote(str(value), safe='')}"
        for key, value in parameters.items()
    )


def build_url(
    base_url: str,
    path: Optional[str] = None,
    query_parameters: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Compose the request URL from the base URL, a path and query parameters.

    The path is percent-encoded here, so the URL is signed in the same form
    the transport sends it.

    Example:
        >>> build_url("https://api.example.com/v1/", "/partner/1", {"b": "2", "a": "x y"})
        'https://api.example.com/v1/partner/1?a=x%20y&b=2'
    """
    parts = urlsplit(base_url)
    query = encode_query(merge_query(parts.query, query_parameters))
    return urlunsplit((
        parts.scheme,
        parts.netloc,
        quote_path(join_path(parts.path, path)),
        query,
        parts.fragment,
    ))
