"""Immutable request values passed between the client, the signer and the transport."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

import httpx


@dataclass(frozen=True)
class RequestSpec:
    """
    What the caller asked for: method, path, query parameters and body.

    Attributes:
        method: HTTP method, upper-cased on construction
        path: Path relative to the base URL ("/" when empty)
        query_parameters: Query parameters merged over the base URL query
        body: JSON-serializable mapping sent as the request body
    """
    method: str
    path: str = "/"
    query_parameters: Mapping[str, Any] = field(default_factory=dict)
    body: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", self.path or "/")
        object.__setattr__(
            self, "query_parameters", MappingProxyType(dict(self.query_parameters or {}))
        )


@dataclass(frozen=True)
class PreparedRequest:
    """
    An HTTP request ready to be signed or sent.

    ``headers`` is a read-only mapping that keeps insertion order; use
    :meth:`get_header` for case-insensitive lookups.
    """
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of header ``name`` regardless of its case."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default


@dataclass(frozen=True)
class SignedRequest(PreparedRequest):
    """A request carrying its SigV4 signature, in headers or in the URL query."""

    @property
    def authorization(self) -> Optional[str]:
        return self.get_header("Authorization")

    @property
    def amz_date(self) -> Optional[str]:
        return self.get_header("X-Amz-Date")

    def to_httpx(self) -> httpx.Request:
        """Convert to an ``httpx.Request`` for a transport to execute."""
        return httpx.Request(
            self.method,
            self.url,
            headers=list(self.headers.items()),
            content=self.body,
        )
