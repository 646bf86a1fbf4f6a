"""Immutable HTTP request.

Frozen metadata handed to handlers as the ``request`` context value.
Perch does not parse requests itself; the hosting layer builds one of
these and passes it in.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import parse_qsl


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Header names are stored lower-cased so lookups are case-insensitive.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def create(
        cls,
        method: str = "GET",
        path: str = "/",
        *,
        headers: Mapping[str, str] | None = None,
        query_string: str = "",
        body: bytes = b"",
    ) -> Request:
        """Build a request from plain values."""
        normalized = {k.lower(): v for k, v in (headers or {}).items()}
        return cls(
            method=method.upper(),
            path=path,
            headers=MappingProxyType(normalized),
            query=MappingProxyType(dict(parse_qsl(query_string))),
            body=body,
        )

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def path_segments(self) -> tuple[str, ...]:
        """Non-empty path segments, in order.

        A router typically consumes the leading segments to locate the
        handler script and hands the rest to ``AppRunner`` as its
        path arguments.
        """
        return tuple(part for part in self.path.split("/") if part)
