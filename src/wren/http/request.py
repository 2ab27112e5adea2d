"""Immutable HTTP request.

Frozen metadata with async body access. Built once per ASGI scope and
shared by every handler in the chain through ``ctx.request``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

from wren._internal.asgi import Receive, Scope
from wren.http.forms import URLENCODED, is_form, parse_form
from wren.http.headers import Headers
from wren.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    The body is read lazily via ``body()``, ``text()``, ``json()`` or
    ``form()`` and cached after the first read.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str
    client: tuple[str, int] | None

    _receive: Receive

    # Body and parsed form cache (dict contents mutate, the field does not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw.decode('latin-1')}"
        return self.path

    async def body(self) -> bytes:
        """Read the full request body. Cached after the first call."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield body chunks as the ASGI server delivers them."""
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def form(self) -> QueryParams:
        """Parse a URL-encoded or multipart form body.

        Any other content type yields an empty mapping without reading
        the body.
        """
        if "form" not in self._cache:
            ct = self.content_type or URLENCODED
            if is_form(ct):
                self._cache["form"] = parse_form(await self.body(), ct)
            else:
                self._cache["form"] = QueryParams()
        return self._cache["form"]

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
