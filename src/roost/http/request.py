"""The admin's view of an incoming HTTP request.

Built once per ASGI scope by the handler. Everything the admin reads
(method, path, changelist query, auth header and cookie, peer address)
is frozen at construction; the body is read lazily, at most once, and
shared by the copy the dispatcher makes when it fills in
``path_params``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from roost._internal.asgi import Receive
from roost.http.headers import Headers
from roost.http.params import QueryParams

if TYPE_CHECKING:
    from roost.http.params import FormData

_DEFAULT_FORM_TYPE = "application/x-www-form-urlencoded"


def parse_cookie_header(header: str) -> dict[str, str]:
    """``Cookie`` header to ``{name: value}``. A repeated name keeps its first value."""
    jar: dict[str, str] = {}
    for item in header.split(";"):
        name, sep, value = item.partition("=")
        name = name.strip()
        if sep and name and name not in jar:
            jar[name] = value.strip()
    return jar


@dataclass(frozen=True, slots=True)
class Request:
    """An admin request. Use ``from_asgi`` to build one."""

    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    client_host: str | None = None
    path_params: dict[str, str] = field(default_factory=dict)

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    # Holds "body" and "form" once read; copies share the same dict.
    _loaded: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive) -> Request:
        headers = Headers(tuple(scope.get("headers", ())))
        peer = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookie_header(headers.get("cookie", "")),
            client_host=peer[0] if peer else None,
            _receive=receive,
        )

    @property
    def is_fragment(self) -> bool:
        """Sent by htmx from a changelist or form, wanting a partial page."""
        return self.headers.get("hx-request") == "true"

    @property
    def full_path(self) -> str:
        """Path plus query string; the ``next`` target after login."""
        return f"{self.path}?{self.query.raw}" if self.query.raw else self.path

    def with_path_params(self, params: dict[str, str]) -> Request:
        return replace(self, path_params=params)

    async def body(self) -> bytes:
        """The whole request body, read from ASGI on first call."""
        if "body" not in self._loaded:
            chunks: list[bytes] = []
            more = self._receive is not None
            while more:
                message = await self._receive()
                chunks.append(message.get("body", b""))
                more = message.get("more_body", False)
            self._loaded["body"] = b"".join(chunks)
        return self._loaded["body"]

    async def form(self) -> FormData:
        """The body parsed as URL-encoded or multipart form data.

        Raises:
            ValueError: Multipart body without a boundary.
        """
        if "form" not in self._loaded:
            from roost.http.forms import parse_form_data

            content_type = self.headers.get("content-type") or _DEFAULT_FORM_TYPE
            self._loaded["form"] = parse_form_data(await self.body(), content_type)
        return self._loaded["form"]
