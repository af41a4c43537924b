"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. The admin-specific helpers
(``with_admin_token``, ``with_admin_redirect``, ``with_admin_logout``)
emit the ``X-Admin-*`` headers that ``admin.js`` acts on: the script
must store or clear the token *before* navigating, which a plain
redirect header would not allow.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Cookie:
    """A ``Set-Cookie`` directive. Admin cookies are always ``HttpOnly``."""

    name: str
    value: str
    path: str = "/"
    max_age: int | None = None
    secure: bool = False
    samesite: str = "Strict"

    def header_value(self) -> str:
        attrs = [f"{self.name}={self.value}", f"Path={self.path}"]
        if self.max_age is not None:
            attrs.append(f"Max-Age={self.max_age}")
        if self.secure:
            attrs.append("Secure")
        attrs += ["HttpOnly", f"SameSite={self.samesite}"]
        return "; ".join(attrs)


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[Cookie, ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        path: str = "/",
        max_age: int | None = None,
        secure: bool = False,
    ) -> Response:
        """Return a new Response that sets cookie *name*."""
        cookie = Cookie(name, value, path=path, max_age=max_age, secure=secure)
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Return a new Response that expires cookie *name* (``Max-Age=0``)."""
        return replace(self, cookies=(*self.cookies, Cookie(name, "", path=path, max_age=0)))

    # -- htmx / admin.js signalling --

    def with_hx_redirect(self, url: str) -> Response:
        """Tell htmx to do a full-page redirect (``HX-Redirect``)."""
        return self.with_header("HX-Redirect", url)

    def with_admin_token(self, token: str) -> Response:
        """Hand a freshly issued token to admin.js (``X-Admin-Token``)."""
        return self.with_header("X-Admin-Token", token)

    def with_admin_redirect(self, url: str) -> Response:
        """Ask admin.js to navigate after storing state (``X-Admin-Redirect``)."""
        return self.with_header("X-Admin-Redirect", url)

    def with_admin_logout(self) -> Response:
        """Ask admin.js to drop its stored token (``X-Admin-Logout``)."""
        return self.with_header("X-Admin-Logout", "true")

    # -- Inspection --

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        lower = name.lower()
        for key, value in self.headers:
            if key.lower() == lower:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


def Redirect(url: str, *, status: int = 302, htmx: bool = True) -> Response:  # noqa: N802
    """Build a redirect response.

    With ``htmx=True`` (the default) the ``HX-Redirect`` header is added
    alongside ``Location`` so fragment requests navigate too.
    """
    response = Response(body="", status=status).with_header("Location", url)
    if htmx:
        response = response.with_hx_redirect(url)
    return response
