"""Tests for the ASGI app: lifespan, error responses, and response sending."""

from typing import Any

import pytest

from roost.admin.site import AdminSite
from roost.app import AdminApp
from roost.config import AdminConfig
from roost.data import Database
from roost.errors import MethodNotAllowed, ObjectNotFound, Unauthenticated
from roost.http.request import Request
from roost.http.response import Response
from roost.server.errors import handle_http_error, handle_internal_error
from roost.server.handler import send_response


async def _lifespan(app: AdminApp, *messages: str) -> list[dict[str, Any]]:
    incoming = iter([{"type": f"lifespan.{m}"} for m in messages])
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return next(incoming)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app({"type": "lifespan"}, receive, send)
    return sent


def _request(*, fragment: bool = False) -> Request:
    headers = [(b"hx-request", b"true")] if fragment else []

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b""}

    return Request.from_asgi({"method": "GET", "path": "/admin/x/", "headers": headers}, receive)


class TestLifespan:
    async def test_startup_and_shutdown(self) -> None:
        db = Database("sqlite:///:memory:")
        app = AdminApp(AdminSite(AdminConfig(secret_key="s")), database=db)
        calls: list[str] = []

        @app.on_startup
        async def warm() -> None:
            calls.append(f"startup connected={db.connected}")

        @app.on_shutdown
        def close() -> None:
            calls.append("shutdown")

        sent = await _lifespan(app, "startup", "shutdown")
        assert [m["type"] for m in sent] == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
        assert calls == ["startup connected=True", "shutdown"]
        assert not db.connected

    async def test_startup_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        app = AdminApp(AdminSite(AdminConfig(secret_key="s")))

        @app.on_startup
        def boom() -> None:
            raise RuntimeError("cannot warm cache")

        sent = await _lifespan(app, "startup")
        assert sent == [{"type": "lifespan.startup.failed", "message": "cannot warm cache"}]
        assert "Admin startup failed" in caplog.text

    def test_repr(self) -> None:
        assert repr(AdminApp(AdminSite())).startswith("<AdminApp ")


class TestErrorResponses:
    def test_plain_text(self) -> None:
        response = handle_http_error(ObjectNotFound(), _request())
        assert response.status == 404
        assert response.text == "Object not found"
        assert response.content_type == "text/plain; charset=utf-8"
        assert response.header("HX-Retarget") is None

    def test_exception_headers_copied(self) -> None:
        response = handle_http_error(MethodNotAllowed(frozenset({"POST", "GET"})), _request())
        assert response.status == 405
        assert response.header("Allow") == "GET, POST"

    def test_fragment(self) -> None:
        response = handle_http_error(ObjectNotFound('<b>"gone"</b>'), _request(fragment=True))
        assert response.text == '<div class="roost-error" data-status="404">&lt;b&gt;&quot;gone&quot;&lt;/b&gt;</div>'
        assert response.header("HX-Retarget") == "#roost-error"
        assert response.header("HX-Reswap") == "innerHTML"
        assert response.header("HX-Trigger") == "roostError"

    def test_debug_prefixes_status(self) -> None:
        assert handle_http_error(ObjectNotFound(), _request(), debug=True).text == "404: Object not found"

    def test_unauthenticated_redirect(self) -> None:
        response = handle_http_error(Unauthenticated("/admin/login/?next=%2Fadmin%2F"), _request())
        assert response.status == 302
        assert response.header("Location") == "/admin/login/?next=%2Fadmin%2F"
        assert response.header("HX-Redirect") == "/admin/login/?next=%2Fadmin%2F"

    def test_internal_error_hides_cause(self, caplog: pytest.LogCaptureFixture) -> None:
        response = handle_internal_error(RuntimeError("password=hunter2"), _request())
        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert "password=hunter2" in caplog.text

    def test_internal_error_fragment(self) -> None:
        response = handle_internal_error(RuntimeError("x"), _request(fragment=True))
        assert 'data-status="500"' in response.text
        assert response.header("HX-Retarget") == "#roost-error"


class TestSender:
    async def _send(self, response: Response, *, head: bool = False) -> list[dict[str, Any]]:
        sent: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await send_response(response, send, head=head)
        return sent

    async def test_headers_and_body(self) -> None:
        response = Response("héllo").with_header("X-Admin-Token", "t").with_cookie("adminToken", "t", path="/admin")
        start, body = await self._send(response)
        headers = dict(start["headers"])
        assert start["status"] == 200
        assert headers[b"content-type"] == b"text/html; charset=utf-8"
        assert headers[b"x-admin-token"] == b"t"
        assert headers[b"set-cookie"].startswith(b"adminToken=t;")
        assert headers[b"content-length"] == b"6"
        assert body["body"] == "héllo".encode()

    async def test_head_keeps_length(self) -> None:
        start, body = await self._send(Response("abc"), head=True)
        assert dict(start["headers"])[b"content-length"] == b"3"
        assert body["body"] == b""

    @pytest.mark.parametrize("status", [204, 304])
    async def test_bodyless_status(self, status: int) -> None:
        start, body = await self._send(Response("ignored", status=status))
        assert dict(start["headers"])[b"content-length"] == b"0"
        assert body["body"] == b""

