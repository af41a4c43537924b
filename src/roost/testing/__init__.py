"""Testing utilities for roost admin apps.

Provides ``TestClient`` for sending requests through the ASGI interface
without an HTTP server, ``admin_token`` for authenticated requests, and
assertion helpers for redirects, htmx headers, and error fragments.

Usage::

    from roost.testing import TestClient, admin_token, assert_redirect

    async def test_changelist(app):
        async with TestClient(app, token=admin_token(app)) as client:
            response = await client.get("/admin/articlemodel/")
            assert response.status == 200
"""

from roost.testing.assertions import (
    assert_admin_logout,
    assert_admin_token,
    assert_hx_redirect,
    assert_hx_retarget,
    assert_is_error_fragment,
    assert_is_fragment,
    assert_redirect,
    hx_headers,
    set_cookies,
)
from roost.testing.client import TestClient, admin_token

__all__ = [
    "TestClient",
    "admin_token",
    "assert_admin_logout",
    "assert_admin_token",
    "assert_hx_redirect",
    "assert_hx_retarget",
    "assert_is_error_fragment",
    "assert_is_fragment",
    "assert_redirect",
    "hx_headers",
    "set_cookies",
]
