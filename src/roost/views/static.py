"""Admin static assets.

Only the two files admin pages reference are served. Every other path
under the static prefix is a 404, whatever exists on disk.
"""

from __future__ import annotations

from functools import cache
from importlib.resources import files
from typing import TYPE_CHECKING

from roost.errors import RouteNotFound
from roost.http.response import Response
from roost.views import SAFE_METHODS, require_method

if TYPE_CHECKING:
    from roost.admin.site import AdminSite
    from roost.http.request import Request

ALLOWED_ASSETS: dict[str, str] = {
    "css/admin.css": "text/css; charset=utf-8",
    "js/admin.js": "application/javascript; charset=utf-8",
}

CACHE_CONTROL = "public, max-age=3600"


@cache
def load_asset(path: str) -> bytes:
    """Bytes of an allow-listed asset shipped in ``roost/static``."""
    if path not in ALLOWED_ASSETS:
        raise RouteNotFound
    folder, name = path.split("/")
    return files("roost").joinpath("static", folder, name).read_bytes()


async def static_view(request: Request, site: AdminSite) -> Response:
    require_method(request, SAFE_METHODS)
    path = f"{request.path_params.get('folder', '')}/{request.path_params.get('file', '')}"
    body = load_asset(path)
    return (
        Response(body=body, content_type=ALLOWED_ASSETS[path])
        .with_header("Cache-Control", CACHE_CONTROL)
        .with_header("X-Content-Type-Options", "nosniff")
    )
