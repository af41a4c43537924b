"""Admin index: the list of registered models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from roost.views import SAFE_METHODS, require_method

if TYPE_CHECKING:
    from roost.admin.site import AdminSite
    from roost.http.request import Request
    from roost.http.response import Response

INDEX_TEMPLATE = "admin/index.html"


async def index_view(request: Request, site: AdminSite) -> Response:
    require_method(request, SAFE_METHODS)
    return site.render(request, INDEX_TEMPLATE, {"title": site.title})
