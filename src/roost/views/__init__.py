"""Admin views.

Every view is ``async def view(request, site[, model_admin]) -> Response``.
The ASGI app resolves the route, authenticates the request, and looks up
the ModelAdmin before calling in; views raise ``HTTPError`` subclasses
instead of building error responses by hand.
"""

from roost.errors import MethodNotAllowed
from roost.http.request import Request

SAFE_METHODS = frozenset({"GET", "HEAD"})
FORM_METHODS = frozenset({"GET", "HEAD", "POST"})


def require_method(request: Request, allowed: frozenset[str]) -> None:
    """Raise ``MethodNotAllowed`` unless the request method is in *allowed*."""
    if request.method not in allowed:
        raise MethodNotAllowed(allowed)
