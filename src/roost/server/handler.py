"""ASGI handler: translates ASGI scope/messages to roost types.

The only component besides the app that touches raw ASGI. Builds a
typed Request, resolves the admin route, authenticates, invokes the
view, and writes the Response back through ASGI send().

Every route except login, logout and the static assets requires an
authenticated admin. Missing or invalid credentials redirect to the
login page with a ``next`` parameter; a valid token without the admin
claim is refused with 403.
"""

from __future__ import annotations

from contextvars import Token
from typing import TYPE_CHECKING

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.invoke import invoke
from roost.auth.guard import AuthGuardResult
from roost.context import request_var, user_var
from roost.errors import HTTPError, PermissionDenied, Unauthenticated
from roost.http.request import Request
from roost.http.response import Response
from roost.routing.pattern import CompiledRoute, ViewKind
from roost.server.errors import handle_http_error, handle_internal_error
from roost.templating import qs

if TYPE_CHECKING:
    from roost.admin.site import AdminSite

PUBLIC_VIEWS = frozenset({ViewKind.LOGIN, ViewKind.LOGOUT, ViewKind.STATIC})

# Statuses that never carry a body.
_BODYLESS = frozenset({204, 304})


async def handle_request(scope: Scope, receive: Receive, send: Send, *, site: AdminSite) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    # Set request context var (reset after dispatch)
    request_token: Token[Request] = request_var.set(request)
    user_token: Token[AuthGuardResult] | None = None

    try:
        match = site.resolve(request.path)
        request = request.with_path_params(match.params)
        request_var.set(request)

        user = await authorize(match.route, request, site)
        user_token = user_var.set(user)

        response = await _invoke_view(match.route, request, site)

    except HTTPError as exc:
        response = handle_http_error(exc, request, debug=site.config.debug)
    except Exception as exc:
        response = handle_internal_error(exc, request)
    finally:
        if user_token is not None:
            user_var.reset(user_token)
        request_var.reset(request_token)

    await send_response(response, send, head=request.method == "HEAD")


async def authorize(route: CompiledRoute, request: Request, site: AdminSite) -> AuthGuardResult:
    """Authenticate *request* and enforce access to *route*.

    Public routes always pass; the result is still returned so templates
    can tell a logged-in visitor apart.

    Raises:
        Unauthenticated: No valid token on a protected route.
        PermissionDenied: Valid token without the admin claim.
    """
    result = await site.guard.authenticate(request)
    if route.kind in PUBLIC_VIEWS:
        return result
    if not result.authenticated:
        raise Unauthenticated(qs(site.login_url, next=request.full_path))
    if not result.is_admin:
        raise PermissionDenied
    return result


async def _invoke_view(route: CompiledRoute, request: Request, site: AdminSite) -> Response:
    if route.model_name is None:
        return await invoke(route.handler, request, site=site)
    model_admin = site.get_model_admin_by_name(route.model_name)
    return await invoke(route.handler, request, site=site, model_admin=model_admin)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Write *response* as one ``http.response.start`` and one body message.

    A HEAD response carries the headers of the full response, including
    its ``content-length``, and an empty body.
    """
    bodyless = response.status < 200 or response.status in _BODYLESS
    body = b"" if bodyless else response.body_bytes
    headers = [
        ("content-type", response.content_type),
        *response.headers,
        *(("set-cookie", cookie.header_value()) for cookie in response.cookies),
        ("content-length", str(len(body))),
    ]
    await send({
        "type": "http.response.start",
        "status": response.status,
        "headers": [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers],
    })
    await send({"type": "http.response.body", "body": b"" if head else body})
