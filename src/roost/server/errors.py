"""Error handling pipeline for admin requests.

Maps HTTPError exceptions and unexpected failures to Response objects.
Views raise; only this module builds error responses.
"""

import html
import logging

from roost.errors import BackendFailure, HTTPError
from roost.http.request import Request
from roost.http.response import Response

logger = logging.getLogger("roost.server")

ERROR_TARGET = "#roost-error"


def default_fragment_error(status: int, detail: str) -> str:
    """Minimal HTML snippet for fragment error responses."""
    return f'<div class="roost-error" data-status="{status}">{html.escape(detail)}</div>'


def _with_htmx_error_headers(response: Response, request: Request) -> Response:
    """Add htmx error-handling headers when the request is a fragment.

    Headers added:
    - ``HX-Retarget: #roost-error``: swap the error into the page's error slot
    - ``HX-Reswap: innerHTML``: replace (not append) the error content
    - ``HX-Trigger: roostError``: client-side event for custom handling
    """
    if not request.is_fragment:
        return response
    return (
        response
        .with_header("HX-Retarget", ERROR_TARGET)
        .with_header("HX-Reswap", "innerHTML")
        .with_header("HX-Trigger", "roostError")
    )


def handle_http_error(exc: HTTPError, request: Request, *, debug: bool = False) -> Response:
    """Map an HTTPError to a Response, copying the exception's headers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    # Fragment-aware: return a snippet instead of a full page
    if request.is_fragment:
        resp = Response(body=default_fragment_error(exc.status, detail))
    else:
        resp = Response(body=detail, content_type="text/plain; charset=utf-8")
    resp = resp.with_status(exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return _with_htmx_error_headers(resp, request)


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Handle unexpected exceptions as 500 errors. Never leaks the cause."""
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)

    failure = BackendFailure()
    if request.is_fragment:
        resp = Response(body=default_fragment_error(failure.status, failure.detail), status=failure.status)
        return _with_htmx_error_headers(resp, request)

    return Response(body=failure.detail, status=failure.status, content_type="text/plain; charset=utf-8")
