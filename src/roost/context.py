"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the current ``Request`` for this task.
- ``user_var``: the ``AuthGuardResult`` of the current request.

Both are set by the ASGI handler and reset after each request. Outside a
request, ``get_request`` raises ``LookupError`` and ``current_user``
returns an unauthenticated result.
"""

from contextvars import ContextVar

from roost.auth.guard import AuthGuardResult
from roost.http.request import Request

request_var: ContextVar[Request] = ContextVar("roost_request")
user_var: ContextVar[AuthGuardResult] = ContextVar("roost_user")

_ANONYMOUS = AuthGuardResult(authenticated=False)


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def current_user() -> AuthGuardResult:
    return user_var.get(_ANONYMOUS)
