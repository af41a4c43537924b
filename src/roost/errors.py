"""Roost exception hierarchy.

Shared across the registry, dispatcher, views, and the ASGI handler so
every module raises and catches the same types.

Two families live here:

- ``RoostError`` subclasses that signal programming or configuration
  mistakes (bad registration, impossible reverse lookups). These fail
  loudly and are never converted into HTTP responses.
- ``HTTPError`` subclasses that map directly to a response status. The
  ASGI handler catches them and renders the matching error response.
"""

from dataclasses import dataclass, field


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when site or app configuration is invalid."""


class AlreadyRegistered(RoostError):  # noqa: N818 (mirrors the registry vocabulary)
    """A model was registered twice on the same site."""


class NotRegistered(RoostError):  # noqa: N818 (mirrors the registry vocabulary)
    """A model was unregistered without having been registered."""


class ReverseUrlError(RoostError):
    """Reverse lookup failed: unknown route name or missing parameter.

    Raised synchronously at the call site. A failed reverse is a bug in
    the caller, not a request-time condition.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher, the auth check, or a view. The ASGI handler
    catches these and turns them into responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """404: no compiled route matches the normalized path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class ModelNotRegistered(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """404: the route names a model the registry does not know."""

    def __init__(self, detail: str = "Model not found") -> None:
        super().__init__(status=404, detail=detail)


class ObjectNotFound(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """404: the record addressed by ``:id`` does not exist."""

    def __init__(self, detail: str = "Object not found") -> None:
        super().__init__(status=404, detail=detail)


class PermissionDenied(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """403: the ModelAdmin permission hook refused the operation."""

    def __init__(self, detail: str = "Permission denied") -> None:
        super().__init__(status=403, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """405: the view exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail or f"Method not allowed. Allowed methods: {allow_value}",
            headers=(("Allow", allow_value),),
        )


class Unauthenticated(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """302: no valid admin credential; send the browser to the login page.

    Carries both ``Location`` (plain browsers) and ``HX-Redirect`` (htmx
    requests, which would otherwise swap the login page into a fragment).
    """

    def __init__(self, login_url: str) -> None:
        super().__init__(
            status=302,
            detail="Authentication required",
            headers=(("Location", login_url), ("HX-Redirect", login_url)),
        )


@dataclass(frozen=True, slots=True, init=False)
class ValidationFailed(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """422: submitted form data failed field validation.

    ``errors`` maps field names to their messages. Views catch this to
    re-render the form with the submitted input; it only reaches the
    ASGI handler when nobody does.
    """

    errors: dict[str, list[str]] = field(default_factory=dict)

    def __init__(self, errors: dict[str, list[str]], detail: str = "Validation failed") -> None:
        object.__setattr__(self, "status", 422)
        object.__setattr__(self, "detail", detail)
        object.__setattr__(self, "headers", ())
        object.__setattr__(self, "errors", errors)


class BackendFailure(HTTPError):  # noqa: N818 (conventional name in web frameworks)
    """500: the record source raised during fetch, count, save, or delete.

    Built at the handler boundary for any unexpected exception. The
    detail stays generic; the original exception is logged, never rendered.
    """

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)
