"""Path dispatcher: first match wins.

Incoming paths are canonicalized to end with ``/`` before matching.
Every admin route template ends with a slash, so ``/admin/user`` and
``/admin/user/`` dispatch identically, while a template compiled without
the normalization (``CompiledRoute.match``) stays strict about it.
"""

from __future__ import annotations

from dataclasses import dataclass

from roost.errors import RouteNotFound
from roost.routing.pattern import CompiledRoute
from roost.routing.table import RouteTable


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful dispatch."""

    route: CompiledRoute
    params: dict[str, str]


def normalize_path(path: str) -> str:
    """Append the trailing slash every admin template expects."""
    return path if path.endswith("/") else path + "/"


def dispatch(table: RouteTable, path: str) -> RouteMatch:
    """Find the first route in *table* matching *path*.

    Routes are tried in registration order. The registry builds tables
    with ``add`` ahead of the per-object ``:id`` route so the literal
    wins.

    Raises:
        RouteNotFound: If no route matches.
    """
    normalized = normalize_path(path)
    for route in table:
        params = route.extract_params(normalized)
        if params is not None:
            return RouteMatch(route=route, params=params)
    raise RouteNotFound(f"No admin route matches {path!r}")
