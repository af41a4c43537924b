"""Route compilation, the ordered route table, and dispatch."""

from roost.routing.dispatcher import RouteMatch, dispatch, normalize_path
from roost.routing.pattern import CompiledRoute, RouteSegment, ViewKind, compile_route
from roost.routing.table import RouteTable

__all__ = [
    "CompiledRoute",
    "RouteMatch",
    "RouteSegment",
    "RouteTable",
    "ViewKind",
    "compile_route",
    "dispatch",
    "normalize_path",
]
