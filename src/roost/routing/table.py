"""Ordered, immutable route table.

Registration order is match order. The table also indexes routes by
logical name for reverse lookups.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from roost.errors import ConfigurationError, ReverseUrlError
from roost.routing.pattern import CompiledRoute


@dataclass(frozen=True, slots=True)
class RouteTable:
    """An ordered tuple of compiled routes plus a name index.

    Built once per registry snapshot and never mutated afterwards, so it
    can be read from any number of concurrent requests.
    """

    routes: tuple[CompiledRoute, ...] = ()
    _by_name: dict[str, CompiledRoute] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(cls, routes: Iterable[CompiledRoute]) -> RouteTable:
        """Freeze *routes* into a table.

        Raises:
            ConfigurationError: If two routes share a logical name.
        """
        ordered = tuple(routes)
        by_name: dict[str, CompiledRoute] = {}
        for route in ordered:
            if route.name in by_name:
                msg = f"Duplicate route name {route.name!r}"
                raise ConfigurationError(msg)
            by_name[route.name] = route
        return cls(routes=ordered, _by_name=by_name)

    def __iter__(self) -> Iterator[CompiledRoute]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    def get(self, name: str) -> CompiledRoute | None:
        """The route registered under *name*, if any."""
        return self._by_name.get(name)

    def reverse(self, name: str, params: Mapping[str, object] | None = None) -> str:
        """Build the path for route *name*.

        Raises:
            ReverseUrlError: Unknown name, or a required param is missing.
        """
        route = self._by_name.get(name)
        if route is None:
            msg = f"No route named {name!r}"
            raise ReverseUrlError(msg)
        return route.build(params)
