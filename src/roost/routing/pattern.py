"""Route template compiler.

Turns a declarative template such as ``/admin/:model/:id/`` into a
``CompiledRoute``: an ordered tuple of literal/capture segments, an
regex derived from them, and the metadata the registry and
views need (logical name, view kind, owning model, handler).

Compilation rules:

- ``:identifier`` is a capture; it matches one or more non-``/``
  characters, so a parameter can never swallow the next path segment.
- Everything else is literal and ``re.escape``-d, so dots or parens in a
  template are never read as regex syntax.
- The whole path must match (``re.fullmatch``); a trailing newline
  never slips past the end of the pattern.

The segment tuple is the source of truth; the regex is derived from it,
and so is reverse URL generation (``CompiledRoute.build``).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any
from urllib.parse import quote

from roost.errors import ConfigurationError, ReverseUrlError

type Handler = Callable[..., Any]

_PLACEHOLDER = re.compile(r":([A-Za-z_]\w*)")


class ViewKind(StrEnum):
    """What a route renders. The admin views dispatch on this."""

    INDEX = "index"
    LIST = "list"
    ADD = "add"
    CHANGE = "change"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    STATIC = "static"


@dataclass(frozen=True, slots=True)
class RouteSegment:
    """One piece of a route template: literal text or a named capture."""

    value: str
    is_capture: bool = False

    @property
    def regex(self) -> str:
        if self.is_capture:
            return f"(?P<{self.value}>[^/]+)"
        return re.escape(self.value)


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A matchable, reversible route. Immutable after compilation."""

    template: str
    segments: tuple[RouteSegment, ...]
    pattern: re.Pattern[str]
    name: str
    kind: ViewKind
    handler: Handler
    model_name: str | None = None

    @property
    def param_names(self) -> tuple[str, ...]:
        """Placeholder names, in template order."""
        return tuple(s.value for s in self.segments if s.is_capture)

    def match(self, path: str) -> bool:
        """True if *path* matches the whole template."""
        return self.pattern.fullmatch(path) is not None

    def extract_params(self, path: str) -> dict[str, str] | None:
        """Captured params for *path*.

        ``None`` when the path does not match; ``{}`` when it matches a
        template without placeholders.
        """
        m = self.pattern.fullmatch(path)
        if m is None:
            return None
        return m.groupdict()

    def build(self, params: Mapping[str, object] | None = None) -> str:
        """Reverse: substitute *params* into the template.

        Raises:
            ReverseUrlError: If a placeholder has no value.
        """
        params = params or {}
        parts: list[str] = []
        for segment in self.segments:
            if not segment.is_capture:
                parts.append(segment.value)
                continue
            value = params.get(segment.value)
            if value is None or value == "":
                msg = f"Missing required parameter {segment.value!r} for route {self.name!r}"
                raise ReverseUrlError(msg)
            parts.append(quote(str(value), safe=""))
        return "".join(parts)


def parse_template(template: str) -> tuple[RouteSegment, ...]:
    """Split *template* into literal and capture segments.

    Raises:
        ConfigurationError: If a placeholder name is used twice.
    """
    segments: list[RouteSegment] = []
    seen: set[str] = set()
    pos = 0
    for m in _PLACEHOLDER.finditer(template):
        if m.start() > pos:
            segments.append(RouteSegment(template[pos : m.start()]))
        name = m.group(1)
        if name in seen:
            msg = f"Duplicate placeholder {name!r} in route template {template!r}"
            raise ConfigurationError(msg)
        seen.add(name)
        segments.append(RouteSegment(name, is_capture=True))
        pos = m.end()
    if pos < len(template):
        segments.append(RouteSegment(template[pos:]))
    return tuple(segments)


def compile_route(
    template: str,
    name: str,
    kind: ViewKind,
    handler: Handler,
    model_name: str | None = None,
) -> CompiledRoute:
    """Compile a route template into a ``CompiledRoute``.

    Usage::

        route = compile_route("/admin/:model/:id/", "admin:change", ViewKind.CHANGE, view)
        route.extract_params("/admin/user/42/")  # {"model": "user", "id": "42"}
    """
    segments = parse_template(template)
    pattern = re.compile("".join(s.regex for s in segments))
    return CompiledRoute(
        template=template,
        segments=segments,
        pattern=pattern,
        name=name,
        kind=kind,
        handler=handler,
        model_name=model_name,
    )
