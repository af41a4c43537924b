"""Multi-valued request inputs: the query string and submitted forms.

Both read as ``Mapping[str, str]`` where indexing gives the first value
sent under a name, and ``get_list`` gives all of them. The changelist
relies on repeats for bulk-action checkboxes; the change form relies on
them for many-to-many selects.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs, urlencode


class MultiValueMapping(Mapping[str, str]):
    """Read-only ``name -> [values]`` mapping."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, list[str]] | None = None) -> None:
        self._values = {name: list(items) for name, items in (values or {}).items() if items}

    def __getitem__(self, name: str) -> str:
        return self._values[name][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"

    def get_list(self, name: str) -> list[str]:
        return list(self._values.get(name, ()))

    def to_dict(self) -> dict[str, str]:
        """First value per name, as a plain dict."""
        return {name: items[0] for name, items in self._values.items()}


class QueryParams(MultiValueMapping):
    """Changelist query string: ``q``, ``p``, ``o``, ``all``, filter values.

    Blank values are kept so ``?status=`` still names the parameter.
    """

    __slots__ = ("raw",)

    def __init__(self, query_string: bytes | str = b"") -> None:
        raw = query_string.decode("latin-1") if isinstance(query_string, bytes) else query_string
        super().__init__(parse_qs(raw, keep_blank_values=True))
        self.raw = raw

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> QueryParams:
        return cls(urlencode(dict(values)))

    def get_int(self, name: str, default: int | None = None) -> int | None:
        """The value as an int; *default* when missing or not a whole number."""
        try:
            return int(self[name])
        except (KeyError, ValueError):
            return default


class FormData(MultiValueMapping):
    """A parsed request body.

    Usage::

        form = await request.form()
        ids = form.get_list("_selected_action")
    """

    __slots__ = ()
