"""Changelist filter configuration and query-string round-tripping.

A ``FilterConfig`` describes one filterable column. ``parse_filter_params``
reads the active values out of a request's query parameters and
``serialize_filter_params`` writes them back, so that filter links in
the sidebar preserve every other active filter::

    configs = filters_for_fields(fields, ["published", "status", "created"])
    values = parse_filter_params(request.query, configs)
    href = "?" + urlencode(merge_filter_params(request.query, {**values, "status": "live"}, configs))

Parsing is lenient: values that do not fit a filter's kind are dropped
rather than reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from roost.admin.fields import FieldInfo


class FilterKind(StrEnum):
    BOOLEAN = "boolean"
    CHOICE = "choice"
    DATE_RANGE = "date_range"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """One filterable field in the changelist sidebar."""

    field: str
    kind: FilterKind
    label: str
    choices: tuple[tuple[str, str], ...] = ()

    @property
    def gte_param(self) -> str:
        return f"{self.field}__gte"

    @property
    def lte_param(self) -> str:
        return f"{self.field}__lte"


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive date bounds, either side optional (ISO strings)."""

    gte: str | None = None
    lte: str | None = None

    def __bool__(self) -> bool:
        return bool(self.gte or self.lte)


type FilterValue = bool | str | DateRange
type FilterValues = dict[str, FilterValue]


# ---------------------------------------------------------------------------
# Configuration from fields
# ---------------------------------------------------------------------------


def _label(name: str) -> str:
    text = name.replace("_", " ")
    return text[:1].upper() + text[1:]


def filter_for_field(info: FieldInfo) -> FilterConfig:
    """Derive the ``FilterConfig`` for a reflected model field."""
    from roost.admin.fields import FieldKind

    label = info.verbose_name or _label(info.name)
    if info.kind is FieldKind.BOOLEAN:
        return FilterConfig(info.name, FilterKind.BOOLEAN, label, filter_choices(FilterKind.BOOLEAN))
    if info.kind in (FieldKind.DATE, FieldKind.DATETIME):
        return FilterConfig(info.name, FilterKind.DATE_RANGE, label)
    if info.choices:
        choices = tuple((str(value), display) for value, display in info.choices)
        return FilterConfig(info.name, FilterKind.CHOICE, label, choices)
    return FilterConfig(info.name, FilterKind.TEXT, label)


def filters_for_fields(fields: Iterable[FieldInfo], names: Sequence[str]) -> tuple[FilterConfig, ...]:
    """Filter configs for *names*, in the given order.

    Names without a matching field become plain text filters.
    """
    by_name = {f.name: f for f in fields}
    configs: list[FilterConfig] = []
    for name in names:
        info = by_name.get(name)
        if info is None:
            configs.append(FilterConfig(name, FilterKind.TEXT, _label(name)))
        else:
            configs.append(filter_for_field(info))
    return tuple(configs)


def filter_choices(kind: FilterKind, choices: Iterable[tuple[Any, str]] = ()) -> tuple[tuple[str, str], ...]:
    """Sidebar choices for a filter kind; booleans are always Yes/No."""
    if kind is FilterKind.BOOLEAN:
        return (("true", "Yes"), ("false", "No"))
    return tuple((str(value), label) for value, label in choices)


# ---------------------------------------------------------------------------
# Parse / serialize
# ---------------------------------------------------------------------------


def _param(params: Mapping[str, Any], name: str) -> str | None:
    value = params.get(name)
    if value is None:
        return None
    return str(value)


def parse_filter_params(params: Mapping[str, Any], configs: Iterable[FilterConfig]) -> FilterValues:
    """Read active filter values for *configs* out of *params*."""
    values: FilterValues = {}
    for config in configs:
        match config.kind:
            case FilterKind.BOOLEAN:
                raw = _param(params, config.field)
                if raw is not None:
                    values[config.field] = raw == "true"
            case FilterKind.DATE_RANGE:
                date_range = DateRange(
                    gte=_param(params, config.gte_param) or None,
                    lte=_param(params, config.lte_param) or None,
                )
                if date_range:
                    values[config.field] = date_range
            case _:
                raw = _param(params, config.field)
                if raw:
                    values[config.field] = raw
    return values


def serialize_filter_params(values: Mapping[str, FilterValue]) -> dict[str, str]:
    """Inverse of ``parse_filter_params``."""
    params: dict[str, str] = {}
    for name, value in values.items():
        if isinstance(value, bool):
            params[name] = "true" if value else "false"
        elif isinstance(value, DateRange):
            if value.gte:
                params[f"{name}__gte"] = value.gte
            if value.lte:
                params[f"{name}__lte"] = value.lte
        elif value:
            params[name] = value
    return params


def _filter_param_names(configs: Iterable[FilterConfig]) -> set[str]:
    names: set[str] = set()
    for config in configs:
        if config.kind is FilterKind.DATE_RANGE:
            names.update((config.gte_param, config.lte_param))
        else:
            names.add(config.field)
    return names


def merge_filter_params(
    params: Mapping[str, Any],
    values: Mapping[str, FilterValue],
    configs: Iterable[FilterConfig],
) -> dict[str, str]:
    """Replace the filter part of *params* with *values*.

    Non-filter parameters (search, ordering) are kept; the page number is
    dropped since a new filter set starts at page one.
    """
    owned = _filter_param_names(configs) | {"p"}
    merged = {k: str(v) for k, v in params.items() if k not in owned}
    merged.update(serialize_filter_params(values))
    return merged


def clear_filter_params(params: Mapping[str, Any], configs: Iterable[FilterConfig]) -> dict[str, str]:
    return merge_filter_params(params, {}, configs)


def has_active_filters(values: Mapping[str, FilterValue]) -> bool:
    return count_active_filters(values) > 0


def count_active_filters(values: Mapping[str, FilterValue]) -> int:
    return sum(1 for v in values.values() if isinstance(v, bool) or v)
