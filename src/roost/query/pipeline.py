"""Changelist query pipeline: search, filter, order, paginate.

Each stage takes a ``RecordSource`` and returns a narrowed one. Only
``paginate`` performs I/O. Stages never raise for bad input: unknown
filter fields and disallowed ordering requests are skipped.

Usage::

    source = store.source()
    source = apply_search(source, params.query, admin.search_fields)
    source = apply_filters(source, request.query, admin.filter_configs)
    source = apply_ordering(source, params.ordering, admin.display_fields, admin.ordering)
    page = await paginate(source, params.page, admin.list_per_page)
"""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from roost.query.conditions import AnyOf, Lookup, Op
from roost.query.filters import FilterConfig, FilterKind
from roost.query.source import RecordSource

SEARCH_PARAM = "q"
PAGE_PARAM = "p"
ORDER_PARAM = "o"
SHOW_ALL_PARAM = "all"

# Pages shown either side of the current one in the paginator.
PAGE_WINDOW = 2


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def apply_search[T](source: RecordSource[T], query: str | None, search_fields: Sequence[str]) -> RecordSource[T]:
    """OR a case-insensitive contains match across *search_fields*.

    Returns *source* itself when there is nothing to search.
    """
    term = (query or "").strip()
    if not term or not search_fields:
        return source
    return source.filter(AnyOf.of(Lookup(name, Op.ICONTAINS, term) for name in search_fields))


def apply_filters[T](
    source: RecordSource[T],
    params: Mapping[str, Any],
    filter_fields: Iterable[FilterConfig],
) -> RecordSource[T]:
    """Apply every configured filter that has a value in *params*."""
    conditions: list[Lookup] = []
    for config in filter_fields:
        match config.kind:
            case FilterKind.BOOLEAN:
                # Any value other than "true" selects false records.
                raw = params.get(config.field)
                if raw is not None:
                    conditions.append(Lookup(config.field, Op.EXACT, raw == "true"))
            case FilterKind.DATE_RANGE:
                lower = params.get(config.gte_param)
                upper = params.get(config.lte_param)
                if lower:
                    conditions.append(Lookup(config.field, Op.GTE, lower))
                if upper:
                    conditions.append(Lookup(config.field, Op.LTE, upper))
            case _:
                raw = params.get(config.field)
                if raw is not None and raw != "":
                    conditions.append(Lookup(config.field, Op.EXACT, raw))
    if not conditions:
        return source
    return source.filter(*conditions)


def ordering_field(requested: str | None, allowed: Collection[str]) -> str | None:
    """The requested ordering if its bare field name is in *allowed*."""
    if not requested:
        return None
    name = requested.removeprefix("-")
    if not name or name not in allowed:
        return None
    return requested


def apply_ordering[T](
    source: RecordSource[T],
    requested: str | None,
    allowed: Collection[str],
    default: Sequence[str] = (),
) -> RecordSource[T]:
    """Order by *requested* when allowed, else by *default*."""
    field = ordering_field(requested, allowed)
    if field is not None:
        return source.order_by(field)
    if default:
        return source.order_by(*default)
    return source


def next_ordering(field: str, current: str | None) -> str:
    """Ordering to request when the column header for *field* is clicked.

    unsorted -> ``field``; ``field`` -> ``-field``; ``-field`` -> ``field``.
    """
    if current == field:
        return f"-{field}"
    return field


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PaginationResult[T]:
    records: list[T]
    total_count: int
    current_page: int
    total_pages: int
    has_previous: bool
    has_next: bool
    page_size: int

    @property
    def start_index(self) -> int:
        """1-based index of the first record on this page (0 when empty)."""
        if not self.records:
            return 0
        return (self.current_page - 1) * self.page_size + 1

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.records) - 1 if self.records else 0

    @property
    def previous_page(self) -> int | None:
        return self.current_page - 1 if self.has_previous else None

    @property
    def next_page(self) -> int | None:
        return self.current_page + 1 if self.has_next else None

    @property
    def page_range(self) -> range:
        start = max(1, self.current_page - PAGE_WINDOW)
        stop = min(self.total_pages, self.current_page + PAGE_WINDOW)
        return range(start, stop + 1)


async def paginate[T](source: RecordSource[T], page: int, page_size: int) -> PaginationResult[T]:
    """Fetch one page of *source*.

    Pages are 1-based. Requests below 1 become 1; requests past the end
    clamp to the last page. There is always at least one page.
    """
    if page_size < 1:
        msg = f"page_size must be positive, got {page_size}"
        raise ValueError(msg)
    total_count = await source.count()
    total_pages = max(1, math.ceil(total_count / page_size))
    current = min(max(1, page), total_pages)
    records = await source.offset((current - 1) * page_size).limit(page_size).fetch()
    return PaginationResult(
        records=records,
        total_count=total_count,
        current_page=current,
        total_pages=total_pages,
        has_previous=current > 1,
        has_next=current < total_pages,
        page_size=page_size,
    )


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ChangelistParams:
    """The pipeline inputs read from a changelist query string."""

    query: str = ""
    page: int = 1
    ordering: str | None = None
    show_all: bool = False

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> ChangelistParams:
        raw_page = params.get(PAGE_PARAM)
        try:
            page = int(raw_page) if raw_page else 1
        except ValueError:
            page = 1
        return cls(
            query=(params.get(SEARCH_PARAM) or "").strip(),
            page=page,
            ordering=params.get(ORDER_PARAM) or None,
            show_all=SHOW_ALL_PARAM in params,
        )
