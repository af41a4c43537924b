"""Record sources and the changelist query pipeline."""

from roost.query.conditions import AnyOf, Condition, Lookup, Op, lookup
from roost.query.filters import (
    DateRange,
    FilterConfig,
    FilterKind,
    FilterValues,
    clear_filter_params,
    count_active_filters,
    filter_choices,
    filters_for_fields,
    has_active_filters,
    merge_filter_params,
    parse_filter_params,
    serialize_filter_params,
)
from roost.query.memory import MemorySource, MemoryStore
from roost.query.pipeline import (
    ChangelistParams,
    PaginationResult,
    apply_filters,
    apply_ordering,
    apply_search,
    next_ordering,
    paginate,
)
from roost.query.source import RecordSource, RecordStore

__all__ = [
    "AnyOf",
    "ChangelistParams",
    "Condition",
    "DateRange",
    "FilterConfig",
    "FilterKind",
    "FilterValues",
    "Lookup",
    "MemorySource",
    "MemoryStore",
    "Op",
    "PaginationResult",
    "RecordSource",
    "RecordStore",
    "apply_filters",
    "apply_ordering",
    "apply_search",
    "clear_filter_params",
    "count_active_filters",
    "filter_choices",
    "filters_for_fields",
    "has_active_filters",
    "lookup",
    "merge_filter_params",
    "next_ordering",
    "paginate",
    "parse_filter_params",
    "serialize_filter_params",
]
