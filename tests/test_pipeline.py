"""Tests for the changelist query pipeline over an in-memory store."""

import pytest

from roost.http.params import QueryParams
from roost.query import (
    ChangelistParams,
    MemoryStore,
    apply_filters,
    apply_ordering,
    apply_search,
    filters_for_fields,
    next_ordering,
    paginate,
)
from roost.query.pipeline import PaginationResult, ordering_field


def _ids(records) -> list[int]:
    return [r.id for r in records]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_empty_query_returns_same_source(self, store: MemoryStore) -> None:
        source = store.source()
        assert apply_search(source, "", ("title",)) is source
        assert apply_search(source, "   ", ("title",)) is source
        assert apply_search(source, None, ("title",)) is source

    def test_no_search_fields_returns_same_source(self, store: MemoryStore) -> None:
        source = store.source()
        assert apply_search(source, "hello", ()) is source

    async def test_case_insensitive_contains(self, store: MemoryStore) -> None:
        source = apply_search(store.source(), "PYTHON", ("title", "body"))
        assert _ids(await source.fetch()) == [2]

    async def test_any_field_matches(self, store: MemoryStore) -> None:
        source = apply_search(store.source(), "asyncio", ("title", "body"))
        assert _ids(await source.fetch()) == [2]

    async def test_term_is_stripped(self, store: MemoryStore) -> None:
        source = apply_search(store.source(), "  notes ", ("title",))
        assert _ids(await source.fetch()) == [3]

    async def test_no_match(self, store: MemoryStore) -> None:
        source = apply_search(store.source(), "zzz", ("title",))
        assert await source.count() == 0


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestFilters:
    @pytest.fixture
    def configs(self, site):
        model_admin = next(iter(site))
        return filters_for_fields(model_admin.model_fields, ["published", "status", "created"])

    async def test_boolean(self, store: MemoryStore, configs) -> None:
        source = apply_filters(store.source(), QueryParams("published=false"), configs)
        assert sorted(_ids(await source.fetch())) == [3, 4]

    @pytest.mark.parametrize("raw", ["1", "maybe", ""])
    async def test_boolean_other_values_mean_false(self, store: MemoryStore, configs, raw: str) -> None:
        source = apply_filters(store.source(), {"published": raw}, configs)
        assert sorted(_ids(await source.fetch())) == [3, 4]

    async def test_boolean_absent_leaves_source(self, store: MemoryStore, configs) -> None:
        source = store.source()
        assert apply_filters(source, QueryParams("status="), configs) is source

    async def test_choice(self, store: MemoryStore, configs) -> None:
        source = apply_filters(store.source(), QueryParams("status=live"), configs)
        assert sorted(_ids(await source.fetch())) == [1, 2, 5]

    async def test_date_range(self, store: MemoryStore, configs) -> None:
        params = QueryParams("created__gte=2024-02-01&created__lte=2024-03-10")
        source = apply_filters(store.source(), params, configs)
        assert sorted(_ids(await source.fetch())) == [2, 3]

    async def test_open_ended_range_skips_nulls(self, store: MemoryStore, configs) -> None:
        source = apply_filters(store.source(), QueryParams("created__gte=2024-01-01"), configs)
        assert sorted(_ids(await source.fetch())) == [1, 2, 3, 5]

    async def test_filters_combine(self, store: MemoryStore, configs) -> None:
        params = QueryParams("status=live&created__lte=2024-02-28")
        source = apply_filters(store.source(), params, configs)
        assert sorted(_ids(await source.fetch())) == [1, 2]

    async def test_unconfigured_params_ignored(self, store: MemoryStore, configs) -> None:
        source = store.source()
        assert apply_filters(source, QueryParams("views=3&q=x"), configs) is source


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_ordering_field_allow_list(self) -> None:
        assert ordering_field("title", ("title",)) == "title"
        assert ordering_field("-title", ("title",)) == "-title"
        assert ordering_field("views", ("title",)) is None
        assert ordering_field("-", ("title",)) is None
        assert ordering_field(None, ("title",)) is None

    async def test_ascending(self, store: MemoryStore) -> None:
        source = apply_ordering(store.source(), "title", ("title", "created"))
        assert _ids(await source.fetch()) == [5, 3, 1, 2, 4]

    async def test_descending(self, store: MemoryStore) -> None:
        source = apply_ordering(store.source(), "-title", ("title", "created"))
        assert _ids(await source.fetch()) == [4, 2, 1, 3, 5]

    async def test_disallowed_falls_back_to_default(self, store: MemoryStore) -> None:
        source = apply_ordering(store.source(), "views", ("title",), ("-id",))
        assert _ids(await source.fetch()) == [5, 4, 3, 2, 1]

    async def test_nulls_sort_last(self, store: MemoryStore) -> None:
        source = apply_ordering(store.source(), "created", ("created",))
        assert _ids(await source.fetch()) == [1, 2, 3, 5, 4]

    def test_no_ordering_returns_same_source(self, store: MemoryStore) -> None:
        source = store.source()
        assert apply_ordering(source, None, ("title",)) is source

    def test_toggle_cycle(self) -> None:
        assert next_ordering("title", None) == "title"
        assert next_ordering("title", "title") == "-title"
        assert next_ordering("title", "-title") == "title"
        assert next_ordering("title", "-created") == "title"


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class TestPaginate:
    async def _page(self, store: MemoryStore, number: int) -> PaginationResult:
        return await paginate(store.source().order_by("id"), number, 2)

    async def test_first_page(self, store: MemoryStore) -> None:
        page = await self._page(store, 1)
        assert _ids(page.records) == [1, 2]
        assert page.total_count == 5
        assert page.total_pages == 3
        assert not page.has_previous
        assert page.has_next
        assert (page.start_index, page.end_index) == (1, 2)

    async def test_middle_page(self, store: MemoryStore) -> None:
        page = await self._page(store, 2)
        assert _ids(page.records) == [3, 4]
        assert page.has_previous and page.has_next
        assert (page.previous_page, page.next_page) == (1, 3)

    async def test_last_page_is_partial(self, store: MemoryStore) -> None:
        page = await self._page(store, 3)
        assert _ids(page.records) == [5]
        assert page.has_previous
        assert not page.has_next
        assert page.next_page is None
        assert (page.start_index, page.end_index) == (5, 5)

    async def test_clamps_past_the_end(self, store: MemoryStore) -> None:
        page = await self._page(store, 99)
        assert page.current_page == 3
        assert _ids(page.records) == [5]

    @pytest.mark.parametrize("number", [0, -4])
    async def test_clamps_below_one(self, store: MemoryStore, number: int) -> None:
        page = await self._page(store, number)
        assert page.current_page == 1

    async def test_empty_source_has_one_page(self, store: MemoryStore) -> None:
        source = apply_search(store.source(), "zzz", ("title",))
        page = await paginate(source, 4, 10)
        assert page.records == []
        assert page.total_pages == 1
        assert page.current_page == 1
        assert page.start_index == 0
        assert page.end_index == 0

    async def test_page_size_must_be_positive(self, store: MemoryStore) -> None:
        with pytest.raises(ValueError, match="page_size"):
            await paginate(store.source(), 1, 0)

    def test_page_range_window(self) -> None:
        def result(current: int, total: int) -> PaginationResult:
            return PaginationResult([], total * 10, current, total, current > 1, current < total, 10)

        assert list(result(5, 10).page_range) == [3, 4, 5, 6, 7]
        assert list(result(1, 10).page_range) == [1, 2, 3]
        assert list(result(10, 10).page_range) == [8, 9, 10]
        assert list(result(1, 1).page_range) == [1]


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------


class TestChangelistParams:
    def test_defaults(self) -> None:
        assert ChangelistParams.from_query(QueryParams()) == ChangelistParams()

    def test_reads_all_params(self) -> None:
        params = ChangelistParams.from_query(QueryParams("q=+hi+&p=2&o=-title&all="))
        assert params == ChangelistParams(query="hi", page=2, ordering="-title", show_all=True)

    def test_bad_page_falls_back(self) -> None:
        assert ChangelistParams.from_query(QueryParams("p=abc")).page == 1

    def test_empty_ordering_is_none(self) -> None:
        assert ChangelistParams.from_query(QueryParams("o=")).ordering is None
