"""Tests for the in-memory record source and store."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

import pytest

from roost.query import AnyOf, Lookup, MemoryStore, Op, RecordSource, RecordStore, lookup
from roost.query.memory import coerce_like, matches, record_value


@dataclass
class Item:
    name: str
    id: int | None = None
    qty: int = 0
    added: date | None = None


def _store() -> MemoryStore[Item]:
    return MemoryStore(Item, [
        Item("apple", 1, 5, date(2024, 1, 1)),
        Item("banana", 2, 0, date(2024, 6, 1)),
        Item("cherry", 3, 12, None),
    ])


class TestLookupExpression:
    def test_operator_suffix(self) -> None:
        assert lookup("name__icontains", "an") == Lookup("name", Op.ICONTAINS, "an")

    def test_bare_field_is_exact(self) -> None:
        assert lookup("name", "apple") == Lookup("name", Op.EXACT, "apple")

    def test_unknown_suffix_is_part_of_field(self) -> None:
        assert lookup("created__year", 2024) == Lookup("created__year", Op.EXACT, 2024)


class TestCoercion:
    def test_string_to_sample_type(self) -> None:
        assert coerce_like(3, "4") == 4
        assert coerce_like(1.5, "2.5") == 2.5
        assert coerce_like(Decimal("1"), "2.50") == Decimal("2.50")
        assert coerce_like(True, "false") is False
        assert coerce_like(date(2024, 1, 1), "2024-02-03") == date(2024, 2, 3)
        assert coerce_like(datetime(2024, 1, 1), "2024-02-03T04:05") == datetime(2024, 2, 3, 4, 5)

    def test_failed_coercion_keeps_value(self) -> None:
        assert coerce_like(3, "three") == "three"

    def test_non_strings_untouched(self) -> None:
        assert coerce_like(3, 4.0) == 4.0
        assert coerce_like(None, "x") == "x"

    def test_record_value_reads_mappings(self) -> None:
        assert record_value({"a": 1}, "a") == 1
        assert record_value(Item("x"), "missing") is None


class TestMatching:
    def test_exact_coerces_query_strings(self) -> None:
        assert matches(Item("apple", 1, 5), Lookup("qty", Op.EXACT, "5"))

    def test_icontains_skips_none(self) -> None:
        assert not matches(Item("apple", added=None), Lookup("added", Op.ICONTAINS, "2024"))

    def test_date_bound_on_datetime_compares_days(self) -> None:
        @dataclass
        class Event:
            at: datetime

        event = Event(datetime(2024, 3, 1, 18, 30))
        assert matches(event, Lookup("at", Op.LTE, "2024-03-01"))
        assert matches(event, Lookup("at", Op.GTE, "2024-03-01"))

    def test_in(self) -> None:
        assert matches(Item("apple", 1), Lookup("id", Op.IN, ["1", "2"]))
        assert not matches(Item("apple", 3), Lookup("id", Op.IN, ["1", "2"]))

    def test_empty_any_of_matches_nothing(self) -> None:
        assert not matches(Item("apple"), AnyOf(()))

    def test_missing_field_matches_nothing(self) -> None:
        assert not matches(Item("apple"), Lookup("colour", Op.EXACT, "red"))


class TestMemorySource:
    def test_satisfies_protocols(self) -> None:
        store = _store()
        assert isinstance(store, RecordStore)
        assert isinstance(store.source(), RecordSource)

    async def test_builders_do_not_mutate(self) -> None:
        source = _store().source()
        filtered = source.filter(Lookup("qty", Op.GTE, 1))
        assert await source.count() == 3
        assert await filtered.count() == 2

    async def test_count_ignores_slicing(self) -> None:
        source = _store().source().order_by("name").offset(1).limit(1)
        assert await source.count() == 3
        assert [i.name for i in await source.fetch()] == ["banana"]

    async def test_order_by_replaces(self) -> None:
        source = _store().source().order_by("-qty").order_by("name")
        assert [i.name for i in await source.fetch()] == ["apple", "banana", "cherry"]

    async def test_multi_key_ordering(self) -> None:
        store = MemoryStore(Item, [Item("b", 1, 1), Item("a", 2, 1), Item("c", 3, 0)])
        source = store.source().order_by("-qty", "name")
        assert [i.name for i in await source.fetch()] == ["a", "b", "c"]

    async def test_source_is_a_snapshot(self) -> None:
        store = _store()
        source = store.source()
        await store.delete("1")
        assert await source.count() == 3
        assert await store.source().count() == 2


class TestMemoryStore:
    async def test_get_by_string_pk(self) -> None:
        item = await _store().get("2")
        assert item is not None
        assert item.name == "banana"

    async def test_get_missing(self) -> None:
        assert await _store().get("99") is None

    async def test_create_assigns_next_pk(self) -> None:
        store = _store()
        item = await store.create({"name": "damson", "qty": 1})
        assert item.id == 4
        assert await store.get("4") == item
        assert len(store) == 4

    async def test_create_keeps_given_pk(self) -> None:
        store = _store()
        item = await store.create({"name": "elder", "id": 10})
        assert item.id == 10

    async def test_explicit_pk_advances_assignment(self) -> None:
        store = _store()
        await store.create({"name": "damson", "id": 4})
        item = await store.create({"name": "elder"})
        assert item.id == 5
        assert len(store) == 5
        assert (await store.get("4")).name == "damson"

    async def test_duplicate_pk_rejected(self) -> None:
        store = _store()
        with pytest.raises(ValueError, match="id=2 already exists"):
            await store.create({"name": "imposter", "id": 2})
        assert (await store.get("2")).name == "banana"

    async def test_update(self) -> None:
        store = _store()
        item = await store.update("1", {"qty": 6, "id": 99})
        assert item == Item("apple", 1, 6, date(2024, 1, 1))
        assert await store.get("1") == item

    async def test_update_missing(self) -> None:
        assert await _store().update("99", {"qty": 1}) is None

    async def test_delete(self) -> None:
        store = _store()
        assert await store.delete("3") is True
        assert await store.delete("3") is False
        assert len(store) == 2

    async def test_delete_many_counts_existing(self) -> None:
        store = _store()
        assert await store.delete_many(["1", "3", "42"]) == 2
        assert [i.name for i in await store.source().fetch()] == ["banana"]

    async def test_bad_values_raise(self) -> None:
        with pytest.raises(TypeError):
            await _store().create({"name": "x", "colour": "red"})
