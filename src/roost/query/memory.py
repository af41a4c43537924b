"""In-memory record store.

``MemorySource`` follows the same shape as ``roost.data``'s SQL query
builder: a frozen dataclass that accumulates clauses and only evaluates
them in ``count()``/``fetch()``. Useful for tests, demos, and small
fixed datasets.

Usage::

    store = MemoryStore(Article, [Article(1, "Hello"), Article(2, "World")])
    page = await store.source().filter(lookup("title__icontains", "hel")).fetch()

Lookup values arriving from query strings are strings; they are coerced
to the type of the stored value before comparison (``"3"`` matches ``3``,
``"2024-01-01"`` compares as a ``date``).
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from roost.query.conditions import AnyOf, Condition, Lookup, Op

# ---------------------------------------------------------------------------
# Evaluation helpers
# ---------------------------------------------------------------------------


def record_value(record: Any, name: str) -> Any:
    """Read field *name* from a dataclass instance or a mapping."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def coerce_like(sample: Any, value: Any) -> Any:
    """Coerce *value* to the type of *sample* when *value* is a string.

    Returns *value* unchanged when no sensible coercion exists or it
    fails; the comparison then simply does not match.
    """
    if not isinstance(value, str) or sample is None or isinstance(sample, str):
        return value
    try:
        if isinstance(sample, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(sample, int):
            return int(value)
        if isinstance(sample, float):
            return float(value)
        if isinstance(sample, Decimal):
            return Decimal(value)
        if isinstance(sample, datetime):
            if len(value) == 10:
                return date.fromisoformat(value)
            return datetime.fromisoformat(value)
        if isinstance(sample, date):
            return date.fromisoformat(value[:10])
    except (ValueError, InvalidOperation):
        return value
    return value


def _compare_pair(actual: Any, bound: Any) -> tuple[Any, Any]:
    bound = coerce_like(actual, bound)
    # A bare date bound against a datetime value compares by calendar day.
    if isinstance(actual, datetime) and type(bound) is date:
        return actual.date(), bound
    return actual, bound


def matches_lookup(record: Any, cond: Lookup) -> bool:
    """Evaluate one lookup against *record*."""
    actual = record_value(record, cond.field)
    match cond.op:
        case Op.EXACT:
            left, right = _compare_pair(actual, cond.value)
            return left == right
        case Op.ICONTAINS:
            if actual is None:
                return False
            return str(cond.value).lower() in str(actual).lower()
        case Op.GTE | Op.LTE:
            if actual is None:
                return False
            left, right = _compare_pair(actual, cond.value)
            try:
                return left >= right if cond.op is Op.GTE else left <= right
            except TypeError:
                return False
        case Op.IN:
            values = cond.value if isinstance(cond.value, (list, tuple, set, frozenset)) else (cond.value,)
            return any(_compare_pair(actual, v)[1] == actual for v in values)
    return False


def matches(record: Any, cond: Condition) -> bool:
    """Evaluate a lookup or an ``AnyOf`` group against *record*."""
    if isinstance(cond, AnyOf):
        return any(matches_lookup(record, lk) for lk in cond.lookups)
    return matches_lookup(record, cond)


def _sort_records(records: list[Any], fields: Sequence[str]) -> list[Any]:
    # Stable sorts applied from the last key to the first.
    for key in reversed(fields):
        descending = key.startswith("-")
        name = key.lstrip("-")
        records.sort(
            key=lambda r, n=name: (record_value(r, n) is None, record_value(r, n)),
            reverse=descending,
        )
    return records


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MemorySource[T]:
    """Immutable query over a snapshot of records.

    Every method returns a new ``MemorySource``; the original is unchanged.
    """

    _records: tuple[T, ...]
    _conditions: tuple[Condition, ...] = ()
    _order: tuple[str, ...] = ()
    _offset: int | None = None
    _limit: int | None = None

    # ── Building ─────────────────────────────────────────────────────────

    def filter(self, *conditions: Condition) -> MemorySource[T]:
        return replace(self, _conditions=(*self._conditions, *conditions))

    def order_by(self, *fields: str) -> MemorySource[T]:
        """Set the ordering. Replaces any previous ordering."""
        return replace(self, _order=tuple(fields))

    def offset(self, n: int) -> MemorySource[T]:
        return replace(self, _offset=n)

    def limit(self, n: int) -> MemorySource[T]:
        return replace(self, _limit=n)

    # ── Execution ────────────────────────────────────────────────────────

    def _matching(self) -> list[T]:
        return [r for r in self._records if all(matches(r, c) for c in self._conditions)]

    async def count(self) -> int:
        """Count matching records, ignoring offset and limit."""
        return len(self._matching())

    async def fetch(self) -> list[T]:
        rows = _sort_records(self._matching(), self._order)
        start = self._offset or 0
        end = start + self._limit if self._limit is not None else None
        return rows[start:end]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class MemoryStore[T]:
    """A ``RecordStore`` over dataclass instances kept in a dict.

    Integer primary keys are assigned on ``create`` when the value is
    missing and always stay above every key seen so far; creating a
    record under an existing key raises ``ValueError``. Writes are
    serialized with a lock; sources read a snapshot.
    """

    __slots__ = ("_lock", "_next_pk", "_records", "model", "pk_field")

    def __init__(self, model: type[T], records: Iterable[T] = (), *, pk_field: str = "id") -> None:
        self.model = model
        self.pk_field = pk_field
        self._lock = threading.Lock()
        self._records: dict[str, T] = {}
        self._next_pk = 1
        for record in records:
            pk = record_value(record, pk_field)
            self._records[str(pk)] = record
            self._reserve(pk)

    def __len__(self) -> int:
        return len(self._records)

    def _reserve(self, pk: Any) -> None:
        if isinstance(pk, int) and not isinstance(pk, bool):
            self._next_pk = max(self._next_pk, pk + 1)

    def source(self) -> MemorySource[T]:
        with self._lock:
            return MemorySource(tuple(self._records.values()))

    async def get(self, pk: str) -> T | None:
        return self._records.get(str(pk))

    async def create(self, values: Mapping[str, Any]) -> T:
        data = dict(values)
        with self._lock:
            if data.get(self.pk_field) in (None, ""):
                data[self.pk_field] = self._next_pk
            key = str(data[self.pk_field])
            if key in self._records:
                msg = f"{self.model.__name__} with {self.pk_field}={key} already exists"
                raise ValueError(msg)
            record = self.model(**data)
            self._records[key] = record
            self._reserve(data[self.pk_field])
        return record

    async def update(self, pk: str, values: Mapping[str, Any]) -> T | None:
        with self._lock:
            current = self._records.get(str(pk))
            if current is None:
                return None
            changes = {k: v for k, v in values.items() if k != self.pk_field}
            record = dataclasses.replace(current, **changes)  # type: ignore[type-var]
            self._records[str(pk)] = record
        return record

    async def delete(self, pk: str) -> bool:
        with self._lock:
            return self._records.pop(str(pk), None) is not None

    async def delete_many(self, pks: Sequence[str]) -> int:
        with self._lock:
            removed = [self._records.pop(str(pk), None) for pk in pks]
        return sum(1 for r in removed if r is not None)
