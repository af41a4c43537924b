"""Record source and record store protocols.

A ``RecordSource`` is the chainable, immutable query object the admin
pipeline composes: every builder returns a new source and only
``count()`` and ``fetch()`` perform I/O. A ``RecordStore`` owns the
records of one model and hands out fresh sources, plus the single-record
operations the change form and delete views need.

Two implementations ship with roost: ``roost.query.memory.MemoryStore``
and ``roost.data.store.SQLStore``. Anything that satisfies the protocols
(an ORM adapter, an HTTP API client) can be registered instead.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from roost.query.conditions import Condition


@runtime_checkable
class RecordSource[T](Protocol):
    """Chainable query over one model's records.

    ``count()`` ignores ``offset``/``limit``; ``fetch()`` honours them.
    """

    def filter(self, *conditions: Condition) -> RecordSource[T]: ...

    def order_by(self, *fields: str) -> RecordSource[T]: ...

    def offset(self, n: int) -> RecordSource[T]: ...

    def limit(self, n: int) -> RecordSource[T]: ...

    async def count(self) -> int: ...

    async def fetch(self) -> list[T]: ...


@runtime_checkable
class RecordStore[T](Protocol):
    """Persistence for one model, keyed by primary key strings from URLs."""

    def source(self) -> RecordSource[T]: ...

    async def get(self, pk: str) -> T | None: ...

    async def create(self, values: Mapping[str, Any]) -> T: ...

    async def update(self, pk: str, values: Mapping[str, Any]) -> T | None: ...

    async def delete(self, pk: str) -> bool: ...

    async def delete_many(self, pks: Sequence[str]) -> int: ...
