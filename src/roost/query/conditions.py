"""Filter conditions passed to a record source.

A condition is either a single ``Lookup`` (field, operator, value) or an
``AnyOf`` group that ORs lookups together. Multiple conditions given to
``RecordSource.filter`` are ANDed. Sources translate these into their
own query language; ``MemorySource`` evaluates them directly.

Lookups can be written Django-style::

    lookup("title__icontains", "python")   # Lookup("title", Op.ICONTAINS, "python")
    lookup("published", True)               # Lookup("published", Op.EXACT, True)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum


class Op(StrEnum):
    """Supported lookup operators."""

    EXACT = "exact"
    ICONTAINS = "icontains"
    GTE = "gte"
    LTE = "lte"
    IN = "in"


@dataclass(frozen=True, slots=True)
class Lookup:
    """``field <op> value``."""

    field: str
    op: Op
    value: object


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Logical OR of lookups. An empty group matches nothing."""

    lookups: tuple[Lookup, ...]

    @classmethod
    def of(cls, lookups: Iterable[Lookup]) -> AnyOf:
        return cls(tuple(lookups))


type Condition = Lookup | AnyOf

_OPS = frozenset(op.value for op in Op)


def lookup(expression: str, value: object) -> Lookup:
    """Build a ``Lookup`` from ``field`` or ``field__op``.

    A suffix that is not a known operator is treated as part of the
    field name, with ``exact`` semantics.
    """
    field, sep, suffix = expression.rpartition("__")
    if sep and suffix in _OPS:
        return Lookup(field, Op(suffix), value)
    return Lookup(expression, Op.EXACT, value)
