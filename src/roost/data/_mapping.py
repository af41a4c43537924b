"""Row-to-dataclass mapping with type coercion.

Converts raw SQLite rows (dicts) into model dataclass instances. SQLite
hands back ``int`` for booleans and ``str`` for dates, decimals and
UUIDs; fields annotated with those types are coerced on the way out.
List fields (many-to-many keys) are stored as JSON arrays.
"""

import dataclasses
import json
import types
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, get_args, get_origin, get_type_hints

# Types we know how to coerce from driver values.
_COERCIBLE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
    Decimal: lambda v: Decimal(str(v)),
    datetime: lambda v: datetime.fromisoformat(v),
    date: lambda v: date.fromisoformat(v[:10]),
    uuid.UUID: lambda v: uuid.UUID(str(v)),
    list: json.loads,
}


def _build_coercion_map(cls: type) -> dict[str, type | None]:
    """Build a {field_name: target_type} map for coercible fields."""
    hints = get_type_hints(cls)
    result: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name, f.type)
        # Unwrap Optional (X | None): coerce to the non-None branch
        if get_origin(annotation) is types.UnionType:
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        if get_origin(annotation) is list:
            annotation = list
        result[f.name] = annotation if annotation in _COERCIBLE else None
    return result


def _coerce(value: Any, target: type | None) -> Any:
    """Coerce a single value to the target type, if needed."""
    if target is None or value is None:
        return value
    if isinstance(value, target):
        return value
    return _COERCIBLE[target](value)


def map_rows[T](cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    """Map dict rows to dataclass instances.

    Only keys that match dataclass fields are passed, so ``SELECT *`` is
    fine even when the table has extra columns.

    Raises ``TypeError`` if *cls* is not a dataclass or a required field
    is missing from a row.
    """
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; roost.data maps rows onto dataclasses"
        raise TypeError(msg)

    coercion = _build_coercion_map(cls)
    return [
        cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})
        for row in rows
    ]


def map_row[T](cls: type[T], row: dict[str, Any]) -> T:
    """Map a single dict row to a dataclass instance."""
    return map_rows(cls, [row])[0]


def to_sql_value(value: Any) -> Any:
    """Adapt a Python value for binding as a SQLite parameter."""
    match value:
        case bool():
            return int(value)
        case datetime() | date():
            return value.isoformat()
        case Decimal() | uuid.UUID():
            return str(value)
        case list() | tuple() | set() | frozenset():
            return json.dumps([to_sql_value(v) for v in value])
        case _:
            return value
