"""SQLite-backed record store.

``SQLSource`` follows the same shape as ``MemorySource``: a frozen
dataclass that accumulates conditions, ordering, and slicing, and only
compiles them to SQL in ``count()``/``fetch()``. ``.sql`` and
``.params`` show exactly what will run.

Column names come from the model's dataclass fields and are the only
identifiers ever interpolated into SQL (quoted); every value is bound as
a parameter. A lookup on a name that is not a column matches nothing,
the same as a missing attribute in ``MemorySource``.

Usage::

    db = Database("sqlite:///admin.db")
    store = SQLStore(db, ArticleModel)
    await store.create_table()
    site.register(ArticleModel, ArticleAdmin, store=store)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from roost.admin.fields import FieldInfo, FieldKind, reflect_model
from roost.data._mapping import to_sql_value
from roost.query.conditions import AnyOf, Condition, Lookup, Op

if TYPE_CHECKING:
    from roost.data.database import Database

_NEVER = "0 = 1"

_COLUMN_TYPES: dict[FieldKind, str] = {
    FieldKind.AUTO: "INTEGER",
    FieldKind.INTEGER: "INTEGER",
    FieldKind.BOOLEAN: "INTEGER",
    FieldKind.FLOAT: "REAL",
}


def quote_identifier(name: str) -> str:
    """Double-quote a SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_condition(cond: Condition, columns: frozenset[str]) -> tuple[str, tuple[Any, ...]]:
    """Translate a condition into a SQL fragment and its parameters."""
    if isinstance(cond, AnyOf):
        parts = [compile_condition(lookup, columns) for lookup in cond.lookups]
        if not parts:
            return _NEVER, ()
        sql = " OR ".join(part for part, _ in parts)
        params = tuple(p for _, group in parts for p in group)
        return f"({sql})", params
    return _compile_lookup(cond, columns)


def _compile_lookup(lookup: Lookup, columns: frozenset[str]) -> tuple[str, tuple[Any, ...]]:
    if lookup.field not in columns:
        return _NEVER, ()
    column = quote_identifier(lookup.field)
    value = lookup.value
    match lookup.op:
        case Op.EXACT if value is None:
            return f"{column} IS NULL", ()
        case Op.EXACT:
            return f"{column} = ?", (to_sql_value(value),)
        case Op.ICONTAINS:
            return f"CAST({column} AS TEXT) LIKE ? ESCAPE '\\'", (f"%{_escape_like(str(value))}%",)
        case Op.GTE:
            return f"{column} >= ?", (to_sql_value(value),)
        case Op.LTE:
            return f"{column} <= ?", (to_sql_value(value),)
        case Op.IN:
            values = tuple(to_sql_value(v) for v in value)  # type: ignore[attr-defined]
            if not values:
                return _NEVER, ()
            marks = ", ".join("?" for _ in values)
            return f"{column} IN ({marks})", values


@dataclass(frozen=True, slots=True)
class SQLSource[T]:
    """Immutable SELECT over one table.

    Every method returns a new ``SQLSource``; the original is unchanged.
    """

    _db: Database
    _model: type[T]
    _table: str
    _columns: frozenset[str]
    _pk: str
    _conditions: tuple[Condition, ...] = ()
    _order: tuple[str, ...] = ()
    _offset: int | None = None
    _limit: int | None = None

    # ── Building ─────────────────────────────────────────────────────────

    def filter(self, *conditions: Condition) -> SQLSource[T]:
        return replace(self, _conditions=(*self._conditions, *conditions))

    def order_by(self, *fields: str) -> SQLSource[T]:
        """Set the ordering. Replaces any previous ordering."""
        return replace(self, _order=tuple(fields))

    def offset(self, n: int) -> SQLSource[T]:
        return replace(self, _offset=n)

    def limit(self, n: int) -> SQLSource[T]:
        return replace(self, _limit=n)

    # ── Compilation ──────────────────────────────────────────────────────

    def _where(self) -> tuple[str, tuple[Any, ...]]:
        if not self._conditions:
            return "", ()
        parts = [compile_condition(c, self._columns) for c in self._conditions]
        sql = " AND ".join(part for part, _ in parts)
        return f" WHERE {sql}", tuple(p for _, group in parts for p in group)

    def _order_clause(self) -> str:
        terms = []
        for key in self._order:
            name = key.removeprefix("-")
            if name in self._columns:
                terms.append(f"{quote_identifier(name)} {'DESC' if key.startswith('-') else 'ASC'}")
        # Stable pagination across equal sort keys.
        if self._pk not in {key.removeprefix("-") for key in self._order}:
            terms.append(f"{quote_identifier(self._pk)} ASC")
        return " ORDER BY " + ", ".join(terms)

    @property
    def sql(self) -> str:
        where, _ = self._where()
        sql = f"SELECT * FROM {quote_identifier(self._table)}{where}{self._order_clause()}"
        if self._limit is not None:
            sql += f" LIMIT {int(self._limit)}"
        if self._offset:
            if self._limit is None:
                sql += " LIMIT -1"
            sql += f" OFFSET {int(self._offset)}"
        return sql

    @property
    def params(self) -> tuple[Any, ...]:
        return self._where()[1]

    # ── Execution ────────────────────────────────────────────────────────

    async def count(self) -> int:
        """Count matching rows, ignoring offset and limit."""
        where, params = self._where()
        value = await self._db.fetch_val(f"SELECT COUNT(*) FROM {quote_identifier(self._table)}{where}", *params)
        return int(value or 0)

    async def fetch(self) -> list[T]:
        return await self._db.fetch(self._model, self.sql, *self.params)


class SQLStore[T]:
    """A ``RecordStore`` over one SQLite table.

    The table defaults to the lowercased model name. Integer primary keys
    left empty on ``create`` are assigned by SQLite; other missing fields
    take their dataclass defaults.
    """

    __slots__ = ("columns", "db", "fields", "model", "pk_field", "table")

    def __init__(self, db: Database, model: type[T], *, table: str | None = None) -> None:
        meta, fields = reflect_model(model)
        self.db = db
        self.model = model
        self.fields: tuple[FieldInfo, ...] = fields
        self.table = table or meta.model_name
        self.pk_field = meta.primary_key
        self.columns = frozenset(f.name for f in dataclasses.fields(model))

    def __repr__(self) -> str:
        return f"<SQLStore {self.table!r} on {self.db!r}>"

    def _data(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {k: to_sql_value(v) for k, v in values.items() if k in self.columns}

    def create_table_sql(self) -> str:
        """``CREATE TABLE IF NOT EXISTS`` for the model's fields."""
        columns = []
        for info in self.fields:
            column = f"{quote_identifier(info.name)} {_COLUMN_TYPES.get(info.kind, 'TEXT')}"
            if info.name == self.pk_field:
                column += " PRIMARY KEY"
            elif not info.null:
                column += " NOT NULL"
            columns.append(column)
        return f"CREATE TABLE IF NOT EXISTS {quote_identifier(self.table)} ({', '.join(columns)})"

    async def create_table(self) -> None:
        await self.db.execute(self.create_table_sql())

    def source(self) -> SQLSource[T]:
        return SQLSource(self.db, self.model, self.table, self.columns, self.pk_field)

    async def get(self, pk: str) -> T | None:
        sql = f"SELECT * FROM {quote_identifier(self.table)} WHERE {quote_identifier(self.pk_field)} = ?"
        return await self.db.fetch_one(self.model, sql, pk)

    async def create(self, values: Mapping[str, Any]) -> T:
        data = self._data(values)
        for info in self.fields:
            if info.name in data:
                continue
            if info.has_default and info.default is not None:
                data[info.name] = to_sql_value(info.default)
            elif info.is_multiple:
                data[info.name] = to_sql_value([])
        if data.get(self.pk_field) in (None, ""):
            data.pop(self.pk_field, None)
        names = ", ".join(quote_identifier(k) for k in data)
        marks = ", ".join("?" for _ in data)
        table = quote_identifier(self.table)
        sql = f"INSERT INTO {table} ({names}) VALUES ({marks})" if data else f"INSERT INTO {table} DEFAULT VALUES"
        async with self.db.transaction():
            rowid = await self.db.insert(sql, *data.values())
            pk = data.get(self.pk_field, rowid)
            record = await self.get(str(pk))
        if record is None:
            msg = f"Inserted row {pk!r} not found in {self.table!r}"
            raise LookupError(msg)
        return record

    async def update(self, pk: str, values: Mapping[str, Any]) -> T | None:
        data = {k: v for k, v in self._data(values).items() if k != self.pk_field}
        if not data:
            return await self.get(pk)
        assignments = ", ".join(f"{quote_identifier(k)} = ?" for k in data)
        sql = f"UPDATE {quote_identifier(self.table)} SET {assignments} WHERE {quote_identifier(self.pk_field)} = ?"
        async with self.db.transaction():
            if not await self.db.execute(sql, *data.values(), pk):
                return None
            return await self.get(pk)

    async def delete(self, pk: str) -> bool:
        sql = f"DELETE FROM {quote_identifier(self.table)} WHERE {quote_identifier(self.pk_field)} = ?"
        return await self.db.execute(sql, pk) > 0

    async def delete_many(self, pks: Sequence[str]) -> int:
        if not pks:
            return 0
        marks = ", ".join("?" for _ in pks)
        sql = f"DELETE FROM {quote_identifier(self.table)} WHERE {quote_identifier(self.pk_field)} IN ({marks})"
        return await self.db.execute(sql, *pks)
