"""Typed async SQLite access for SQL-backed admin stores.

SQL in, dataclasses out. Each statement runs start to finish (execute
plus fetch) in one ``anyio`` worker thread against a single
``sqlite3`` connection opened with ``autocommit=True``; an async lock
serializes statements outside ``transaction()``.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite

Usage::

    db = Database("sqlite:///admin.db")

    articles = await db.fetch(Article, "SELECT * FROM articlemodel WHERE published = ?", 1)
    count = await db.fetch_val("SELECT COUNT(*) FROM articlemodel")

    async with db.transaction():
        await db.execute("DELETE FROM articlemodel WHERE id = ?", 3)
        await db.execute("DELETE FROM comment WHERE article_id = ?", 3)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

import anyio
import anyio.to_thread

from roost.data._mapping import map_row, map_rows
from roost.data.errors import DataError, QueryError

logger = logging.getLogger("roost.data")

# Per-task connection set inside transaction(); statements reuse it.
_current_conn: ContextVar[sqlite3.Connection | None] = ContextVar("roost_db_conn", default=None)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Database connection configuration."""

    url: str
    echo: bool = False


@dataclass(frozen=True, slots=True)
class StatementResult:
    """Everything one statement produced, read inside the worker thread."""

    columns: tuple[str, ...]
    rows: list[tuple[Any, ...]]
    rowcount: int
    lastrowid: int | None

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row, strict=True)) for row in self.rows]


def _run_statement(conn: sqlite3.Connection, sql: str, params: Sequence[Any], limit: int | None) -> StatementResult:
    cursor = conn.execute(sql, params)
    rows = cursor.fetchall() if limit is None else cursor.fetchmany(limit)
    columns = tuple(desc[0] for desc in cursor.description or ())
    return StatementResult(columns, rows, cursor.rowcount, cursor.lastrowid)


def _open(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
    conn.execute("PRAGMA foreign_keys=ON")
    if path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


def parse_sqlite_path(url: str) -> str:
    """Extract the file path from a ``sqlite://`` URL.

    ``sqlite:///path/to/db`` gives ``path/to/db``; ``sqlite:///:memory:``
    gives ``:memory:``.
    """
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            return url[len(prefix) :]
    msg = f"Unsupported database URL: {url!r}. Supported: sqlite:///path"
    raise DataError(msg)


class Database:
    """Typed async database access over one SQLite connection."""

    __slots__ = ("_async_lock", "_config", "_conn", "_lock", "_path")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self._config = DatabaseConfig(url=url, echo=echo)
        self._path = parse_sqlite_path(url)
        self._lock = threading.Lock()
        self._async_lock: anyio.Lock | None = None  # Created lazily on first use
        self._conn: sqlite3.Connection | None = None

    def __repr__(self) -> str:
        return f"<Database {self._config.url!r}>"

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # -- Connection management --

    def _get_lock(self) -> anyio.Lock:
        # Can't create in __init__ before an event loop exists.
        if self._async_lock is None:
            self._async_lock = anyio.Lock()
        return self._async_lock

    async def _statement(self, sql: str, params: Sequence[Any], *, limit: int | None = None) -> StatementResult:
        """Run one statement, serialized unless inside ``transaction()``.

        Raises:
            QueryError: sqlite3 rejected the statement.
        """
        if self._conn is None:
            await self.connect()
        started = time.perf_counter()
        try:
            conn = _current_conn.get()
            if conn is not None:
                return await anyio.to_thread.run_sync(_run_statement, conn, sql, params, limit)
            async with self._get_lock():
                return await anyio.to_thread.run_sync(_run_statement, self._conn, sql, params, limit)
        except sqlite3.Error as exc:
            raise QueryError(str(exc)) from exc
        finally:
            self._log_query(sql, params, time.perf_counter() - started)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Execute multiple statements atomically.

        Commits on clean exit, rolls back on exception. Statements inside
        the block reuse the transaction's connection. A nested
        ``transaction()`` joins the outer one.
        """
        if self._conn is None:
            await self.connect()

        if _current_conn.get() is not None:
            yield
            return

        async with self._get_lock():
            conn = self._conn
            token = _current_conn.set(conn)
            conn.autocommit = False
            try:
                yield
                await anyio.to_thread.run_sync(conn.commit)
            except BaseException:
                await anyio.to_thread.run_sync(conn.rollback)
                raise
            finally:
                conn.autocommit = True
                _current_conn.reset(token)

    # -- Echo / query logging --

    def _log_query(self, sql: str, params: Sequence[Any], elapsed: float) -> None:
        if not self._config.echo:
            return
        param_str = f"  params={tuple(params)!r}" if params else ""
        logger.info("%6.1fms  %s%s", elapsed * 1000, sql, param_str)

    # -- Public query API --

    async def fetch[T](self, cls: type[T], sql: str, /, *params: Any) -> list[T]:
        """Execute a query and return all rows as dataclasses."""
        return map_rows(cls, await self.fetch_dicts(sql, *params))

    async def fetch_dicts(self, sql: str, /, *params: Any) -> list[dict[str, Any]]:
        """Execute a query and return all rows as plain dicts."""
        return (await self._statement(sql, params)).as_dicts()

    async def fetch_one[T](self, cls: type[T], sql: str, /, *params: Any) -> T | None:
        """Execute a query and return the first row, or ``None``."""
        rows = (await self._statement(sql, params, limit=1)).as_dicts()
        return map_row(cls, rows[0]) if rows else None

    async def fetch_val(self, sql: str, /, *params: Any) -> Any:
        """First column of the first row (COUNT and friends), or ``None``."""
        result = await self._statement(sql, params, limit=1)
        return result.rows[0][0] if result.rows else None

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Execute a statement (DDL, UPDATE, DELETE) and return rows affected."""
        return (await self._statement(sql, params)).rowcount

    async def insert(self, sql: str, /, *params: Any) -> int | None:
        """Execute an INSERT and return the new row's ``rowid``."""
        return (await self._statement(sql, params)).lastrowid

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection.

        Called automatically on first query. Call explicitly to fail fast
        at startup.
        """
        if self._conn is not None:
            return
        conn = await anyio.to_thread.run_sync(_open, self._path)
        with self._lock:
            if self._conn is None:
                self._conn = conn
                conn = None
        if conn is not None:
            await anyio.to_thread.run_sync(conn.close)
            return
        logger.debug("Connected to %s", self._config.url)

    async def disconnect(self) -> None:
        """Close the connection."""
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            await anyio.to_thread.run_sync(conn.close)

    # -- Context manager --

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()
