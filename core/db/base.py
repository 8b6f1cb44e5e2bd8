"""
Low-level database helpers (Postgres-only).

There is no module-level connection: callers build a ``ConnectionFactory``
from a database URL and hand it to whatever needs the database.
"""
from __future__ import annotations

from typing import Callable, Iterable

try:
    import psycopg
    from psycopg.rows import dict_row
except Exception as exc:  # pragma: no cover - required dependency
    raise RuntimeError("psycopg is required for Postgres") from exc

from core.config import resolve_database_url


def _convert_qmarks(sql: str) -> str:
    if "?" not in sql:
        return sql
    return sql.replace("?", "%s")


class _CursorWrapper:
    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, sql: str, params: Iterable | None = None):
        sql = _convert_qmarks(sql)
        if params is None:
            return self._cursor.execute(sql)
        return self._cursor.execute(sql, params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()

    def __iter__(self):
        return iter(self._cursor)

    @property
    def rowcount(self):
        return getattr(self._cursor, "rowcount", 0)


class _ConnWrapper:
    def __init__(self, conn):
        self._conn = conn

    def cursor(self):
        return _CursorWrapper(self._conn.cursor())

    def commit(self):
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()

    def close(self):
        return self._conn.close()


ConnectionFactory = Callable[[], _ConnWrapper]


def connection_factory(database_url: str) -> ConnectionFactory:
    """
    Return a callable that opens a new Postgres connection for ``database_url``.
    """
    url = resolve_database_url(database_url)

    def get_conn() -> _ConnWrapper:
        conn = psycopg.connect(url, row_factory=dict_row)
        return _ConnWrapper(conn)

    return get_conn


__all__ = ["ConnectionFactory", "connection_factory"]
