# db_exec.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import psycopg2
from psycopg2.extensions import connection as Connection
from psycopg2.extras import RealDictCursor

from app.errors import PersistenceError

Params = Optional[Sequence[Any] | Mapping[str, Any]]


def _persistence_error(exc: psycopg2.Error) -> PersistenceError:
    # pgcode only; the raw message may carry row data
    code = getattr(exc, "pgcode", None) or type(exc).__name__
    return PersistenceError(f"Database operation failed ({code})")


def db_fetchone(conn: Connection, sql: str, params: Params = None) -> Optional[dict[str, Any]]:
    """
    Execute on the provided connection so the caller's transaction is preserved.
    Rows come back as plain dicts.
    """
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params or ())
            row = cur.fetchone()
            return dict(row) if row else None
    except psycopg2.Error as e:
        raise _persistence_error(e) from e


def db_fetchall(conn: Connection, sql: str, params: Params = None) -> list[dict[str, Any]]:
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(sql, params or ())
            return [dict(r) for r in cur.fetchall()]
    except psycopg2.Error as e:
        raise _persistence_error(e) from e


def db_execute(conn: Connection, sql: str, params: Params = None) -> int:
    """Returns the affected row count."""
    try:
        with conn.cursor() as cur:
            cur.execute(sql, params or ())
            return cur.rowcount
    except psycopg2.Error as e:
        raise _persistence_error(e) from e
