# db.py
from contextlib import contextmanager

import psycopg2
from psycopg2.pool import SimpleConnectionPool

from app.errors import PersistenceError
from settings import settings

APPLICATION_NAME = "bookmarket_api"

_pool: SimpleConnectionPool | None = None


def init_pool():
    """
    Initialize the PostgreSQL connection pool.
    Called lazily on first use; sized from DB_POOL_MIN / DB_POOL_MAX.
    """
    global _pool
    if _pool is None:
        try:
            _pool = SimpleConnectionPool(
                minconn=settings.DB_POOL_MIN,
                maxconn=settings.DB_POOL_MAX,
                dsn=settings.DATABASE_URL,
                connect_timeout=5,
                application_name=APPLICATION_NAME,
            )
        except psycopg2.OperationalError as e:
            raise PersistenceError("Database unavailable") from e


def close_pool():
    global _pool
    if _pool:
        _pool.closeall()
        _pool = None


@contextmanager
def get_conn():
    """
    One pooled connection per unit of work.
    Commits on success, rolls back on error. Callers that need a write to be
    visible early (payout processing) commit explicitly on the same connection.
    """
    if _pool is None:
        init_pool()

    conn = _pool.getconn()

    try:
        with conn.cursor() as cur:
            cur.execute("SET statement_timeout = %s;", (f"{settings.DB_STATEMENT_TIMEOUT_MS}ms",))
        conn.commit()

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        _pool.putconn(conn)
