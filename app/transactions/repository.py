# app/transactions/repository.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from db_exec import db_execute, db_fetchall, db_fetchone

_COLUMNS = """
  id, transaction_code, buyer_id, seller_id, book_id, transaction_type,
  quantity, unit_price, total_amount, commission_amount, seller_amount,
  payment_status, delivery_status, payment_method, payment_reference,
  delivery_method, rental_duration, rental_period_unit, created_at, updated_at
"""


class TransactionRepository(Protocol):
    def insert(self, row: dict[str, Any]) -> int: ...
    def get(self, transaction_id: int) -> Optional[dict[str, Any]]: ...
    def list_for_user(self, user_id: int, *, role: str, limit: int, offset: int) -> list[dict[str, Any]]: ...
    def update_fields(self, transaction_id: int, fields: dict[str, Any]) -> int: ...
    def cancel(self, transaction_id: int) -> int: ...
    def delete(self, transaction_id: int) -> int: ...
    def is_party(self, transaction_id: int, user_id: int) -> bool: ...
    def sum_seller_amount(self, seller_id: int, *, payment_status: str) -> Decimal: ...


class PgTransactionRepository:
    """psycopg2-backed store for marketplace.transactions."""

    # only these may be written through update_fields
    UPDATABLE = frozenset({"payment_status", "payment_reference", "delivery_status"})

    def __init__(self, conn):
        self.conn = conn

    def insert(self, row: dict[str, Any]) -> int:
        cols = list(row.keys())
        placeholders = ", ".join(["%s"] * len(cols))
        res = db_fetchone(
            self.conn,
            f"""
            INSERT INTO marketplace.transactions ({", ".join(cols)}, created_at, updated_at)
            VALUES ({placeholders}, now(), now())
            RETURNING id
            """,
            tuple(row[c] for c in cols),
        )
        return int(res["id"])

    def get(self, transaction_id: int) -> Optional[dict[str, Any]]:
        return db_fetchone(
            self.conn,
            f"SELECT {_COLUMNS} FROM marketplace.transactions WHERE id = %s",
            (transaction_id,),
        )

    def list_for_user(self, user_id: int, *, role: str, limit: int, offset: int) -> list[dict[str, Any]]:
        if role == "buyer":
            where = "buyer_id = %(uid)s"
        elif role == "seller":
            where = "seller_id = %(uid)s"
        else:
            where = "(buyer_id = %(uid)s OR seller_id = %(uid)s)"

        return db_fetchall(
            self.conn,
            f"""
            SELECT {_COLUMNS}
            FROM marketplace.transactions
            WHERE {where}
            ORDER BY created_at DESC, id DESC
            LIMIT %(limit)s OFFSET %(offset)s
            """,
            {"uid": user_id, "limit": limit, "offset": offset},
        )

    def update_fields(self, transaction_id: int, fields: dict[str, Any]) -> int:
        unknown = set(fields) - self.UPDATABLE
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        if not fields:
            return 0

        cols: Sequence[str] = list(fields.keys())
        assignments = ", ".join(f"{c} = %s" for c in cols)
        return db_execute(
            self.conn,
            f"""
            UPDATE marketplace.transactions
            SET {assignments}, updated_at = now()
            WHERE id = %s
            """,
            (*[fields[c] for c in cols], transaction_id),
        )

    def cancel(self, transaction_id: int) -> int:
        # no-op when already cancelled on both axes, so a repeat cancel reports 0 rows
        return db_execute(
            self.conn,
            """
            UPDATE marketplace.transactions
            SET payment_status = 'cancelled',
                delivery_status = 'cancelled',
                updated_at = now()
            WHERE id = %s
              AND (payment_status <> 'cancelled' OR delivery_status <> 'cancelled')
            """,
            (transaction_id,),
        )

    def delete(self, transaction_id: int) -> int:
        return db_execute(
            self.conn,
            "DELETE FROM marketplace.transactions WHERE id = %s",
            (transaction_id,),
        )

    def is_party(self, transaction_id: int, user_id: int) -> bool:
        row = db_fetchone(
            self.conn,
            """
            SELECT 1 AS ok
            FROM marketplace.transactions
            WHERE id = %(tid)s
              AND (buyer_id = %(uid)s OR seller_id = %(uid)s)
            """,
            {"tid": transaction_id, "uid": user_id},
        )
        return row is not None

    def sum_seller_amount(self, seller_id: int, *, payment_status: str) -> Decimal:
        row = db_fetchone(
            self.conn,
            """
            SELECT COALESCE(SUM(seller_amount), 0) AS total
            FROM marketplace.transactions
            WHERE seller_id = %s
              AND payment_status = %s
            """,
            (seller_id, payment_status),
        )
        return Decimal(row["total"]) if row else Decimal("0")
