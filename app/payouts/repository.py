# app/payouts/repository.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from psycopg2.extras import Json

from db_exec import db_execute, db_fetchall, db_fetchone

_COLUMNS = """
  id, vendor_id, amount, payout_method, account_details, request_status, notes,
  processed_by, processed_at, rejection_reason, failure_reason,
  transfer_code, transaction_reference, created_at, updated_at
"""


class PayoutRequestRepository(Protocol):
    def insert(self, row: dict[str, Any]) -> int: ...
    def get(self, request_id: int) -> Optional[dict[str, Any]]: ...
    def list_requests(self, *, status: Optional[str], vendor_id: Optional[int], limit: int, offset: int) -> list[dict[str, Any]]: ...
    def update_status(
        self,
        request_id: int,
        *,
        new_status: str,
        from_status: Optional[str] = None,
        processed_by: Optional[int] = None,
        rejection_reason: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> bool: ...
    def update_transfer_code(self, request_id: int, transfer_code: str, transaction_reference: Optional[str]) -> bool: ...
    def sum_amount(self, vendor_id: int, *, statuses: Sequence[str]) -> Decimal: ...
    def stats(self) -> dict[str, Any]: ...
    def lock_vendor(self, vendor_id: int) -> None: ...
    def commit(self) -> None: ...


class PgPayoutRequestRepository:
    """psycopg2-backed store for marketplace.payout_requests."""

    def __init__(self, conn):
        self.conn = conn

    # ==========================================================
    # Writes
    # ==========================================================

    def insert(self, row: dict[str, Any]) -> int:
        res = db_fetchone(
            self.conn,
            """
            INSERT INTO marketplace.payout_requests (
              vendor_id, amount, payout_method, account_details, request_status, notes,
              created_at, updated_at
            )
            VALUES (%s, %s, %s, %s::jsonb, %s, %s, now(), now())
            RETURNING id
            """,
            (
                row["vendor_id"],
                row["amount"],
                row["payout_method"],
                Json(row.get("account_details") or {}),
                row["request_status"],
                row.get("notes"),
            ),
        )
        return int(res["id"])

    def update_status(
        self,
        request_id: int,
        *,
        new_status: str,
        from_status: Optional[str] = None,
        processed_by: Optional[int] = None,
        rejection_reason: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        """
        Compare-and-swap when from_status is given: zero rows means the record is
        missing or another operator moved it first.
        """
        status_guard_sql = ""
        params: list[Any] = [
            new_status,
            processed_by,
            processed_by,
            rejection_reason,
            failure_reason,
            request_id,
        ]
        if from_status is not None:
            status_guard_sql = "AND request_status = %s"
            params.append(from_status)

        rows = db_execute(
            self.conn,
            f"""
            UPDATE marketplace.payout_requests
            SET
              request_status = %s,
              processed_by = COALESCE(%s, processed_by),
              processed_at = CASE WHEN %s IS NOT NULL THEN now() ELSE processed_at END,
              rejection_reason = COALESCE(%s, rejection_reason),
              failure_reason = COALESCE(%s, failure_reason),
              updated_at = now()
            WHERE id = %s
            {status_guard_sql}
            """,
            tuple(params),
        )
        return rows == 1

    def update_transfer_code(self, request_id: int, transfer_code: str, transaction_reference: Optional[str]) -> bool:
        rows = db_execute(
            self.conn,
            """
            UPDATE marketplace.payout_requests
            SET
              transfer_code = %s,
              transaction_reference = COALESCE(%s, transaction_reference),
              updated_at = now()
            WHERE id = %s
            """,
            (transfer_code, transaction_reference, request_id),
        )
        return rows == 1

    def lock_vendor(self, vendor_id: int) -> None:
        # serializes balance-check + insert per vendor until the transaction ends
        db_fetchone(
            self.conn,
            "SELECT pg_advisory_xact_lock(hashtext('payout_vendor'), %s) AS locked",
            (int(vendor_id),),
        )

    def commit(self) -> None:
        self.conn.commit()

    # ==========================================================
    # Reads
    # ==========================================================

    def get(self, request_id: int) -> Optional[dict[str, Any]]:
        return db_fetchone(
            self.conn,
            f"SELECT {_COLUMNS} FROM marketplace.payout_requests WHERE id = %s",
            (request_id,),
        )

    def list_requests(self, *, status: Optional[str], vendor_id: Optional[int], limit: int, offset: int) -> list[dict[str, Any]]:
        filters = ["1=1"]
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if status:
            filters.append("request_status = %(status)s")
            params["status"] = status
        if vendor_id is not None:
            filters.append("vendor_id = %(vendor_id)s")
            params["vendor_id"] = vendor_id

        return db_fetchall(
            self.conn,
            f"""
            SELECT {_COLUMNS}
            FROM marketplace.payout_requests
            WHERE {" AND ".join(filters)}
            ORDER BY created_at DESC, id DESC
            LIMIT %(limit)s OFFSET %(offset)s
            """,
            params,
        )

    def sum_amount(self, vendor_id: int, *, statuses: Sequence[str]) -> Decimal:
        row = db_fetchone(
            self.conn,
            """
            SELECT COALESCE(SUM(amount), 0) AS total
            FROM marketplace.payout_requests
            WHERE vendor_id = %s
              AND request_status = ANY(%s)
            """,
            (vendor_id, list(statuses)),
        )
        return Decimal(row["total"]) if row else Decimal("0")

    def stats(self) -> dict[str, Any]:
        row = db_fetchone(
            self.conn,
            """
            SELECT
              COUNT(*) AS total,
              COUNT(*) FILTER (WHERE request_status = 'pending') AS pending_count,
              COUNT(*) FILTER (WHERE request_status = 'approved') AS approved_count,
              COUNT(*) FILTER (WHERE request_status = 'processing') AS processing_count,
              COUNT(*) FILTER (WHERE request_status = 'completed') AS completed_count,
              COUNT(*) FILTER (WHERE request_status = 'rejected') AS rejected_count,
              COUNT(*) FILTER (WHERE request_status = 'failed') AS failed_count,
              COALESCE(SUM(amount) FILTER (WHERE request_status = 'completed'), 0) AS total_paid
            FROM marketplace.payout_requests
            """,
        )
        return row or {}
