# tests/fakes.py
"""In-memory stand-ins for the psycopg2 repositories."""
from __future__ import annotations

import copy
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(rows):
    return sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)


class InMemoryTransactionRepository:
    UPDATABLE = frozenset({"payment_status", "payment_reference", "delivery_status"})

    def __init__(self):
        self.rows: dict[int, dict[str, Any]] = {}
        self._next_id = 1

    def insert(self, row: dict[str, Any]) -> int:
        if any(r["transaction_code"] == row["transaction_code"] for r in self.rows.values()):
            raise AssertionError(f"duplicate transaction_code {row['transaction_code']}")
        tid = self._next_id
        self._next_id += 1
        stored = dict(row)
        stored.setdefault("payment_reference", None)
        stored.setdefault("rental_duration", None)
        stored.setdefault("rental_period_unit", None)
        stored.update(id=tid, created_at=_now(), updated_at=_now())
        self.rows[tid] = stored
        return tid

    def get(self, transaction_id: int) -> Optional[dict[str, Any]]:
        row = self.rows.get(transaction_id)
        return copy.deepcopy(row) if row else None

    def list_for_user(self, user_id: int, *, role: str, limit: int, offset: int) -> list[dict[str, Any]]:
        def matches(r):
            if role == "buyer":
                return r["buyer_id"] == user_id
            if role == "seller":
                return r["seller_id"] == user_id
            return user_id in (r["buyer_id"], r["seller_id"])

        rows = _newest_first([r for r in self.rows.values() if matches(r)])
        return [copy.deepcopy(r) for r in rows[offset : offset + limit]]

    def update_fields(self, transaction_id: int, fields: dict[str, Any]) -> int:
        unknown = set(fields) - self.UPDATABLE
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")
        row = self.rows.get(transaction_id)
        if row is None or not fields:
            return 0
        row.update(fields, updated_at=_now())
        return 1

    def cancel(self, transaction_id: int) -> int:
        row = self.rows.get(transaction_id)
        if row is None:
            return 0
        if row["payment_status"] == "cancelled" and row["delivery_status"] == "cancelled":
            return 0
        row.update(payment_status="cancelled", delivery_status="cancelled", updated_at=_now())
        return 1

    def delete(self, transaction_id: int) -> int:
        return 1 if self.rows.pop(transaction_id, None) else 0

    def is_party(self, transaction_id: int, user_id: int) -> bool:
        row = self.rows.get(transaction_id)
        return bool(row) and user_id in (row["buyer_id"], row["seller_id"])

    def sum_seller_amount(self, seller_id: int, *, payment_status: str) -> Decimal:
        return sum(
            (
                Decimal(r["seller_amount"])
                for r in self.rows.values()
                if r["seller_id"] == seller_id and r["payment_status"] == payment_status
            ),
            Decimal("0"),
        )


class InMemoryPayoutRequestRepository:
    def __init__(self):
        self.rows: dict[int, dict[str, Any]] = {}
        self._next_id = 1
        self.locked_vendors: list[int] = []
        self.commits = 0
        # test hook: called with (request_id, new_status) right before a CAS write
        self.before_status_write = None

    def insert(self, row: dict[str, Any]) -> int:
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = {
            "id": rid,
            "vendor_id": row["vendor_id"],
            "amount": Decimal(row["amount"]),
            "payout_method": row["payout_method"],
            "account_details": dict(row.get("account_details") or {}),
            "request_status": row["request_status"],
            "notes": row.get("notes"),
            "processed_by": None,
            "processed_at": None,
            "rejection_reason": None,
            "failure_reason": None,
            "transfer_code": None,
            "transaction_reference": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        return rid

    def get(self, request_id: int) -> Optional[dict[str, Any]]:
        row = self.rows.get(request_id)
        return copy.deepcopy(row) if row else None

    def list_requests(self, *, status: Optional[str], vendor_id: Optional[int], limit: int, offset: int) -> list[dict[str, Any]]:
        rows = [
            r
            for r in self.rows.values()
            if (not status or r["request_status"] == status) and (vendor_id is None or r["vendor_id"] == vendor_id)
        ]
        return [copy.deepcopy(r) for r in _newest_first(rows)[offset : offset + limit]]

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
        if self.before_status_write is not None:
            self.before_status_write(request_id, new_status)

        row = self.rows.get(request_id)
        if row is None:
            return False
        if from_status is not None and row["request_status"] != from_status:
            return False

        row["request_status"] = new_status
        if processed_by is not None:
            row["processed_by"] = processed_by
            row["processed_at"] = _now()
        if rejection_reason is not None:
            row["rejection_reason"] = rejection_reason
        if failure_reason is not None:
            row["failure_reason"] = failure_reason
        row["updated_at"] = _now()
        return True

    def update_transfer_code(self, request_id: int, transfer_code: str, transaction_reference: Optional[str]) -> bool:
        row = self.rows.get(request_id)
        if row is None:
            return False
        row["transfer_code"] = transfer_code
        if transaction_reference is not None:
            row["transaction_reference"] = transaction_reference
        row["updated_at"] = _now()
        return True

    def sum_amount(self, vendor_id: int, *, statuses: Sequence[str]) -> Decimal:
        return sum(
            (r["amount"] for r in self.rows.values() if r["vendor_id"] == vendor_id and r["request_status"] in statuses),
            Decimal("0"),
        )

    def stats(self) -> dict[str, Any]:
        out: dict[str, Any] = {"total": len(self.rows)}
        for status in ("pending", "approved", "processing", "completed", "rejected", "failed"):
            out[f"{status}_count"] = sum(1 for r in self.rows.values() if r["request_status"] == status)
        out["total_paid"] = sum(
            (r["amount"] for r in self.rows.values() if r["request_status"] == "completed"),
            Decimal("0"),
        )
        return out

    def lock_vendor(self, vendor_id: int) -> None:
        self.locked_vendors.append(vendor_id)

    def commit(self) -> None:
        self.commits += 1


class RecordingAuditSink:
    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, event: str, context: dict[str, Any]) -> None:
        self.events.append((event, dict(context)))

    def names(self) -> list[str]:
        return [e for e, _ in self.events]
