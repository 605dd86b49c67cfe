# app/payouts/service.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

from app.commission import quantize_money, to_decimal
from app.errors import NotFoundError, ValidationError
from app.payouts.model import (
    COMMITTED_STATUSES,
    DEFAULT_PAYOUT_METHOD,
    PAYOUT_METHODS,
    PAYOUT_STATUSES,
    RESERVED_STATUSES,
    PayoutRequest,
)
from app.payouts.repository import PayoutRequestRepository
from app.payouts.state_machine import InvalidTransition, assert_transfer_invariant, assert_transition
from app.transactions.repository import TransactionRepository
from services.audit_log import AuditSink
from settings import settings

logger = logging.getLogger("bookmarket.payouts")

ZERO = Decimal("0.00")


class PayoutRequestService:
    def __init__(
        self,
        payouts: PayoutRequestRepository,
        transactions: TransactionRepository,
        *,
        audit: AuditSink,
        enforce_available_balance: Optional[bool] = None,
    ):
        self.payouts = payouts
        self.transactions = transactions
        self.audit = audit
        if enforce_available_balance is None:
            enforce_available_balance = settings.PAYOUT_ENFORCE_AVAILABLE_BALANCE
        self.enforce_available_balance = enforce_available_balance

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        *,
        vendor_id: Optional[int],
        amount,
        payout_method: Optional[str] = None,
        account_details: Optional[dict[str, Any]] = None,
        notes: Optional[str] = None,
    ) -> int:
        if not vendor_id or int(vendor_id) <= 0:
            raise ValidationError("vendor_id is required")

        value = quantize_money(to_decimal(amount))
        if value <= 0:
            raise ValidationError("Invalid amount")

        method = (payout_method or DEFAULT_PAYOUT_METHOD).strip().lower()
        if method not in PAYOUT_METHODS:
            raise ValidationError(f"Invalid payout method: {payout_method!r}")

        # balance read and insert share one DB transaction under the vendor lock;
        # open requests count against the balance so they can't each claim all of it
        if not self.balance_allows(int(vendor_id), value, held_statuses=COMMITTED_STATUSES + RESERVED_STATUSES):
            raise ValidationError("Amount exceeds available earnings")

        details = {str(k): "" if v is None else str(v).strip() for k, v in (account_details or {}).items()}
        request_id = self.payouts.insert(
            {
                "vendor_id": int(vendor_id),
                "amount": value,
                "payout_method": method,
                "account_details": details,
                "request_status": "pending",
                "notes": notes,
            }
        )

        logger.info(
            "payout request created request_id=%s vendor_id=%s amount=%s method=%s",
            request_id,
            vendor_id,
            value,
            method,
        )
        self.audit(
            "payout.requested",
            {"request_id": request_id, "vendor_id": int(vendor_id), "amount": str(value), "method": method},
        )
        return request_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, request_id: int) -> PayoutRequest:
        row = self.payouts.get(request_id)
        if not row:
            raise NotFoundError("Payout request not found")
        return PayoutRequest.from_row(row)

    def list_all(self, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> list[PayoutRequest]:
        if status is not None and status not in PAYOUT_STATUSES:
            raise ValidationError(f"Invalid status filter: {status!r}")
        rows = self.payouts.list_requests(
            status=status,
            vendor_id=None,
            limit=min(100, max(1, int(limit))),
            offset=max(0, int(offset)),
        )
        return [PayoutRequest.from_row(r) for r in rows]

    def list_vendor_requests(self, vendor_id: int, limit: int = 20) -> list[PayoutRequest]:
        rows = self.payouts.list_requests(status=None, vendor_id=vendor_id, limit=min(100, max(1, int(limit))), offset=0)
        return [PayoutRequest.from_row(r) for r in rows]

    def get_stats(self) -> dict[str, Any]:
        raw = self.payouts.stats()
        out: dict[str, Any] = {
            k: int(raw.get(k) or 0)
            for k in (
                "total",
                "pending_count",
                "approved_count",
                "processing_count",
                "completed_count",
                "rejected_count",
                "failed_count",
            )
        }
        out["total_paid"] = quantize_money(to_decimal(raw.get("total_paid") or 0))
        return out

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_status(
        self,
        request_id: int,
        status: str,
        processed_by: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Moves a request along pending -> approved -> processing -> completed|failed
        (or pending -> rejected). The write only lands if the status is still the
        one we read, so two operators can't both advance the same request.
        """
        if status not in PAYOUT_STATUSES:
            return False

        row = self.payouts.get(request_id)
        if not row:
            return False

        current = row["request_status"]
        try:
            assert_transition(current, status)
            assert_transfer_invariant(status, row.get("transfer_code"))
        except (InvalidTransition, ValueError) as e:
            logger.warning("payout status update refused request_id=%s: %s", request_id, e)
            return False

        reason = (reason or "").strip() or None
        updated = self.payouts.update_status(
            request_id,
            new_status=status,
            from_status=current,
            processed_by=processed_by,
            rejection_reason=reason if status == "rejected" else None,
            failure_reason=reason if status == "failed" else None,
        )
        if not updated:
            logger.warning(
                "payout status update lost race request_id=%s expected=%s new=%s",
                request_id,
                current,
                status,
            )
            return False

        logger.info(
            "payout status updated request_id=%s %s->%s processed_by=%s",
            request_id,
            current,
            status,
            processed_by,
        )
        self.audit(
            f"payout.{status}",
            {
                "request_id": request_id,
                "from_status": current,
                "status": status,
                "actor_id": processed_by,
                "reason": reason,
            },
        )
        return True

    def update_transfer_code(self, request_id: int, transfer_code: str, transaction_ref: Optional[str] = None) -> bool:
        updated = self.payouts.update_transfer_code(request_id, transfer_code, transaction_ref)
        if updated:
            logger.info(
                "payout transfer code stored request_id=%s transfer_code=%s reference=%s",
                request_id,
                transfer_code,
                transaction_ref,
            )
        return updated

    def commit(self) -> None:
        self.payouts.commit()

    # ------------------------------------------------------------------
    # Earnings
    # ------------------------------------------------------------------

    def get_total_earnings(self, vendor_id: int) -> Decimal:
        total = self.transactions.sum_seller_amount(vendor_id, payment_status="completed")
        return quantize_money(to_decimal(total))

    def get_available_earnings(self, vendor_id: int) -> Decimal:
        return self._earnings_less(vendor_id, COMMITTED_STATUSES)

    def balance_allows(self, vendor_id: int, amount: Decimal, *, held_statuses: Sequence[str]) -> bool:
        """
        Takes the vendor lock and checks `amount` against completed sales minus
        every payout in `held_statuses`. The lock lasts until the caller's
        transaction ends, so the write that follows sees the same balance.
        """
        if not self.enforce_available_balance:
            return True
        self.payouts.lock_vendor(vendor_id)
        headroom = self._earnings_less(vendor_id, held_statuses)
        if amount > headroom:
            logger.warning(
                "payout amount exceeds available earnings vendor_id=%s amount=%s available=%s",
                vendor_id,
                amount,
                headroom,
            )
            return False
        return True

    def _earnings_less(self, vendor_id: int, statuses: Sequence[str]) -> Decimal:
        earned = self.get_total_earnings(vendor_id)
        held = quantize_money(to_decimal(self.payouts.sum_amount(vendor_id, statuses=statuses)))
        return max(ZERO, earned - held)
