# app/transactions/service.py
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Optional

from app.commission import CommissionRateProvider, compute_amounts, to_decimal
from app.errors import NotFoundError, ValidationError
from app.transactions.model import (
    DEFAULT_DELIVERY_METHOD,
    DEFAULT_PAYMENT_METHOD,
    DELIVERY_STATUSES,
    PAYMENT_STATUSES,
    TRANSACTION_TYPES,
    Transaction,
)
from app.transactions.repository import TransactionRepository
from services.audit_log import AuditSink
from settings import settings

logger = logging.getLogger("bookmarket.transactions")

MAX_PAGE_SIZE = 100


def generate_transaction_code(prefix: Optional[str] = None, *, now: Optional[datetime] = None) -> str:
    """
    <prefix><yymmdd><16 uppercase hex chars from the OS CSPRNG>, e.g. BDE2610199F3A1B2C3D4E5F60.
    Receipt identifier, not a security token.
    """
    p = (prefix or settings.TRANSACTION_CODE_PREFIX).strip().upper()
    stamp = (now or datetime.now(timezone.utc)).strftime("%y%m%d")
    return f"{p}{stamp}{secrets.token_hex(8).upper()}"


def _clamp_limit(limit: int) -> int:
    return min(MAX_PAGE_SIZE, max(1, int(limit)))


class TransactionService:
    def __init__(
        self,
        repo: TransactionRepository,
        *,
        commission_rates: CommissionRateProvider,
        audit: AuditSink,
    ):
        self.repo = repo
        self.commission_rates = commission_rates
        self.audit = audit

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_transaction(
        self,
        *,
        buyer_id: int,
        seller_id: int,
        book_id: int,
        transaction_type: str,
        unit_price,
        quantity: int = 1,
        rental_duration: Optional[int] = None,
        rental_period_unit: Optional[str] = None,
        payment_method: Optional[str] = None,
        payment_status: Optional[str] = None,
        payment_reference: Optional[str] = None,
        delivery_method: Optional[str] = None,
        delivery_status: Optional[str] = None,
        commission_tenant: Optional[str] = None,
    ) -> int:
        if buyer_id is None or seller_id is None or book_id is None:
            raise ValidationError("buyer_id, seller_id and book_id are required")
        if int(buyer_id) == int(seller_id):
            raise ValidationError("Cannot purchase your own book")
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type: {transaction_type!r}")

        price = to_decimal(unit_price)
        if price <= 0:
            raise ValidationError("Invalid price")

        qty = max(1, int(quantity or 1))
        amounts = compute_amounts(price, qty, self.commission_rates.rate(commission_tenant))

        # completion needs provider confirmation, so "completed" is never accepted here
        if payment_status not in PAYMENT_STATUSES or payment_status == "completed":
            payment_status = "pending"
        if delivery_status not in DELIVERY_STATUSES:
            delivery_status = "pending"

        row: dict[str, Any] = {
            "transaction_code": generate_transaction_code(),
            "buyer_id": int(buyer_id),
            "seller_id": int(seller_id),
            "book_id": int(book_id),
            "transaction_type": transaction_type,
            "rental_duration": rental_duration if transaction_type == "rental" else None,
            "rental_period_unit": rental_period_unit if transaction_type == "rental" else None,
            "quantity": qty,
            "unit_price": price,
            "total_amount": amounts.total,
            "commission_amount": amounts.commission,
            "seller_amount": amounts.seller_amount,
            "payment_method": payment_method or DEFAULT_PAYMENT_METHOD,
            "payment_status": payment_status,
            "payment_reference": payment_reference,
            "delivery_method": delivery_method or DEFAULT_DELIVERY_METHOD,
            "delivery_status": delivery_status,
        }
        transaction_id = self.repo.insert(row)

        logger.info(
            "transaction created id=%s code=%s type=%s book_id=%s total=%s commission=%s",
            transaction_id,
            row["transaction_code"],
            transaction_type,
            book_id,
            amounts.total,
            amounts.commission,
        )
        self.audit(
            "transaction.created",
            {
                "transaction_id": transaction_id,
                "transaction_code": row["transaction_code"],
                "type": transaction_type,
                "buyer_id": int(buyer_id),
                "book_id": int(book_id),
                "amount": str(amounts.total),
            },
        )
        return transaction_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: int) -> Transaction:
        row = self.repo.get(transaction_id)
        if not row:
            raise NotFoundError("Transaction not found")
        return Transaction.from_row(row)

    def get_transaction_details(self, transaction_id: int, user_id: Optional[int] = None) -> Optional[Transaction]:
        row = self.repo.get(transaction_id)
        if not row:
            return None
        tx = Transaction.from_row(row)
        if user_id is not None and user_id not in (tx.buyer_id, tx.seller_id):
            logger.warning(
                "unauthorized transaction access attempt transaction_id=%s user_id=%s",
                transaction_id,
                user_id,
            )
            return None
        return tx

    def can_user_view(self, transaction_id: int, user_id: int) -> bool:
        return self.repo.is_party(transaction_id, user_id)

    def list_user_transactions(self, user_id: int, limit: int = 50, offset: int = 0) -> list[Transaction]:
        rows = self.repo.list_for_user(user_id, role="any", limit=_clamp_limit(limit), offset=max(0, int(offset)))
        return [Transaction.from_row(r) for r in rows]

    def list_user_purchases(self, user_id: int, limit: int = 20) -> list[Transaction]:
        rows = self.repo.list_for_user(user_id, role="buyer", limit=_clamp_limit(limit), offset=0)
        return [Transaction.from_row(r) for r in rows]

    def list_user_sales(self, user_id: int, limit: int = 20) -> list[Transaction]:
        rows = self.repo.list_for_user(user_id, role="seller", limit=_clamp_limit(limit), offset=0)
        return [Transaction.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Status updates (any valid status reachable from any other)
    # ------------------------------------------------------------------

    def update_payment_status(self, transaction_id: int, status: str, reference: Optional[str] = None) -> bool:
        if status not in PAYMENT_STATUSES:
            return False

        fields: dict[str, Any] = {"payment_status": status}
        if reference is not None:
            fields["payment_reference"] = reference

        updated = self.repo.update_fields(transaction_id, fields) > 0
        if updated:
            logger.info("payment status updated transaction_id=%s status=%s", transaction_id, status)
            self.audit(
                "transaction.payment_status_updated",
                {"transaction_id": transaction_id, "status": status, "reference": reference},
            )
        return updated

    def update_delivery_status(self, transaction_id: int, status: str) -> bool:
        if status not in DELIVERY_STATUSES:
            return False

        updated = self.repo.update_fields(transaction_id, {"delivery_status": status}) > 0
        if updated:
            logger.info("delivery status updated transaction_id=%s status=%s", transaction_id, status)
            self.audit(
                "transaction.delivery_status_updated",
                {"transaction_id": transaction_id, "status": status},
            )
        return updated

    def cancel_transaction(self, transaction_id: int) -> bool:
        if transaction_id <= 0:
            return False

        cancelled = self.repo.cancel(transaction_id) > 0
        if cancelled:
            logger.info("transaction cancelled transaction_id=%s", transaction_id)
            self.audit("transaction.cancelled", {"transaction_id": transaction_id})
        return cancelled

    def delete_transaction(self, transaction_id: int) -> bool:
        if transaction_id <= 0:
            return False

        deleted = self.repo.delete(transaction_id) > 0
        if deleted:
            logger.info("transaction deleted transaction_id=%s", transaction_id)
            self.audit("transaction.deleted", {"transaction_id": transaction_id})
        return deleted
