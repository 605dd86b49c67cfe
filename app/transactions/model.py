from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

TRANSACTION_TYPES = ("purchase", "rental", "exchange")

PAYMENT_STATUSES = ("pending", "processing", "completed", "failed", "refunded", "cancelled")
DELIVERY_STATUSES = ("pending", "processing", "shipped", "delivered", "returned", "cancelled")

DEFAULT_PAYMENT_METHOD = "mobile_money"
DEFAULT_DELIVERY_METHOD = "pickup"


@dataclass(frozen=True)
class Transaction:
    id: int
    transaction_code: str
    buyer_id: int
    seller_id: int
    book_id: int
    transaction_type: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    commission_amount: Decimal
    seller_amount: Decimal
    payment_status: str
    delivery_status: str
    payment_method: str = DEFAULT_PAYMENT_METHOD
    payment_reference: Optional[str] = None
    delivery_method: str = DEFAULT_DELIVERY_METHOD
    rental_duration: Optional[int] = None
    rental_period_unit: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transaction":
        return cls(
            id=int(row["id"]),
            transaction_code=row["transaction_code"],
            buyer_id=int(row["buyer_id"]),
            seller_id=int(row["seller_id"]),
            book_id=int(row["book_id"]),
            transaction_type=row["transaction_type"],
            quantity=int(row["quantity"]),
            unit_price=Decimal(row["unit_price"]),
            total_amount=Decimal(row["total_amount"]),
            commission_amount=Decimal(row["commission_amount"]),
            seller_amount=Decimal(row["seller_amount"]),
            payment_status=row["payment_status"],
            delivery_status=row["delivery_status"],
            payment_method=row.get("payment_method") or DEFAULT_PAYMENT_METHOD,
            payment_reference=row.get("payment_reference"),
            delivery_method=row.get("delivery_method") or DEFAULT_DELIVERY_METHOD,
            rental_duration=row.get("rental_duration"),
            rental_period_unit=row.get("rental_period_unit"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
