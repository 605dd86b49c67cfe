from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

PAYOUT_STATUSES = ("pending", "approved", "processing", "completed", "rejected", "failed")
TERMINAL_STATUSES = ("completed", "rejected", "failed")

# statuses whose amount is already paid or in flight
COMMITTED_STATUSES = ("completed", "processing")

# statuses still waiting on an operator; they hold funds against new requests
RESERVED_STATUSES = ("pending", "approved")

PAYOUT_METHODS = ("paystack", "mobile_money", "bank_transfer")
DEFAULT_PAYOUT_METHOD = "paystack"


def _load_details(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}
    try:
        loaded = json.loads(value)
    except (TypeError, ValueError):
        return {}
    return _load_details(loaded) if isinstance(loaded, dict) else {}


@dataclass(frozen=True)
class PayoutRequest:
    id: int
    vendor_id: int
    amount: Decimal
    payout_method: str
    request_status: str
    account_details: dict[str, str] = field(default_factory=dict)
    notes: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    failure_reason: Optional[str] = None
    transfer_code: Optional[str] = None
    transaction_reference: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.request_status in TERMINAL_STATUSES

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PayoutRequest":
        return cls(
            id=int(row["id"]),
            vendor_id=int(row["vendor_id"]),
            amount=Decimal(row["amount"]),
            payout_method=row.get("payout_method") or DEFAULT_PAYOUT_METHOD,
            request_status=row["request_status"],
            account_details=_load_details(row.get("account_details")),
            notes=row.get("notes"),
            processed_by=row.get("processed_by"),
            processed_at=row.get("processed_at"),
            rejection_reason=row.get("rejection_reason"),
            failure_reason=row.get("failure_reason"),
            transfer_code=row.get("transfer_code"),
            transaction_reference=row.get("transaction_reference"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
