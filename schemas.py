# schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["purchase", "rental", "exchange"]
PayoutAction = Literal["approve", "reject", "process", "verify"]


# -------- TRANSACTIONS --------
class CreateTransactionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    seller_id: int = Field(gt=0)
    book_id: int = Field(gt=0)
    transaction_type: str
    # price/quantity rules live in the service (quantity <= 0 is coerced to 1)
    unit_price: Decimal
    quantity: int = 1
    rental_duration: Optional[int] = Field(default=None, gt=0)
    rental_period_unit: Optional[Literal["days", "weeks", "months"]] = None
    payment_method: Optional[str] = Field(default=None, max_length=50)
    payment_reference: Optional[str] = Field(default=None, max_length=100)
    delivery_method: Optional[str] = Field(default=None, max_length=50)


class TransactionCreatedResponse(BaseModel):
    transaction_id: int


class TransactionItem(BaseModel):
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
    payment_method: str
    payment_reference: Optional[str] = None
    delivery_method: str
    rental_duration: Optional[int] = None
    rental_period_unit: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    transactions: List[TransactionItem]


class PaymentStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    status: str
    reference: Optional[str] = Field(default=None, max_length=100)


class DeliveryStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    status: str


class UpdateResult(BaseModel):
    ok: bool


# -------- PAYOUTS --------
class CreatePayoutRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    amount: Decimal
    payout_method: Optional[str] = None
    account_details: Dict[str, str] = Field(default_factory=dict)
    notes: Optional[str] = Field(default=None, max_length=500)


class PayoutCreatedResponse(BaseModel):
    request_id: int
    request_status: str = "pending"


class PayoutItem(BaseModel):
    id: int
    vendor_id: int
    amount: Decimal
    payout_method: str
    request_status: str
    account_details: Dict[str, str] = Field(default_factory=dict)
    notes: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    failure_reason: Optional[str] = None
    transfer_code: Optional[str] = None
    transaction_reference: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PayoutListResponse(BaseModel):
    payouts: List[PayoutItem]


class EarningsResponse(BaseModel):
    vendor_id: int
    total_earnings: Decimal
    available_earnings: Decimal


class PayoutStatsResponse(BaseModel):
    total: int
    pending_count: int
    approved_count: int
    processing_count: int
    completed_count: int
    rejected_count: int
    failed_count: int
    total_paid: Decimal


class PayoutActionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    action: PayoutAction
    reason: Optional[str] = Field(default=None, max_length=500)


class PayoutActionResponse(BaseModel):
    ok: bool
    message: str
    status: Optional[str] = None
