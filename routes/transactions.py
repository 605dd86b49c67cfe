# routes/transactions.py
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from app.errors import MarketplaceError
from app.transactions.model import Transaction
from app.transactions.service import TransactionService
from deps.auth import CurrentUser, get_current_user
from deps.services import get_transaction_service
from schemas import (
    CreateTransactionRequest,
    TransactionCreatedResponse,
    TransactionItem,
    TransactionListResponse,
)
from services.db_errors import raise_http_from_error

logger = logging.getLogger("bookmarket.transactions.http")
router = APIRouter(prefix="/v1/transactions", tags=["transactions"])


def _serialize(tx: Transaction) -> TransactionItem:
    return TransactionItem(**{k: v for k, v in asdict(tx).items() if k in TransactionItem.model_fields})


@router.post("", response_model=TransactionCreatedResponse, status_code=201)
def create_transaction(
    body: CreateTransactionRequest,
    user: CurrentUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    try:
        transaction_id = service.create_transaction(
            buyer_id=user.user_id,
            seller_id=body.seller_id,
            book_id=body.book_id,
            transaction_type=body.transaction_type,
            unit_price=body.unit_price,
            quantity=body.quantity,
            rental_duration=body.rental_duration,
            rental_period_unit=body.rental_period_unit,
            payment_method=body.payment_method,
            payment_reference=body.payment_reference,
            delivery_method=body.delivery_method,
        )
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    return TransactionCreatedResponse(transaction_id=transaction_id)


@router.get("", response_model=TransactionListResponse)
def list_my_transactions(
    role: Literal["all", "purchases", "sales"] = Query(default="all"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    try:
        if role == "purchases":
            items = service.list_user_purchases(user.user_id, limit=limit)
        elif role == "sales":
            items = service.list_user_sales(user.user_id, limit=limit)
        else:
            items = service.list_user_transactions(user.user_id, limit=limit, offset=offset)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    return TransactionListResponse(transactions=[_serialize(t) for t in items])


@router.get("/{transaction_id}", response_model=TransactionItem)
def get_transaction(
    transaction_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    try:
        # 404 for strangers too, so ids can't be probed
        if not user.is_admin and not service.can_user_view(transaction_id, user.user_id):
            raise HTTPException(status_code=404, detail="Transaction not found")
        tx = service.get_transaction(transaction_id)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    return _serialize(tx)
