# routes/admin_transactions.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.errors import MarketplaceError
from app.transactions.model import DELIVERY_STATUSES, PAYMENT_STATUSES
from app.transactions.service import TransactionService
from deps.auth import CurrentUser, require_admin
from deps.services import get_transaction_service
from schemas import DeliveryStatusUpdate, PaymentStatusUpdate, UpdateResult
from services.db_errors import raise_http_from_error

router = APIRouter(prefix="/v1/admin/transactions", tags=["admin", "transactions"])


@router.post("/{transaction_id}/payment-status", response_model=UpdateResult)
def admin_update_payment_status(
    transaction_id: int,
    body: PaymentStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
):
    if body.status not in PAYMENT_STATUSES:
        raise HTTPException(status_code=422, detail="INVALID_PAYMENT_STATUS")
    try:
        ok = service.update_payment_status(transaction_id, body.status, body.reference)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    if not ok:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return UpdateResult(ok=True)


@router.post("/{transaction_id}/delivery-status", response_model=UpdateResult)
def admin_update_delivery_status(
    transaction_id: int,
    body: DeliveryStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
):
    if body.status not in DELIVERY_STATUSES:
        raise HTTPException(status_code=422, detail="INVALID_DELIVERY_STATUS")
    try:
        ok = service.update_delivery_status(transaction_id, body.status)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    if not ok:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return UpdateResult(ok=True)


@router.post("/{transaction_id}/cancel", response_model=UpdateResult)
def admin_cancel_transaction(
    transaction_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
):
    # ok=False when already cancelled or missing
    try:
        return UpdateResult(ok=service.cancel_transaction(transaction_id))
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise


@router.delete("/{transaction_id}", response_model=UpdateResult)
def admin_delete_transaction(
    transaction_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: TransactionService = Depends(get_transaction_service),
):
    try:
        ok = service.delete_transaction(transaction_id)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    if not ok:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return UpdateResult(ok=True)
