# routes/payouts.py
from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from app.errors import MarketplaceError
from app.payouts.model import PayoutRequest
from app.payouts.service import PayoutRequestService
from deps.auth import CurrentUser, require_vendor
from deps.services import get_payout_service
from schemas import (
    CreatePayoutRequest,
    EarningsResponse,
    PayoutCreatedResponse,
    PayoutItem,
    PayoutListResponse,
)
from services.db_errors import raise_http_from_error

logger = logging.getLogger("bookmarket.payouts.http")
router = APIRouter(prefix="/v1/payouts", tags=["payouts"])


def serialize_payout(p: PayoutRequest) -> PayoutItem:
    return PayoutItem(**asdict(p))


@router.post("", response_model=PayoutCreatedResponse, status_code=201)
def request_payout(
    body: CreatePayoutRequest,
    vendor: CurrentUser = Depends(require_vendor),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        request_id = service.create(
            vendor_id=vendor.user_id,
            amount=body.amount,
            payout_method=body.payout_method,
            account_details=body.account_details,
            notes=body.notes,
        )
    except MarketplaceError as e:
        logger.info("payout request refused vendor_id=%s: %s", vendor.user_id, e)
        raise_http_from_error(e)
        raise
    return PayoutCreatedResponse(request_id=request_id)


@router.get("", response_model=PayoutListResponse)
def list_my_payouts(
    limit: int = Query(default=20, ge=1, le=100),
    vendor: CurrentUser = Depends(require_vendor),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        items = service.list_vendor_requests(vendor.user_id, limit=limit)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    return PayoutListResponse(payouts=[serialize_payout(p) for p in items])


@router.get("/earnings", response_model=EarningsResponse)
def my_earnings(
    vendor: CurrentUser = Depends(require_vendor),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        return EarningsResponse(
            vendor_id=vendor.user_id,
            total_earnings=service.get_total_earnings(vendor.user_id),
            available_earnings=service.get_available_earnings(vendor.user_id),
        )
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
