# routes/admin_payouts.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.errors import MarketplaceError
from app.payouts.processor import PayoutProcessor
from app.payouts.service import PayoutRequestService
from deps.auth import CurrentUser, require_admin
from deps.services import get_payout_processor, get_payout_service
from routes.payouts import serialize_payout
from schemas import (
    PayoutActionRequest,
    PayoutActionResponse,
    PayoutItem,
    PayoutListResponse,
    PayoutStatsResponse,
)
from services.db_errors import raise_http_from_error

logger = logging.getLogger("bookmarket.payouts.http")
router = APIRouter(prefix="/v1/admin/payouts", tags=["admin", "payouts"])


@router.get("", response_model=PayoutListResponse)
def admin_list_payouts(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    admin: CurrentUser = Depends(require_admin),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        items = service.list_all(status=status, limit=limit, offset=offset)
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise
    return PayoutListResponse(payouts=[serialize_payout(p) for p in items])


@router.get("/stats", response_model=PayoutStatsResponse)
def admin_payout_stats(
    admin: CurrentUser = Depends(require_admin),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        return PayoutStatsResponse(**service.get_stats())
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise


@router.get("/{request_id}", response_model=PayoutItem)
def admin_get_payout(
    request_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: PayoutRequestService = Depends(get_payout_service),
):
    try:
        return serialize_payout(service.get_by_id(request_id))
    except MarketplaceError as e:
        raise_http_from_error(e)
        raise


@router.post("/{request_id}/actions", response_model=PayoutActionResponse)
def admin_payout_action(
    request_id: int,
    body: PayoutActionRequest,
    admin: CurrentUser = Depends(require_admin),
    processor: PayoutProcessor = Depends(get_payout_processor),
):
    """
    approve | reject | process | verify.
    Always 200: provider and state failures come back as ok=false plus a message.
    """
    result = processor.handle(request_id, body.action, operator_id=admin.user_id, reason=body.reason)
    logger.info(
        "admin payout action request_id=%s action=%s admin_id=%s ok=%s status=%s",
        request_id,
        body.action,
        admin.user_id,
        result.ok,
        result.status,
    )
    return PayoutActionResponse(ok=result.ok, message=result.message, status=result.status)
