# deps/services.py
"""
Composition root for request-scoped services: one pooled connection per
request, repositories bound to it, services built from the repositories.
Tests override these dependencies with in-memory repositories.
"""
from __future__ import annotations

from typing import Iterator

from fastapi import Depends

from app.commission import SettingsCommissionRates
from app.payouts.processor import PayoutProcessor
from app.payouts.repository import PgPayoutRequestRepository
from app.payouts.service import PayoutRequestService
from app.providers.base import TransferProvider
from app.providers.factory import get_transfer_provider
from app.transactions.repository import PgTransactionRepository
from app.transactions.service import TransactionService
from db import get_conn
from deps.auth import CurrentUser, get_current_user
from services.audit_log import DbAuditSink


def get_db() -> Iterator:
    with get_conn() as conn:
        yield conn


def get_audit_sink(conn=Depends(get_db), user: CurrentUser = Depends(get_current_user)) -> DbAuditSink:
    return DbAuditSink(conn, actor_user_id=user.user_id)


def get_transaction_service(conn=Depends(get_db), audit=Depends(get_audit_sink)) -> TransactionService:
    return TransactionService(
        PgTransactionRepository(conn),
        commission_rates=SettingsCommissionRates(),
        audit=audit,
    )


def get_payout_service(conn=Depends(get_db), audit=Depends(get_audit_sink)) -> PayoutRequestService:
    return PayoutRequestService(
        PgPayoutRequestRepository(conn),
        PgTransactionRepository(conn),
        audit=audit,
    )


def get_provider() -> TransferProvider:
    provider = get_transfer_provider()
    if provider is None:
        raise RuntimeError("No payout provider configured")
    return provider


def get_payout_processor(
    payouts: PayoutRequestService = Depends(get_payout_service),
    provider: TransferProvider = Depends(get_provider),
) -> PayoutProcessor:
    return PayoutProcessor(payouts, provider)
