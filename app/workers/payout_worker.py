# app/workers/payout_worker.py
"""
Follow-up pass over payouts left in `processing` (provider confirmation
was pending or unreachable when the operator ran `process`).
"""
from __future__ import annotations

import logging

from app.payouts.processor import PayoutProcessor
from app.payouts.repository import PgPayoutRequestRepository
from app.payouts.service import PayoutRequestService
from app.providers.factory import get_transfer_provider
from app.transactions.repository import PgTransactionRepository
from db import get_conn
from services.audit_log import DbAuditSink

logger = logging.getLogger("bookmarket.payouts.worker")

DEFAULT_BATCH_SIZE = 50


def verify_processing(
    payouts: PayoutRequestService,
    processor: PayoutProcessor,
    *,
    operator_id: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> dict[str, int]:
    counts = {"checked": 0, "completed": 0, "failed": 0, "processing": 0}

    for request in payouts.list_all(status="processing", limit=batch_size):
        counts["checked"] += 1
        result = processor.handle(request.id, "verify", operator_id=operator_id)
        status = result.status if result.status in counts else "processing"
        counts[status] += 1
        logger.info(
            "payout verify request_id=%s ok=%s status=%s message=%s",
            request.id,
            result.ok,
            result.status,
            result.message,
        )

    return counts


def process_once(*, operator_id: int, batch_size: int = DEFAULT_BATCH_SIZE) -> dict[str, int]:
    provider = get_transfer_provider()
    if provider is None:
        raise RuntimeError("No payout provider configured")

    with get_conn() as conn:
        payouts = PayoutRequestService(
            PgPayoutRequestRepository(conn),
            PgTransactionRepository(conn),
            audit=DbAuditSink(conn, actor_user_id=operator_id),
        )
        processor = PayoutProcessor(payouts, provider)
        counts = verify_processing(payouts, processor, operator_id=operator_id, batch_size=batch_size)

    logger.info("payout verify pass done %s", counts)
    return counts
