# tests/conftest.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from app.commission import FixedCommissionRate
from app.payouts.processor import PayoutProcessor
from app.payouts.service import PayoutRequestService
from app.providers.mock import MockTransferProvider
from app.transactions.service import TransactionService
from deps.services import get_payout_processor, get_payout_service, get_transaction_service
from main import create_app
from security import create_access_token
from tests.fakes import (
    InMemoryPayoutRequestRepository,
    InMemoryTransactionRepository,
    RecordingAuditSink,
)

BUYER_ID = 101
SELLER_ID = 202
VENDOR_ID = SELLER_ID
ADMIN_ID = 1

# fixed clock for transfer references: PAYOUT_<id>_1760000000
FIXED_NOW = 1760000000.0

GHANA_MOMO_DETAILS = {
    "name": "Ama Mensah",
    "account_number": "0551234567",
    "bank_code": "MTN",
}


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------
# Repositories + services
# ---------------------------

@pytest.fixture
def audit() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def tx_repo() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()


@pytest.fixture
def payout_repo() -> InMemoryPayoutRequestRepository:
    return InMemoryPayoutRequestRepository()


@pytest.fixture
def transaction_service(tx_repo, audit) -> TransactionService:
    return TransactionService(tx_repo, commission_rates=FixedCommissionRate("0.10"), audit=audit)


@pytest.fixture
def payout_service(payout_repo, tx_repo, audit) -> PayoutRequestService:
    return PayoutRequestService(payout_repo, tx_repo, audit=audit, enforce_available_balance=True)


@pytest.fixture
def provider() -> MockTransferProvider:
    return MockTransferProvider()


@pytest.fixture
def processor(payout_service, provider) -> PayoutProcessor:
    return PayoutProcessor(payout_service, provider, currency="GHS", clock=lambda: FIXED_NOW)


@pytest.fixture
def completed_sale(tx_repo):
    """Records a completed sale crediting the seller exactly `seller_amount`."""
    counter = {"n": 0}

    def _make(seller_amount: str, *, seller_id: int = VENDOR_ID, payment_status: str = "completed") -> int:
        counter["n"] += 1
        amount = Decimal(seller_amount)
        return tx_repo.insert(
            {
                "transaction_code": f"BDE260101SEED{counter['n']:04d}",
                "buyer_id": BUYER_ID,
                "seller_id": seller_id,
                "book_id": 7,
                "transaction_type": "purchase",
                "quantity": 1,
                "unit_price": amount,
                "total_amount": amount,
                "commission_amount": Decimal("0.00"),
                "seller_amount": amount,
                "payment_method": "mobile_money",
                "payment_status": payment_status,
                "delivery_method": "pickup",
                "delivery_status": "pending",
            }
        )

    return _make


@pytest.fixture
def approved_payout(payout_service, completed_sale):
    """A payout request that an admin has already approved."""

    def _make(amount: str = "50.00", details: dict | None = None) -> int:
        completed_sale("1000.00")
        rid = payout_service.create(
            vendor_id=VENDOR_ID,
            amount=amount,
            account_details=GHANA_MOMO_DETAILS if details is None else details,
        )
        assert payout_service.update_status(rid, "approved", ADMIN_ID)
        return rid

    return _make


# ---------------------------
# HTTP client (services overridden with in-memory ones)
# ---------------------------

@pytest.fixture
def client(transaction_service, payout_service, processor) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_transaction_service] = lambda: transaction_service
    app.dependency_overrides[get_payout_service] = lambda: payout_service
    app.dependency_overrides[get_payout_processor] = lambda: processor
    # Needed so tests can assert 500s instead of pytest re-raising server exceptions
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def buyer_headers() -> Dict[str, str]:
    return _auth_headers(create_access_token(str(BUYER_ID), role="user"))


@pytest.fixture
def vendor_headers() -> Dict[str, str]:
    return _auth_headers(create_access_token(str(VENDOR_ID), role="vendor"))


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return _auth_headers(create_access_token(str(ADMIN_ID), role="admin"))
