from decimal import Decimal

import pytest

from app.errors import NotFoundError, ValidationError
from app.payouts.service import PayoutRequestService
from tests.conftest import ADMIN_ID, GHANA_MOMO_DETAILS, VENDOR_ID


@pytest.fixture
def funded(completed_sale):
    completed_sale("200.00")


def test_create_starts_pending(payout_service, payout_repo, audit, funded):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="50", account_details=GHANA_MOMO_DETAILS, notes="rent")
    p = payout_service.get_by_id(rid)

    assert p.request_status == "pending"
    assert p.amount == Decimal("50.00")
    assert p.payout_method == "paystack"
    assert p.account_details["account_number"] == "0551234567"
    assert p.notes == "rent"
    assert payout_repo.locked_vendors == [VENDOR_ID]
    assert audit.names()[-1] == "payout.requested"


@pytest.mark.parametrize("amount", ["0", "-10", 0])
def test_non_positive_amount_rejected(payout_service, payout_repo, funded, amount):
    with pytest.raises(ValidationError, match="Invalid amount"):
        payout_service.create(vendor_id=VENDOR_ID, amount=amount)
    assert payout_repo.rows == {}


def test_missing_vendor_and_bad_method_rejected(payout_service, funded):
    with pytest.raises(ValidationError):
        payout_service.create(vendor_id=None, amount="10")
    with pytest.raises(ValidationError):
        payout_service.create(vendor_id=VENDOR_ID, amount="10", payout_method="cheque")


def test_amount_above_available_rejected(payout_service, payout_repo, funded):
    with pytest.raises(ValidationError, match="exceeds available"):
        payout_service.create(vendor_id=VENDOR_ID, amount="200.01")
    assert payout_repo.rows == {}


def test_open_requests_hold_funds_against_new_ones(payout_service, payout_repo, funded):
    first = payout_service.create(vendor_id=VENDOR_ID, amount="150")

    with pytest.raises(ValidationError, match="exceeds available"):
        payout_service.create(vendor_id=VENDOR_ID, amount="150")
    with pytest.raises(ValidationError, match="exceeds available"):
        payout_service.create(vendor_id=VENDOR_ID, amount="50.01")
    second = payout_service.create(vendor_id=VENDOR_ID, amount="50.00")

    # approved still holds; a rejected request releases its amount
    payout_repo.rows[second]["request_status"] = "approved"
    with pytest.raises(ValidationError, match="exceeds available"):
        payout_service.create(vendor_id=VENDOR_ID, amount="0.01")
    payout_repo.rows[first]["request_status"] = "rejected"
    payout_service.create(vendor_id=VENDOR_ID, amount="150")

    # the displayed balance only subtracts paid or in-flight payouts
    assert payout_service.get_available_earnings(VENDOR_ID) == Decimal("200.00")


def test_balance_check_can_be_disabled(payout_repo, tx_repo, audit):
    service = PayoutRequestService(payout_repo, tx_repo, audit=audit, enforce_available_balance=False)
    rid = service.create(vendor_id=VENDOR_ID, amount="1000", payout_method="bank_transfer")
    assert service.get_by_id(rid).payout_method == "bank_transfer"
    assert payout_repo.locked_vendors == []


def test_get_by_id_missing(payout_service):
    with pytest.raises(NotFoundError):
        payout_service.get_by_id(404)


def test_invalid_status_returns_false(payout_service, funded):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="10")
    assert payout_service.update_status(rid, "paid", ADMIN_ID) is False
    assert payout_service.update_status(999, "approved", ADMIN_ID) is False
    assert payout_service.get_by_id(rid).request_status == "pending"


def test_illegal_transitions_refused(payout_service, funded):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="10")
    assert payout_service.update_status(rid, "completed", ADMIN_ID) is False
    assert payout_service.update_status(rid, "processing", ADMIN_ID) is False

    assert payout_service.update_status(rid, "rejected", ADMIN_ID, "duplicate request") is True
    assert payout_service.update_status(rid, "approved", ADMIN_ID) is False

    p = payout_service.get_by_id(rid)
    assert p.request_status == "rejected"
    assert p.rejection_reason == "duplicate request"
    assert p.processed_by == ADMIN_ID
    assert p.processed_at is not None


def test_completed_needs_transfer_code(payout_service, funded):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="10")
    assert payout_service.update_status(rid, "approved", ADMIN_ID)
    assert payout_service.update_status(rid, "processing", ADMIN_ID)
    assert payout_service.update_status(rid, "completed", ADMIN_ID) is False

    assert payout_service.update_transfer_code(rid, "TRF_1", "PAYOUT_1_1")
    assert payout_service.update_status(rid, "completed", ADMIN_ID) is True


def test_status_write_is_compare_and_swap(payout_service, payout_repo, funded):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="10")

    def other_operator(request_id, new_status):
        payout_repo.rows[request_id]["request_status"] = "rejected"

    payout_repo.before_status_write = other_operator
    assert payout_service.update_status(rid, "approved", ADMIN_ID) is False
    assert payout_service.get_by_id(rid).request_status == "rejected"


def test_failure_reason_only_on_failed(payout_service, funded, audit):
    rid = payout_service.create(vendor_id=VENDOR_ID, amount="10")
    payout_service.update_status(rid, "approved", ADMIN_ID, "looks fine")
    payout_service.update_status(rid, "processing", ADMIN_ID)
    payout_service.update_status(rid, "failed", ADMIN_ID, "Invalid account number")

    p = payout_service.get_by_id(rid)
    assert p.failure_reason == "Invalid account number"
    assert p.rejection_reason is None
    assert audit.names()[-3:] == ["payout.approved", "payout.processing", "payout.failed"]


def test_listing_and_stats(payout_service, payout_repo, funded):
    a = payout_service.create(vendor_id=VENDOR_ID, amount="10")
    b = payout_service.create(vendor_id=VENDOR_ID, amount="20")
    payout_repo.insert({"vendor_id": 777, "amount": Decimal("5.00"), "payout_method": "paystack", "request_status": "completed"})
    payout_service.update_status(a, "approved", ADMIN_ID)

    assert [p.id for p in payout_service.list_all(status="approved")] == [a]
    assert {p.id for p in payout_service.list_vendor_requests(VENDOR_ID)} == {a, b}
    with pytest.raises(ValidationError):
        payout_service.list_all(status="bogus")

    stats = payout_service.get_stats()
    assert stats["total"] == 3
    assert stats["pending_count"] == 1
    assert stats["approved_count"] == 1
    assert stats["completed_count"] == 1
    assert stats["total_paid"] == Decimal("5.00")
