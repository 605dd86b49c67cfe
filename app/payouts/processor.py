# app/payouts/processor.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from app.errors import ExternalProviderError, NotFoundError, PersistenceError
from app.payouts.model import COMMITTED_STATUSES, PayoutRequest
from app.payouts.service import PayoutRequestService
from app.providers.base import ProviderResponse, TransferProvider
from settings import settings

logger = logging.getLogger("bookmarket.payouts")

ACTIONS = ("approve", "reject", "process", "verify")

SUCCESS_TRANSFER_STATUSES = frozenset({"success", "successful"})
FAILED_TRANSFER_STATUSES = frozenset({"failed", "reversed"})

DEFAULT_RECIPIENT_TYPE = "mobile_money"


@dataclass(frozen=True)
class PayoutActionResult:
    ok: bool
    message: str
    status: Optional[str] = None


@dataclass(frozen=True)
class RecipientDetails:
    type: str
    name: str
    account_number: str
    bank_code: str


def extract_recipient(details: dict[str, str]) -> RecipientDetails:
    """
    Accepts the field spellings the payout forms store:
      name | account_name, account_number | phone, bank_code | network
    """
    def pick(*keys: str) -> str:
        for k in keys:
            v = (details.get(k) or "").strip()
            if v:
                return v
        return ""

    return RecipientDetails(
        type=pick("type") or DEFAULT_RECIPIENT_TYPE,
        name=pick("name", "account_name"),
        account_number=pick("account_number", "phone"),
        bank_code=pick("bank_code", "network"),
    )


def transfer_reference(request_id: int, now: float) -> str:
    return f"PAYOUT_{request_id}_{int(now)}"


class PayoutProcessor:
    """
    Operator actions on payout requests. Never raises: every outcome comes back
    as a PayoutActionResult.

    process runs: approved -> processing (committed) -> create recipient ->
    initiate transfer -> store transfer code (committed) -> verify.
    """

    def __init__(
        self,
        payouts: PayoutRequestService,
        provider: TransferProvider,
        *,
        currency: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.payouts = payouts
        self.provider = provider
        self.currency = (currency or settings.PAYOUT_CURRENCY).upper()
        self.clock = clock

    def handle(
        self,
        request_id: int,
        action: str,
        *,
        operator_id: int,
        reason: Optional[str] = None,
    ) -> PayoutActionResult:
        if action not in ACTIONS:
            return PayoutActionResult(False, "Invalid action.")

        try:
            request = self.payouts.get_by_id(request_id)

            if action == "approve":
                return self._approve(request, operator_id)
            if action == "reject":
                return self._reject(request, operator_id, reason)
            if action == "process":
                return self._process(request, operator_id)
            return self._verify(request, operator_id)

        except NotFoundError:
            return PayoutActionResult(False, "Payout request not found.")
        except PersistenceError as e:
            logger.error("payout action failed on persistence request_id=%s action=%s: %s", request_id, action, e)
            return PayoutActionResult(False, "Could not save the payout request. Please retry.")

    # ------------------------------------------------------------------
    # approve / reject
    # ------------------------------------------------------------------

    def _approve(self, request: PayoutRequest, operator_id: int) -> PayoutActionResult:
        if request.request_status == "pending" and not self.payouts.balance_allows(
            request.vendor_id, request.amount, held_statuses=COMMITTED_STATUSES + ("approved",)
        ):
            return PayoutActionResult(
                False,
                "Payout amount exceeds the vendor's available earnings; it cannot be approved.",
                request.request_status,
            )
        if not self.payouts.update_status(request.id, "approved", operator_id):
            return PayoutActionResult(
                False,
                f"Payout request cannot be approved from status {request.request_status}.",
                request.request_status,
            )
        return PayoutActionResult(True, "Payout request approved. You can now process it.", "approved")

    def _reject(self, request: PayoutRequest, operator_id: int, reason: Optional[str]) -> PayoutActionResult:
        if not self.payouts.update_status(request.id, "rejected", operator_id, reason):
            return PayoutActionResult(
                False,
                f"Payout request cannot be rejected from status {request.request_status}.",
                request.request_status,
            )
        return PayoutActionResult(True, "Payout request rejected.", "rejected")

    # ------------------------------------------------------------------
    # process
    # ------------------------------------------------------------------

    def _process(self, request: PayoutRequest, operator_id: int) -> PayoutActionResult:
        if request.request_status != "approved":
            return PayoutActionResult(
                False,
                f"Payout request must be approved before processing (current status: {request.request_status}).",
                request.request_status,
            )

        if not request.account_details:
            return PayoutActionResult(False, "Account details are missing.", request.request_status)

        recipient = extract_recipient(request.account_details)
        if not (recipient.name and recipient.account_number and recipient.bank_code):
            return PayoutActionResult(
                False,
                "Incomplete account details. Please ensure name, account number, "
                "and bank code/network are provided.",
                request.request_status,
            )

        if not self.payouts.balance_allows(request.vendor_id, request.amount, held_statuses=COMMITTED_STATUSES):
            return PayoutActionResult(
                False,
                "Payout amount exceeds the vendor's available earnings; it cannot be processed.",
                request.request_status,
            )

        # compare-and-swap on "approved"; committed before any money moves
        if not self.payouts.update_status(request.id, "processing", operator_id):
            return PayoutActionResult(
                False,
                "Payout request is no longer approved; another operator may be processing it.",
            )
        self.payouts.commit()

        # --- recipient
        try:
            recipient_resp = self.provider.create_transfer_recipient(
                type=recipient.type,
                name=recipient.name,
                account_number=recipient.account_number,
                bank_code=recipient.bank_code,
                currency=self.currency,
            )
        except ExternalProviderError as e:
            return self._fail(request.id, operator_id, "Failed to create transfer recipient", str(e))

        if not recipient_resp.status:
            return self._fail(
                request.id,
                operator_id,
                "Failed to create transfer recipient",
                recipient_resp.message or "Failed to create transfer recipient",
            )

        recipient_code = recipient_resp.data.get("recipient_code") or recipient_resp.data.get("code")
        if not recipient_code:
            return self._fail(request.id, operator_id, "Transfer not attempted", "No recipient code received from provider")

        # --- transfer
        reference = transfer_reference(request.id, self.clock())
        try:
            transfer_resp = self.provider.initiate_transfer(
                recipient_code=recipient_code,
                amount=request.amount,
                reason=f"Vendor payout - Request #{request.id}",
                reference=reference,
            )
        except ExternalProviderError as e:
            return self._fail(request.id, operator_id, "Failed to initiate transfer", str(e))

        if not transfer_resp.status:
            return self._fail(
                request.id,
                operator_id,
                "Failed to initiate transfer",
                transfer_resp.message or "Failed to initiate transfer",
            )

        transfer_code = transfer_resp.data.get("transfer_code") or transfer_resp.data.get("code")
        if not transfer_code:
            return self._fail(request.id, operator_id, "Transfer status unknown", "No transfer code received from provider")

        try:
            stored = self.payouts.update_transfer_code(request.id, transfer_code, reference)
            if stored:
                self.payouts.commit()
        except PersistenceError as e:
            logger.error("payout transfer code write failed request_id=%s: %s", request.id, e)
            stored = False

        if not stored:
            # money is moving; the code and reference only survive in this log line
            logger.error(
                "payout transfer initiated but not recorded request_id=%s transfer_code=%s reference=%s",
                request.id,
                transfer_code,
                reference,
            )
            return PayoutActionResult(
                False,
                f"Transfer initiated under code {transfer_code} (reference {reference}) but it could not "
                "be saved on the payout request. Reconcile it manually; do not retry.",
                "processing",
            )

        # --- verify
        return self._check_transfer(request.id, operator_id, transfer_code)

    # ------------------------------------------------------------------
    # verify (follow-up for requests left in processing)
    # ------------------------------------------------------------------

    def _verify(self, request: PayoutRequest, operator_id: int) -> PayoutActionResult:
        if request.request_status != "processing":
            return PayoutActionResult(
                False,
                f"Only processing payouts can be verified (current status: {request.request_status}).",
                request.request_status,
            )
        if not request.transfer_code:
            return PayoutActionResult(
                False,
                "No transfer code stored for this payout; check the provider dashboard.",
                request.request_status,
            )
        return self._check_transfer(request.id, operator_id, request.transfer_code)

    def _check_transfer(self, request_id: int, operator_id: int, transfer_code: str) -> PayoutActionResult:
        try:
            resp = self.provider.verify_transfer(transfer_code)
        except ExternalProviderError as e:
            logger.warning("payout verification unreachable request_id=%s transfer_code=%s: %s", request_id, transfer_code, e)
            return self._unconfirmed()

        if not resp.status:
            logger.warning(
                "payout verification declined request_id=%s transfer_code=%s message=%s",
                request_id,
                transfer_code,
                resp.message,
            )
            return self._unconfirmed()

        return self._apply_transfer_status(request_id, operator_id, resp)

    def _apply_transfer_status(self, request_id: int, operator_id: int, resp: ProviderResponse) -> PayoutActionResult:
        transfer_status = str(resp.data.get("status") or "pending").strip().lower()

        if transfer_status in SUCCESS_TRANSFER_STATUSES:
            if not self.payouts.update_status(request_id, "completed", operator_id):
                logger.error("payout confirmed by provider but completion write refused request_id=%s", request_id)
                return PayoutActionResult(
                    False,
                    "Transfer succeeded at the provider but the payout could not be marked completed.",
                    "processing",
                )
            self.payouts.commit()
            logger.info("payout completed request_id=%s", request_id)
            return PayoutActionResult(True, "Payout processed successfully.", "completed")

        if transfer_status in FAILED_TRANSFER_STATUSES:
            return self._fail(request_id, operator_id, "Transfer failed", f"Transfer {transfer_status}")

        logger.info("payout awaiting provider confirmation request_id=%s transfer_status=%s", request_id, transfer_status)
        return PayoutActionResult(True, f"Payout initiated successfully. Status: {transfer_status}", "processing")

    @staticmethod
    def _unconfirmed() -> PayoutActionResult:
        return PayoutActionResult(
            True,
            "Payout initiated. Please verify the transfer status manually.",
            "processing",
        )

    # ------------------------------------------------------------------
    # failure
    # ------------------------------------------------------------------

    def _fail(self, request_id: int, operator_id: int, stage: str, reason: str) -> PayoutActionResult:
        logger.error("payout failed request_id=%s stage=%s reason=%s", request_id, stage, reason)
        if not self.payouts.update_status(request_id, "failed", operator_id, reason):
            current = self.payouts.get_by_id(request_id).request_status
            logger.error("payout failure write refused request_id=%s current_status=%s", request_id, current)
            return PayoutActionResult(False, f"{stage}: {reason}", current)
        self.payouts.commit()
        return PayoutActionResult(False, f"{stage}: {reason}", "failed")
