from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from app.providers.base import ProviderResponse


class MockTransferProvider:
    """
    Test/dev provider.

    Each stage can be told to decline (status=False with a message) or, for
    verification, to report a provider-side transfer status such as "pending".
    Calls are recorded in self.calls for assertions.
    """

    def __init__(
        self,
        *,
        recipient_error: Optional[str] = None,
        transfer_error: Optional[str] = None,
        verify_error: Optional[str] = None,
        transfer_status: str = "success",
        omit_recipient_code: bool = False,
        omit_transfer_code: bool = False,
    ):
        self.recipient_error = recipient_error
        self.transfer_error = transfer_error
        self.verify_error = verify_error
        self.transfer_status = transfer_status
        self.omit_recipient_code = omit_recipient_code
        self.omit_transfer_code = omit_transfer_code
        self.calls: list[tuple[str, dict]] = []

    def create_transfer_recipient(self, *, type, name, account_number, bank_code, currency) -> ProviderResponse:
        self.calls.append(
            (
                "create_transfer_recipient",
                {"type": type, "name": name, "account_number": account_number, "bank_code": bank_code, "currency": currency},
            )
        )
        if self.recipient_error:
            return ProviderResponse(status=False, message=self.recipient_error, http_status=400)
        data = {} if self.omit_recipient_code else {"recipient_code": f"RCP_mock_{uuid.uuid4().hex[:10]}"}
        return ProviderResponse(status=True, data=data, message="Transfer recipient created", http_status=201)

    def initiate_transfer(self, *, recipient_code: str, amount: Decimal, reason: str, reference: str) -> ProviderResponse:
        self.calls.append(
            (
                "initiate_transfer",
                {"recipient_code": recipient_code, "amount": amount, "reason": reason, "reference": reference},
            )
        )
        if self.transfer_error:
            return ProviderResponse(status=False, message=self.transfer_error, http_status=400)
        data = {"reference": reference, "status": "pending"}
        if not self.omit_transfer_code:
            data["transfer_code"] = f"TRF_mock_{uuid.uuid4().hex[:10]}"
        return ProviderResponse(status=True, data=data, message="Transfer has been queued", http_status=200)

    def verify_transfer(self, transfer_code: str) -> ProviderResponse:
        self.calls.append(("verify_transfer", {"transfer_code": transfer_code}))
        if self.verify_error:
            return ProviderResponse(status=False, message=self.verify_error, http_status=404)
        return ProviderResponse(
            status=True,
            data={"transfer_code": transfer_code, "status": self.transfer_status},
            message="Transfer retrieved",
            http_status=200,
        )
