# app/providers/paystack/client.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Optional

from app.commission import to_minor_units
from app.errors import ExternalProviderError
from app.providers.base import ProviderResponse, TransferProvider
from app.providers.paystack.config import PaystackConfig, paystack_config
from app.providers.paystack.http import HttpClient, HttpResponse
from services.redaction import mask_account_number

logger = logging.getLogger("bookmarket.paystack")


class PaystackClient(TransferProvider):
    """
    Transfers API:
      POST /transferrecipient
      POST /transfer
      GET  /transfer/verify/{reference}
    """

    def __init__(self, http: Optional[HttpClient] = None, config: Optional[PaystackConfig] = None):
        self.config = config or paystack_config()
        self.http = http or HttpClient(timeout_s=self.config.timeout_s)

    def _headers(self) -> dict[str, str]:
        if not self.config.secret_key:
            raise ExternalProviderError("Paystack secret key is not configured")
        return {
            "Authorization": f"Bearer {self.config.secret_key}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _to_response(op: str, resp: HttpResponse) -> ProviderResponse:
        if resp.json is None:
            raise ExternalProviderError(f"Unexpected response from Paystack ({op}, HTTP {resp.status_code})")

        out = ProviderResponse.from_payload(resp.json, http_status=resp.status_code)
        if not out.status and not out.message:
            out = ProviderResponse(
                status=False,
                data=out.data,
                message=f"Paystack {op} failed (HTTP {resp.status_code})",
                http_status=resp.status_code,
            )
        logger.info("paystack %s http_status=%s status=%s message=%s", op, resp.status_code, out.status, out.message)
        return out

    def create_transfer_recipient(
        self,
        *,
        type: str,
        name: str,
        account_number: str,
        bank_code: str,
        currency: str,
    ) -> ProviderResponse:
        body: dict[str, Any] = {
            "type": type,
            "name": name,
            "account_number": account_number,
            "bank_code": bank_code,
            "currency": currency,
        }
        logger.info(
            "paystack create recipient type=%s account=%s bank_code=%s currency=%s",
            type,
            mask_account_number(account_number),
            bank_code,
            currency,
        )
        resp = self.http.post(self._url("/transferrecipient"), headers=self._headers(), json_body=body)
        return self._to_response("create_recipient", resp)

    def initiate_transfer(
        self,
        *,
        recipient_code: str,
        amount: Decimal,
        reason: str,
        reference: str,
    ) -> ProviderResponse:
        body = {
            "source": "balance",
            "amount": to_minor_units(amount),
            "recipient": recipient_code,
            "reason": reason,
            "reference": reference,
            "currency": self.config.currency,
        }
        logger.info(
            "paystack initiate transfer recipient=%s amount_minor=%s reference=%s",
            recipient_code,
            body["amount"],
            reference,
        )
        resp = self.http.post(self._url("/transfer"), headers=self._headers(), json_body=body)
        return self._to_response("initiate_transfer", resp)

    def verify_transfer(self, transfer_code: str) -> ProviderResponse:
        resp = self.http.get(self._url(f"/transfer/verify/{transfer_code}"), headers=self._headers())
        return self._to_response("verify_transfer", resp)
