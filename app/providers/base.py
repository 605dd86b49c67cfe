# app/providers/base.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class ProviderResponse:
    """
    Provider envelope: {status: bool, message: str, data: {...}}.
    status=False means the provider declined the call; transport faults are
    raised as ExternalProviderError instead.
    """

    status: bool
    data: dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    http_status: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, http_status: Optional[int] = None) -> "ProviderResponse":
        data = payload.get("data")
        return cls(
            status=bool(payload.get("status")),
            data=data if isinstance(data, dict) else {},
            message=payload.get("message"),
            http_status=http_status,
        )

    @property
    def ok(self) -> bool:
        return self.status


class TransferProvider(Protocol):
    def create_transfer_recipient(
        self,
        *,
        type: str,
        name: str,
        account_number: str,
        bank_code: str,
        currency: str,
    ) -> ProviderResponse: ...

    # amount is in major units; providers convert to minor units on the wire
    def initiate_transfer(
        self,
        *,
        recipient_code: str,
        amount: Decimal,
        reason: str,
        reference: str,
    ) -> ProviderResponse: ...

    def verify_transfer(self, transfer_code: str) -> ProviderResponse: ...
