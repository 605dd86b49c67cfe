# app/providers/factory.py
from __future__ import annotations

from typing import Dict, Optional

from app.providers.base import TransferProvider
from settings import settings

_PROVIDER_CACHE: Dict[str, TransferProvider] = {}


def get_transfer_provider(name: Optional[str] = None) -> Optional[TransferProvider]:
    key = (name or settings.PAYOUT_PROVIDER or "").strip().upper()
    if not key:
        return None

    key = key.replace("-", "_").replace(" ", "_")

    if key in _PROVIDER_CACHE:
        return _PROVIDER_CACHE[key]

    provider: Optional[TransferProvider] = None

    if key == "PAYSTACK":
        from app.providers.paystack.client import PaystackClient
        provider = PaystackClient()

    elif key == "MOCK":
        from app.providers.mock import MockTransferProvider
        provider = MockTransferProvider()

    else:
        return None

    _PROVIDER_CACHE[key] = provider
    return provider


def reset_provider_cache() -> None:
    _PROVIDER_CACHE.clear()
