# app/providers/paystack/config.py
from __future__ import annotations

from dataclasses import dataclass

from settings import settings


def paystack_mode() -> str:
    return (settings.PAYSTACK_MODE or "sandbox").strip().lower()


@dataclass(frozen=True)
class PaystackConfig:
    mode: str  # "sandbox" | "real"
    base_url: str
    secret_key: str
    timeout_s: float
    currency: str


def paystack_config() -> PaystackConfig:
    mode = paystack_mode()
    if mode == "real":
        key = settings.PAYSTACK_REAL_SECRET_KEY or settings.PAYSTACK_SECRET_KEY
    else:
        key = settings.PAYSTACK_SANDBOX_SECRET_KEY or settings.PAYSTACK_SECRET_KEY

    return PaystackConfig(
        mode=mode,
        base_url=(settings.PAYSTACK_BASE_URL or "").strip().rstrip("/"),
        secret_key=(key or "").strip(),
        timeout_s=float(settings.PAYSTACK_HTTP_TIMEOUT_S),
        currency=(settings.PAYOUT_CURRENCY or "GHS").strip().upper(),
    )
