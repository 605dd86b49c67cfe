# app/providers/paystack/validate.py
from __future__ import annotations

import logging

from app.providers.paystack.config import paystack_config
from settings import settings

logger = logging.getLogger("bookmarket.paystack")


def validate_payout_provider_startup() -> None:
    provider = (settings.PAYOUT_PROVIDER or "").strip().upper()
    logger.info("payout provider startup check: provider=%s", provider or "<none>")

    if provider != "PAYSTACK":
        return

    cfg = paystack_config()
    logger.info("paystack startup check: mode=%s base_url=%s", cfg.mode, cfg.base_url)

    if cfg.mode not in ("sandbox", "real"):
        raise RuntimeError(
            "Payout provider startup validation failed. "
            f"Invalid PAYSTACK_MODE={cfg.mode!r}. Allowed: sandbox, real"
        )

    if not cfg.base_url:
        raise RuntimeError("Payout provider startup validation failed. PAYSTACK_BASE_URL is empty.")

    if cfg.secret_key:
        return

    if cfg.mode == "real":
        raise RuntimeError(
            "Payout provider startup validation failed. "
            "Missing required env vars: PAYSTACK_REAL_SECRET_KEY"
        )

    logger.warning("paystack sandbox secret key not set; payout processing will fail until configured")
