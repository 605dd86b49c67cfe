# services/redaction.py
"""
Masking for anything that reaches logs or the audit table.

Payout destinations (account numbers, mobile-money phones) keep their last four
digits so support can match them; emails keep the first letter and domain;
provider keys and bearer tokens are replaced outright.
"""
from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*(@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
# local (0551234567) and international (+233551234567) numbers, bank accounts
_LONG_NUMBER_RE = re.compile(r"\+?\b\d{9,18}\b")
_SECRET_RE = re.compile(r"\b(sk_(?:test|live)_[A-Za-z0-9]+|bearer\s+[A-Za-z0-9._~+/=-]+)", re.IGNORECASE)

_SECRET_KEY_MARKERS = ("token", "authorization", "secret", "password", "api_key")
_DESTINATION_KEY_MARKERS = ("account_number", "phone", "msisdn")


def mask_account_number(value: str) -> str:
    v = (value or "").strip()
    if len(v) <= 4:
        return "****"
    return "*" * (len(v) - 4) + v[-4:]


def redact_text(value: str) -> str:
    masked = _SECRET_RE.sub(REDACTED, value)
    masked = _EMAIL_RE.sub(lambda m: f"{m.group(1)}***{m.group(2)}", masked)
    return _LONG_NUMBER_RE.sub(lambda m: mask_account_number(m.group(0)), masked)


def _key_has(key: str, markers: tuple[str, ...]) -> bool:
    k = (key or "").lower()
    return any(m in k for m in markers)


def redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, dict):
        return redact_dict(value)
    if isinstance(value, (list, tuple)):
        return [redact_value(v) for v in value]
    return value


def redact_dict(payload: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in payload.items():
        if _key_has(k, _SECRET_KEY_MARKERS):
            out[k] = REDACTED
        elif _key_has(k, _DESTINATION_KEY_MARKERS) and isinstance(v, (str, int)):
            out[k] = mask_account_number(str(v))
        else:
            out[k] = redact_value(v)
    return out
