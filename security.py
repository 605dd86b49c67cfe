# security.py
"""
Bearer tokens are issued by the campus identity service; this API only checks
the signature and reads two claims: `sub` (integer user id) and `role`.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from settings import settings

ROLES = ("user", "vendor", "admin")


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: str


def create_access_token(sub: str, role: str = "user", minutes: Optional[int] = None) -> str:
    """Used by tests and local tooling to mint tokens the API will accept."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role!r}")
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(sub),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes or settings.JWT_ACCESS_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def read_token(token: str) -> Optional[TokenClaims]:
    """None for a bad signature, an expired token or a non-integer subject."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    if user_id <= 0:
        return None

    role = str(payload.get("role") or "user").lower()
    # unknown roles get the least privilege
    return TokenClaims(user_id=user_id, role=role if role in ROLES else "user")
