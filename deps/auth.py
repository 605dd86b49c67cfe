# deps/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from security import read_token

bearer = HTTPBearer(auto_error=False)


class CurrentUser:
    def __init__(self, user_id: int, role: str = "user"):
        self.user_id = user_id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> CurrentUser:
    claims = read_token(creds.credentials) if creds and (creds.scheme or "").lower() == "bearer" else None
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="UNAUTHORIZED")
    return CurrentUser(user_id=claims.user_id, role=claims.role)


def require_vendor(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    # admins can act on vendor endpoints (support cases)
    if user.role not in ("vendor", "admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="VENDOR_REQUIRED")
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="ADMIN_REQUIRED")
    return user
