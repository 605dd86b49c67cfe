from __future__ import annotations

import re
import uuid
from contextvars import ContextVar


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# client-supplied ids are echoed back, so keep them short and header-safe
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def set_request_id(value: str | None) -> None:
    _request_id.set(value)


def get_request_id() -> str | None:
    return _request_id.get()


def resolve_request_id(header_value: str | None) -> str:
    v = (header_value or "").strip()
    if v and _REQUEST_ID_RE.match(v):
        return v
    return str(uuid.uuid4())
