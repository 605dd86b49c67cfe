# app/providers/paystack/http.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from app.errors import ExternalProviderError
from services.redaction import redact_dict

logger = logging.getLogger("bookmarket.paystack.http")


@dataclass
class HttpResponse:
    status_code: int
    json: Optional[dict[str, Any]]
    text: str


class HttpClient:
    def __init__(
        self,
        timeout_s: float = 30.0,
        follow_redirects: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        # transport is injectable so tests can use httpx.MockTransport
        self._client = httpx.Client(timeout=timeout_s, follow_redirects=follow_redirects, transport=transport)

    def post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        json_body: dict[str, Any] | None = None,
    ) -> HttpResponse:
        r = self._send("POST", url, headers=headers, json=json_body)
        self._debug_dump("POST", url, json_body, r)
        return self._wrap(r)

    def get(
        self,
        url: str,
        *,
        headers: dict[str, str],
    ) -> HttpResponse:
        r = self._send("GET", url, headers=headers)
        self._debug_dump("GET", url, None, r)
        return self._wrap(r)

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ExternalProviderError(f"Gateway timeout: {method} {url}") from e
        except httpx.HTTPError as e:
            raise ExternalProviderError(f"Connection error: {e}") from e

    @staticmethod
    def _wrap(r: httpx.Response) -> HttpResponse:
        try:
            payload = r.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = None
        return HttpResponse(status_code=r.status_code, json=payload, text=r.text)

    @staticmethod
    def _debug_dump(method: str, url: str, json_body: Any, r: httpx.Response) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        body = redact_dict(json_body) if isinstance(json_body, dict) else json_body
        logger.debug("%s %s json=%s -> status=%s text=%s", method, url, body, r.status_code, r.text[:300])

