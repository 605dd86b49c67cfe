import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from services.observability import resolve_request_id, set_request_id

logger = logging.getLogger("bookmarket.http")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        req_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        start = time.time()

        # attach to request state + contextvar (audit rows pick it up)
        request.state.request_id = req_id
        set_request_id(req_id)

        response = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = req_id
            return response
        finally:
            duration_ms = int((time.time() - start) * 1000)
            status = getattr(response, "status_code", 500)

            # no headers/body: they may carry tokens or account numbers
            logger.info(
                "http_request_end request_id=%s method=%s path=%s status=%s duration_ms=%s",
                req_id,
                request.method,
                request.url.path,
                status,
                duration_ms,
            )
            set_request_id(None)
