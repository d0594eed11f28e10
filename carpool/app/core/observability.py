"""
Observability Middleware.

Adds request correlation IDs, security headers and per-request access logs.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from carpool.app.core.exceptions import generic_exception_handler
from carpool.app.core.logging_config import request_id_var

logger = logging.getLogger("carpool.access")

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # 1. Reuse the caller's request id or generate one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.perf_counter()
        try:
            # 2. Process Request; anything unexpected becomes a sanitized 500
            try:
                response = await call_next(request)
            except Exception as exc:
                response = await generic_exception_handler(request, exc)

            process_time = (time.perf_counter() - start_time) * 1000  # ms

            # 3. Response headers
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.2f}"
            for header, value in SECURITY_HEADERS.items():
                response.headers.setdefault(header, value)

            # 4. Access log
            log_data = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(process_time, 2),
                "ip": request.client.host if request.client else "unknown",
            }
            message = "%(method)s %(path)s %(status_code)s %(duration_ms)sms" % log_data
            if response.status_code >= 500:
                logger.error(message, extra=log_data)
            elif response.status_code >= 400:
                logger.warning(message, extra=log_data)
            else:
                logger.info(message, extra=log_data)

            return response
        finally:
            request_id_var.reset(token)
