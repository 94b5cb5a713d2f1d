"""
Request observability.

Every request gets a correlation id (taken from the caller's
`X-Correlation-ID` header or freshly generated). The id is exposed to log
records through `correlation_id_var`, echoed back on the response, and the
request is summarised in one structured access line that also names the
authenticated user, when the identity gate resolved one.
"""

import time
import uuid
import logging
from contextvars import ContextVar
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("nexachain.http")

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Polled by load balancers every few seconds
QUIET_PATHS = {"/health"}


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        token = correlation_id_var.set(correlation_id)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "user_id": getattr(request.state, "user_id", None),
            "client_ip": request.client.host if request.client else "unknown",
        }

        if response.status_code >= 500:
            logger.error("Request failed", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("Request rejected", extra=log_data)
        elif request.url.path in QUIET_PATHS:
            logger.debug("Health check", extra=log_data)
        else:
            logger.info("Request completed", extra=log_data)

        return response
