"""
Haiku Notes Backend: Request Logging Middleware
================================================

What:  One access-log line per request with method, path, status, duration,
       request id and client address.
How:   Times the downstream call with perf_counter and picks the log level
       from the status class: 5xx ERROR, 4xx WARNING, otherwise INFO.

What we log vs what we don't:
    Logged:      method, path, status, duration, client IP, request id
    Not logged:  request bodies (note text), headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from haiku_notes.middleware.request_id import request_id_var

logger = logging.getLogger("haiku_notes.access")

# Probe endpoints hit every few seconds
QUIET_PATHS = frozenset({"/ping", "/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each non-probe request after the response is produced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
