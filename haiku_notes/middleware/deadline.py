"""
Haiku Notes Backend: Handler Deadline Middleware
=================================================

What:  Bounds the time a request may spend inside the application.
How:   Wraps the downstream call in asyncio.wait_for; on expiry the handler
       is cancelled (its session rolls back) and the client gets a 504
       JSON error body.
Who:   Configured from API_WRITE_TIMEOUT.
"""

import asyncio
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from haiku_notes.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class DeadlineMiddleware(BaseHTTPMiddleware):
    """
    Cancels handlers that run longer than `timeout` seconds.

    A non-positive timeout disables the deadline.
    """

    def __init__(self, app: ASGIApp, timeout: float):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self.timeout <= 0:
            return await call_next(request)

        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            rid = request_id_var.get("")
            logger.error(
                "[%s] %s %s exceeded the %gs deadline",
                rid,
                request.method,
                request.url.path,
                self.timeout,
            )
            return JSONResponse(
                status_code=504,
                content={
                    "error": "handler_timeout",
                    "message": "Request processing exceeded the write timeout",
                    "details": {"timeout_seconds": self.timeout},
                    "request_id": rid,
                },
            )
