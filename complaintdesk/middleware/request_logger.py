# complaintdesk/middleware/request_logger.py
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

LOGGED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        # Only log modifying requests
        if request.method in LOGGED_METHODS:
            elapsed_ms = (time.perf_counter() - started) * 1000
            actor = request.headers.get("x-actor") or "-"
            logger.info(
                "%s %s -> %s (%.1f ms) actor=%s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                actor,
            )

        return response
