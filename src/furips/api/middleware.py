"""Request logging for error responses."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


def _level_for(status_code: int) -> int | None:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return None


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every 4xx response as a warning and every 5xx as an error.

    Successful responses are left to the uvicorn access log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)

        level = _level_for(response.status_code)
        if level is not None:
            logger.log(
                level,
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "http_status": response.status_code,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        return response
