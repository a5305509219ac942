"""
Product API - Request Logging Middleware
=========================================

What:  One structured log entry per HTTP request.
How:   Measures the time around call_next and logs method, path, status,
       duration, request ID and remote address. The remote address is the
       one resolved by RealIPMiddleware.

Log level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Request bodies are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from product_api.middleware.request_id import request_id_var

logger = logging.getLogger("product_api.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request after its response is produced.

    An exception escaping the handler is logged as status 500 and re-raised
    for RecoveryMiddleware to answer.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        try:
            response = await call_next(request)
        except Exception:
            self._log(method, path, 500, start_time, rid, client_ip)
            raise

        self._log(method, path, response.status_code, start_time, rid, client_ip)
        return response

    @staticmethod
    def _log(
        method: str,
        path: str,
        status: int,
        start_time: float,
        rid: str,
        client_ip: str,
    ) -> None:
        duration_ms = (time.perf_counter() - start_time) * 1000

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
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "remote_addr": client_ip,
            },
        )
