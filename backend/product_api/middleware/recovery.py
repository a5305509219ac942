"""
Product API - Fault Recovery Middleware
========================================

What:  Converts any exception that escapes the route handlers and the
       registered exception handlers into a generic 500 envelope.
How:   Wraps call_next in try/except, logs the full traceback server-side,
       and answers with a message that carries no internal details.
       The worker keeps serving other requests.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from product_api.schemas.product import envelope_response

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled error on %s %s: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return envelope_response(500, "Internal server error")
