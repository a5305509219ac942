"""
Product API - Middleware Package
=================================

Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Real IP] → [Recovery] → [Logging] → [Timeout] → Routes

    1. Request ID: correlation ID for every log entry and the response header
    2. Real IP: client address from proxy headers
    3. Recovery: unhandled exceptions become a 500 envelope
    4. Logging: method, path, status, duration, request ID, remote address
    5. Timeout: cancels the request after REQUEST_TIMEOUT_SECONDS (504)

Starlette runs middleware in reverse order of add_middleware(), so
create_app() adds them from Timeout back to Request ID.
"""

from product_api.middleware.logging import RequestLoggingMiddleware
from product_api.middleware.real_ip import RealIPMiddleware
from product_api.middleware.recovery import RecoveryMiddleware
from product_api.middleware.request_id import RequestIDMiddleware
from product_api.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RequestIDMiddleware",
    "RealIPMiddleware",
    "RecoveryMiddleware",
    "RequestLoggingMiddleware",
    "TimeoutMiddleware",
]
