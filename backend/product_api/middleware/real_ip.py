"""
Product API - Client IP Resolution Middleware
==============================================

What:  Replaces the socket peer address with the client address reported
       by a reverse proxy.
How:   Checks True-Client-IP, then X-Real-IP, then the first entry of
       X-Forwarded-For, and rewrites scope["client"] so request.client
       returns the resolved address everywhere downstream (access log
       included).

Only deploy behind a proxy that overwrites these headers; otherwise clients
can choose the address that gets logged.
"""

from typing import Optional

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def resolve_client_ip(headers: Headers) -> Optional[str]:
    """Client IP from proxy headers, or None when no header is present."""
    true_client_ip = headers.get("True-Client-IP")
    if true_client_ip:
        return true_client_ip.strip()

    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    # X-Forwarded-For: client, proxy1, proxy2
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return None


class RealIPMiddleware(BaseHTTPMiddleware):
    """Rewrites the ASGI client address from proxy headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_ip = resolve_client_ip(request.headers)
        if client_ip:
            port = request.client.port if request.client else 0
            request.scope["client"] = (client_ip, port)
        return await call_next(request)
