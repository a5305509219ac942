"""
Product API - Request Timeout Middleware
=========================================

What:  Bounds the wall-clock time of each request.
How:   Runs the downstream ASGI app under asyncio.wait_for. On expiry the
       request task is cancelled, which aborts any awaited store call and
       closes its session, and the client gets a 504 envelope.

Written as a plain ASGI middleware rather than BaseHTTPMiddleware: with
call_next the downstream app runs in a separate task that a timeout here
could not cancel.
"""

import asyncio
import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from product_api.schemas.product import envelope_response

logger = logging.getLogger(__name__)


class TimeoutMiddleware:

    def __init__(self, app: ASGIApp, timeout: float = 60.0):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(
                self.app(scope, receive, send_wrapper),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Request timed out after %.1fs: %s %s",
                self.timeout,
                scope.get("method"),
                scope.get("path"),
            )
            # Headers already sent: nothing valid can follow
            if response_started:
                return
            response = envelope_response(504, "Request timed out")
            await response(scope, receive, send)
