"""
Request Tracking Middleware

Assigns every request an ID, binds it into the structlog context for the
duration of the request, and writes one access log line per request.
"""

import time
from typing import Optional

import structlog

from ..base import generate_request_id


logger = structlog.get_logger(__name__)


class RequestTrackingMiddleware:
    """
    ASGI middleware for request tracking.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestTrackingMiddleware)

    The request ID is taken from the incoming ``X-Request-ID`` header when
    present, exposed to handlers as ``request.state.request_id`` and echoed
    back on the response.
    """

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
    ):
        self.app = app
        self.header_name = header_name

    def _incoming_request_id(self, scope) -> Optional[str]:
        wanted = self.header_name.lower().encode()
        for key, value in scope.get("headers", []):
            if key.lower() == wanted and value:
                return value.decode("latin-1")
        return None

    async def __call__(self, scope, receive, send):
        """Process request."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._incoming_request_id(scope) or generate_request_id()
        scope.setdefault("state", {})["request_id"] = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append((
                    self.header_name.lower().encode(),
                    request_id.encode(),
                ))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.info(
                "request_completed",
                method=scope.get("method"),
                path=scope.get("path"),
                status_code=status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")


__all__ = ["RequestTrackingMiddleware"]
