"""ASGI middleware for request tracing."""

import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from svcutils.config import settings


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add a request ID to every request for tracing.

    - Reads the request ID header (X-Request-ID by default), or generates a UUID
    - Binds request_id to structlog context, so error reports logged while
      handling the request can be matched to it
    - Echoes the request ID on the response
    """

    def __init__(self, app: ASGIApp, header: str | None = None) -> None:
        super().__init__(app)
        self.header = header or settings.request_id_header

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(self.header) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers[self.header] = request_id

        return response
