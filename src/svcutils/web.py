"""FastAPI adapter for the envelope protocol.

Routes take the opened envelope as a dependency and answer with one of the
three response shapes; errors raised anywhere below are turned into the error
envelope by the handlers registered with install()::

    app = FastAPI()
    install(app)

    @app.post("/rpc")
    async def rpc(envelope: Envelope) -> Response:
        if envelope.method != "GET":
            raise ServiceError(ErrorCode.UNHANDLED_METHOD)
        return result_response({"id": 1234})
"""

from collections.abc import Callable
from io import BytesIO
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from starlette.requests import ClientDisconnect
from starlette.responses import Response

from svcutils.context import ErrorContext
from svcutils.envelope import DIAGNOSTIC_KEY, open_envelope, send_error, send_result, send_success
from svcutils.exceptions import EnvelopeError, ServiceError
from svcutils.logging import get_logger
from svcutils.middleware import RequestIDMiddleware
from svcutils.registry import ErrorCode
from svcutils.schemas.envelope import RequestEnvelope
from svcutils.schemas.report import Report

logger = get_logger(__name__)


async def read_envelope(request: Request) -> RequestEnvelope:
    """FastAPI dependency that opens the request envelope.

    Raises:
        EnvelopeError: with CORRUPT_BODY or CORRUPT_ENVELOPE when the body
            cannot be read or parsed.
    """
    try:
        body = await request.body()
    except ClientDisconnect:
        raise EnvelopeError(
            Report(code=ErrorCode.CORRUPT_BODY, data={DIAGNOSTIC_KEY: "client disconnected"})
        ) from None

    opened = open_envelope(BytesIO(body))
    if isinstance(opened, Report):
        raise EnvelopeError(opened)
    return opened


Envelope = Annotated[RequestEnvelope, Depends(read_envelope)]


class EnvelopeResponse(Response):
    media_type = "application/json"


def _render(send: Callable[..., None], value: Any, status_code: int) -> EnvelopeResponse:
    buf = BytesIO()
    send(buf, value)
    return EnvelopeResponse(buf.getvalue(), status_code=status_code)


def success_response(message: str, status_code: int = 200) -> EnvelopeResponse:
    """Response carrying {"status": "OK", "message": message}."""
    return _render(send_success, message, status_code)


def result_response(body: Any, status_code: int = 200) -> EnvelopeResponse:
    """Response carrying {"status": "OK", "body": body}."""
    return _render(send_result, body, status_code)


def error_response(report: Report, status_code: int = 400) -> EnvelopeResponse:
    """Response carrying the report in an "Error" envelope."""
    return _render(send_error, report, status_code)


async def service_error_handler(request: Request, exc: ServiceError) -> Response:
    """Send the error's report; log its chained context, if any."""
    cause = exc.__cause__
    logger.warning(
        "service_error",
        code=exc.code,
        path=request.url.path,
        context=cause.serialize() if isinstance(cause, ErrorContext) else None,
    )
    return error_response(exc.report(), status_code=exc.status_code)


async def error_context_handler(request: Request, exc: ErrorContext) -> Response:
    """A raised context never reaches the client; log it and send a system error."""
    logger.error("error_context", path=request.url.path, context=exc.serialize())
    return error_response(Report(code=ErrorCode.INTERNAL_SYSTEM_ERROR), status_code=500)


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """Log unhandled exceptions and return a safe error response.

    - Logs full exception with traceback (includes request_id from context)
    - Returns the generic system error to the client (no stack traces leaked)
    """
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return error_response(Report(code=ErrorCode.INTERNAL_SYSTEM_ERROR), status_code=500)


def install(app: FastAPI) -> None:
    """Register the envelope exception handlers and the request-id middleware."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(ErrorContext, error_context_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_middleware(RequestIDMiddleware)
