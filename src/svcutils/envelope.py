"""Envelope protocol: read request envelopes, write response envelopes.

Streams are plain binary file objects; reads and writes are blocking and are
never retried. Each send_* call performs exactly one write. Call at most one
send_* per logical response, otherwise the client receives concatenated
documents.
"""

from typing import IO, Any

import msgspec
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from svcutils.context import ErrorContext
from svcutils.logging import get_logger
from svcutils.registry import ErrorCode, ErrorRegistry, get_registry
from svcutils.schemas.envelope import (
    ErrorResponse,
    RequestEnvelope,
    ResultResponse,
    SuccessResponse,
)
from svcutils.schemas.report import Report

logger = get_logger(__name__)

# Data key carrying the underlying read/decode error of a rejected envelope
DIAGNOSTIC_KEY = "ioErr"

# Only the top level is decoded; member values stay raw JSON text
_members = msgspec.json.Decoder(dict[str, msgspec.Raw])
_method = msgspec.json.Decoder(str | None)


def open_envelope(stream: IO[bytes]) -> RequestEnvelope | Report:
    """Read the stream to completion and parse it as a RequestEnvelope.

    The body is not decoded, only checked to be well-formed JSON, and is kept
    byte for byte. Missing or null members take their zero values. Answers a
    Report instead when the stream cannot be read (CORRUPT_BODY) or does not
    hold an envelope-shaped JSON object (CORRUPT_ENVELOPE).
    """
    try:
        buf = stream.read()
    except (OSError, ValueError) as exc:
        return Report(code=ErrorCode.CORRUPT_BODY, data={DIAGNOSTIC_KEY: str(exc)})

    try:
        members = _members.decode(buf)
        method = _method.decode(members["method"]) if "method" in members else None
    except msgspec.DecodeError as exc:
        return Report(code=ErrorCode.CORRUPT_ENVELOPE, data={DIAGNOSTIC_KEY: str(exc)})

    if "body" not in members:
        return RequestEnvelope(method=method or "")
    return RequestEnvelope(method=method or "", body=members["body"])


def _registry_or_default(registry: ErrorRegistry | None) -> ErrorRegistry:
    return registry if registry is not None else get_registry()


def _canned_error(registry: ErrorRegistry) -> bytes:
    code = int(ErrorCode.INTERNAL_SYSTEM_ERROR)
    response = ErrorResponse(status="Error", code=code, message=registry.resolve(code))
    return response.model_dump_json(exclude_defaults=True).encode()


def _write(
    stream: IO[bytes],
    response: BaseModel,
    registry: ErrorRegistry,
    report_code: int | None = None,
    **dump_options: Any,
) -> None:
    try:
        buf = response.model_dump_json(**dump_options).encode()
    except PydanticSerializationError as exc:
        ctx = ErrorContext("json").add("msg", str(exc)).add("reportCode", report_code)
        logger.error("envelope_serialization_failed", error=ctx.serialize())
        buf = _canned_error(registry)

    stream.write(buf)


def send_success(
    stream: IO[bytes], message: str, *, registry: ErrorRegistry | None = None
) -> None:
    """Write {"status": "OK", "message": message}."""
    _write(stream, SuccessResponse(message=message), _registry_or_default(registry))


def send_error(stream: IO[bytes], report: Report, *, registry: ErrorRegistry | None = None) -> None:
    """Write the report flattened into an "Error" envelope.

    A blank message with a positive code is resolved from the registry first.
    Zero code, empty message and empty data are omitted from the output.
    """
    registry = _registry_or_default(registry)
    report = report.resolved(registry)
    response = ErrorResponse.model_construct(
        status="Error", code=report.code, message=report.message, data=report.data or None
    )
    _write(stream, response, registry, report_code=report.code, exclude_defaults=True)


def send_result(stream: IO[bytes], body: Any, *, registry: ErrorRegistry | None = None) -> None:
    """Write {"status": "OK", "body": body} for any JSON-serializable body.

    A msgspec.Raw body, such as RequestEnvelope.body, is written verbatim.
    """
    if isinstance(body, msgspec.Raw):
        stream.write(b'{"status":"OK","body":' + (bytes(body) or b"null") + b"}")
        return
    _write(stream, ResultResponse(body=body), _registry_or_default(registry))
