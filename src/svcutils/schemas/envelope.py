"""Request and response envelope schemas.

Requests carry the application-layer method and an opaque body::

    {"method": "GET", "body": {"id": 1234}}
    {"method": "DELETE", "body": {"id": 1234}}

Responses carry the application-layer status and one of:

- ("OK", an informational message or acknowledgement),
- ("Error", error code, error message, a map of important parameters),
- ("OK", an opaque response-specific body).

Clients must check the top-level status before reading anything else.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

import msgspec
from pydantic import BaseModel, JsonValue, TypeAdapter


@dataclass(frozen=True)
class RequestEnvelope:
    """Inbound envelope. The body is kept as the raw JSON text that was sent.

    Decode it when the method is known::

        order = envelope.decode_body(OrderRequest)
    """

    method: str = ""
    body: msgspec.Raw = field(default_factory=msgspec.Raw)

    @property
    def raw_body(self) -> bytes:
        """The body JSON text; a missing body reads as null."""
        return bytes(self.body) or b"null"

    def decode_body(self, type_: Any = Any) -> Any:
        """Validate the raw body against type_; any JSON value when omitted.

        Raises:
            pydantic.ValidationError: when the body does not fit type_.
        """
        return TypeAdapter(type_).validate_json(self.raw_body)


class SuccessResponse(BaseModel):
    status: Literal["OK"] = "OK"
    message: str


class ResultResponse(BaseModel):
    status: Literal["OK"] = "OK"
    body: Any


class ErrorResponse(BaseModel):
    """Error envelope: a Report flattened next to the status.

    Serialize with exclude_defaults=True so that a zero code, an empty message
    and missing data are left out of the wire form.
    """

    status: Literal["Error"]
    code: int = 0
    message: str = ""
    data: dict[str, JsonValue] | None = None
