"""One-shot JSON strings for status/message style payloads.

These answer strings rather than writing to a stream; use svcutils.envelope
for responses.
"""

from collections.abc import Mapping
from typing import Any

from pydantic_core import PydanticSerializationError, to_json


def _status(ok: bool) -> str:
    return "OK" if ok else "Error"


def json_for_message(ok: bool, message: str) -> str:
    """Answer {"status": "OK"|"Error", "message": message}."""
    return to_json({"status": _status(ok), "message": message}).decode()


def json_for_error(err: BaseException) -> str:
    """Answer an "Error" message object carrying str(err)."""
    return json_for_message(False, str(err))


def json_for_map(ok: bool, obj: Mapping[str, Any]) -> str:
    """Answer the mapping with its "status" set; the mapping is not modified.

    Falls back to json_for_error() if the mapping cannot be serialized.
    """
    payload = {**obj, "status": _status(ok)}
    try:
        return to_json(payload).decode()
    except PydanticSerializationError as exc:
        return json_for_error(exc)


def json_for_kv(ok: bool, key: str, value: Any) -> str:
    """Answer a status object with value stored under key."""
    return json_for_map(ok, {key: value})
