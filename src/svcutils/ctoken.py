"""Continuation token codec.

Pagination cursors travel as standard, padded base64 text of their UTF-8 bytes.
"""

import base64

from svcutils.exceptions import CorruptCtokenError


def encode(ctoken: str) -> str:
    """Base64-encode a continuation token."""
    return base64.b64encode(ctoken.encode()).decode("ascii")


def decode(ctoken: str) -> str:
    """Convert an encoded continuation token back into its original form.

    Raises:
        CorruptCtokenError: for wrong length, alphabet or padding, or when the
            decoded bytes are not UTF-8.
    """
    if len(ctoken) % 4:
        raise CorruptCtokenError(f"illegal length {len(ctoken)}")
    try:
        return base64.b64decode(ctoken, validate=True).decode()
    except ValueError as exc:  # binascii.Error, UnicodeDecodeError, non-ASCII input
        raise CorruptCtokenError(str(exc)) from exc


def decode_optional(ctoken: str | None) -> str | None:
    """Like decode(), but a missing token (first page) passes through as None."""
    if ctoken is None:
        return None
    return decode(ctoken)
