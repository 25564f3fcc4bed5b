"""Chainable error context.

An ErrorContext records a type tag, the location of the code that first
enriched it, key/value diagnostic data, and optionally the context of the
layer below it::

    ctx = ErrorContext.new("db")
    ctx.add("table", "users").add("op", "insert")
    ...
    outer = ErrorContext.wrap("signup", ctx)
    outer.add("email", email)

Once a function has added data to a context, that context is sealed for every
other function: a caller that wants to attach its own data must wrap the
context first. Otherwise the captured location would attribute the caller's
data to the wrong call site. Adds from a foreign function are ignored and
logged.

A context is owned by a single call stack. get(), serialize() and str() may be
called from any thread, but concurrent add() calls on the same node are not
supported: build independent contexts per concurrent path and wrap them
sequentially.
"""

import sys
from collections.abc import Iterator
from pathlib import PurePath
from types import CodeType
from typing import Any, Self

from pydantic import JsonValue
from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python

from svcutils.config import settings
from svcutils.logging import get_logger

logger = get_logger(__name__)


def _caller_location(depth: int) -> tuple[str, CodeType]:
    """Return ("<path-suffix>:<line>", code object) of the frame `depth` levels up."""
    frame = sys._getframe(depth + 1)
    parts = PurePath(frame.f_code.co_filename).parts[-settings.location_segments :]
    return f"{'/'.join(parts)}:{frame.f_lineno}", frame.f_code


def _same_function(owner: CodeType, code: CodeType) -> bool:
    """True if code is owner itself or a lambda, generator or function nested in it."""
    if code is owner:
        return True
    return code.co_filename == owner.co_filename and code.co_qualname.startswith(
        f"{owner.co_qualname}.<locals>."
    )


def _to_json_value(value: Any) -> JsonValue:
    try:
        return to_jsonable_python(value, fallback=str)
    except (ValueError, PydanticSerializationError):
        # circular containers
        return str(value)


class ErrorContext(Exception):
    """Enrichable error value forming a singly-linked chain through `inner`.

    Build with new() or wrap(); both answer None instead of raising when given
    invalid input. The constructor itself refuses a blank type.
    """

    def __init__(self, error_type: str) -> None:
        error_type = error_type.strip()
        if not error_type:
            raise ValueError("error context type must not be blank")
        super().__init__(error_type)
        self._type = error_type
        self._location = ""
        self._data: dict[str, JsonValue] = {}
        self._inner: ErrorContext | None = None
        self._owner: CodeType | None = None

    @classmethod
    def new(cls, error_type: str) -> Self | None:
        """Create a context of the given type, or None if the type is blank."""
        if not error_type or not error_type.strip():
            return None
        return cls(error_type)

    @classmethod
    def wrap(cls, error_type: str, inner: "ErrorContext | None") -> Self | None:
        """Create a context around `inner`, the context of the layer below.

        Answers None if the type is blank or inner is None. The inner chain
        is referenced as-is and is not modified.
        """
        if inner is None:
            return None
        ctx = cls.new(error_type)
        if ctx is None:
            return None
        ctx._inner = inner
        return ctx

    def add(self, key: str, value: Any) -> Self:
        """Attach diagnostic data and answer self, for chaining.

        A blank key or a None value is ignored. Values that are not JSON
        types are converted (models, dataclasses, datetimes) or stored as
        their str(). The first successful call captures the caller's location.
        """
        key = key.strip() if key else ""
        if not key or value is None:
            return self

        location, code = _caller_location(1)
        if self._owner is not None and not _same_function(self._owner, code):
            logger.warning(
                "error_context_sealed",
                type=self._type,
                key=key,
                sealed_at=self._location,
                caller=location,
            )
            return self

        converted = _to_json_value(value)
        if self._owner is None:
            self._location = location
            self._owner = code
        self._data[key] = converted
        return self

    def get(self, key: str) -> JsonValue | None:
        """Answer the value of key from the nearest context in the chain, or None."""
        for node in self.chain():
            if key in node._data:
                return node._data[key]
        return None

    @property
    def type(self) -> str:
        return self._type

    @property
    def location(self) -> str:
        """Source "path:line" of the first addition of data, "" before that."""
        return self._location

    @property
    def data(self) -> dict[str, JsonValue]:
        return dict(self._data)

    @property
    def inner(self) -> "ErrorContext | None":
        return self._inner

    @property
    def sealed(self) -> bool:
        """True once data has been added; other functions must wrap from then on."""
        return self._owner is not None

    def chain(self) -> Iterator["ErrorContext"]:
        """Iterate over this context and its inner contexts, outermost first."""
        node: ErrorContext | None = self
        while node is not None:
            yield node
            node = node._inner

    def serialize(self) -> dict[str, JsonValue]:
        """Render the chain as nested {location, type, data, inner?} dicts."""
        *outer, innermost = self.chain()
        rendered = innermost._render()
        for node in reversed(outer):
            rendered = {**node._render(), "inner": rendered}
        return rendered

    def _render(self) -> dict[str, JsonValue]:
        return {"location": self._location, "type": self._type, "data": dict(self._data)}

    def __str__(self) -> str:
        return to_json(self.serialize()).decode()

    def __repr__(self) -> str:
        return f"ErrorContext(type={self._type!r}, location={self._location!r})"
