"""Error codes and their user-facing messages.

The registry is the central place to define error codes and their texts, so
that services emitting the same logical error never drift apart. Codes are
partitioned into three bands:

- 1xx:  internal/system failures
- 10xx: transport/protocol failures
- 11xx: application logic failures

Clients key off the numeric codes, so both codes and texts are a wire contract.

The process registry is built exactly once, by register() at startup or by the
first get_registry() call, and is immutable afterwards. Concurrent reads need
no locking.
"""

import threading
from collections.abc import Iterator, Mapping
from enum import IntEnum
from types import MappingProxyType


class ErrorCode(IntEnum):
    """Numeric error codes shared with API clients."""

    # Internal system errors
    INTERNAL_DB_ERROR = 101
    INTERNAL_SYSTEM_ERROR = 102
    FILE_SYSTEM_ERROR = 103
    CRYPT_ERROR = 104

    # API / transport errors
    CORRUPT_BODY = 1001
    CORRUPT_ENVELOPE = 1002
    INVALID_JSON = 1003
    UNHANDLED_METHOD = 1004
    INVALID_API_KEY = 1005

    # Generic application logic errors
    MISSING_ARGUMENTS = 1101
    UNIQUENESS_VIOLATION = 1102
    CORRUPT_CTOKEN_FORMAT = 1103
    INVALID_CTOKEN = 1104
    INTEGRITY_VIOLATION = 1105
    EMPTY_RESULT_SET = 1106
    MUTUALLY_EXCLUSIVE_OPTIONS = 1107


MESSAGES: Mapping[int, str] = MappingProxyType(
    {
        ErrorCode.INTERNAL_DB_ERROR: "Internal database error.",
        ErrorCode.INTERNAL_SYSTEM_ERROR: "Internal system error.",
        ErrorCode.FILE_SYSTEM_ERROR: "File system error.",
        ErrorCode.CRYPT_ERROR: "Encryption system error.",
        ErrorCode.CORRUPT_BODY: "Corrupt request body.",
        ErrorCode.CORRUPT_ENVELOPE: "Corrupt request envelope.",
        ErrorCode.INVALID_JSON: "Given data contains invalid JSON.",
        ErrorCode.UNHANDLED_METHOD: "Unhandled request method.",
        ErrorCode.INVALID_API_KEY: "Invalid API Key.",
        ErrorCode.MISSING_ARGUMENTS: "Missing mandatory arguments.",
        ErrorCode.UNIQUENESS_VIOLATION: "Uniqueness constraint violation.",
        ErrorCode.CORRUPT_CTOKEN_FORMAT: "Corrupt continuation token format.",
        ErrorCode.INVALID_CTOKEN: "Invalid continuation token.",
        ErrorCode.INTEGRITY_VIOLATION: "Referential integrity violation.",
        ErrorCode.EMPTY_RESULT_SET: "Empty result set; record could not be found.",
        ErrorCode.MUTUALLY_EXCLUSIVE_OPTIONS: "Mutually exclusive options specified.",
    }
)


class RegistryError(RuntimeError):
    """Raised on a second registration or a conflicting registry entry."""


class ErrorRegistry(Mapping[int, str]):
    """Read-only mapping from error code to message."""

    def __init__(self, messages: Mapping[int, str]) -> None:
        self._messages: Mapping[int, str] = MappingProxyType(
            {int(code): message for code, message in messages.items()}
        )

    def resolve(self, code: int) -> str:
        """Return the message for code, or "" if the code is not registered."""
        return self._messages.get(int(code), "")

    def __getitem__(self, code: int) -> str:
        return self._messages[int(code)]

    def __iter__(self) -> Iterator[int]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"ErrorRegistry({len(self)} codes)"


_registry: ErrorRegistry | None = None
_init_lock = threading.Lock()


def register(messages: Mapping[int, str] | None = None) -> ErrorRegistry:
    """Build the process registry from the built-in table plus application codes.

    Call once at startup, before anything resolves a message.

    Raises:
        RegistryError: if the registry already exists, or if an entry would
            change the text of a built-in code.
    """
    global _registry

    combined = dict(MESSAGES)
    for code, message in (messages or {}).items():
        if combined.get(int(code), message) != message:
            raise RegistryError(f"code {int(code)} is already registered as {combined[int(code)]!r}")
        combined[int(code)] = message

    with _init_lock:
        if _registry is not None:
            raise RegistryError("error registry is already initialized")
        _registry = ErrorRegistry(combined)
        return _registry


def get_registry() -> ErrorRegistry:
    """Return the process registry, registering the built-in table on first use."""
    global _registry

    registry = _registry
    if registry is not None:
        return registry
    with _init_lock:
        if _registry is None:
            _registry = ErrorRegistry(MESSAGES)
        return _registry


def resolve(code: int) -> str:
    """Resolve code against the process registry."""
    return get_registry().resolve(code)
