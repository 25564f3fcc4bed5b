"""Service exceptions raised by application code and caught at the boundary.

Each exception carries an error code. Boundary handlers (svcutils.web) turn
it into a Report and the standard error envelope:
{"status": "Error", "code": ..., "message": "...", "data": {...}}.

Diagnostic context belongs in an ErrorContext chained as the cause::

    raise NotFoundError("user", user_id) from ctx

The chain is logged; only the report reaches the client.
"""

from pydantic import JsonValue

from svcutils.registry import ErrorCode
from svcutils.schemas.report import Report


class ServiceError(Exception):
    """Base class for all exceptions that map onto an error report."""

    status_code = 400

    def __init__(
        self, code: int, message: str = "", *, data: dict[str, JsonValue] | None = None
    ) -> None:
        self.code = int(code)
        self.message = message
        self.data = data
        super().__init__(message or f"error {self.code}")

    def report(self) -> Report:
        """Answer the client-facing report; a blank message is resolved on send."""
        return Report(code=self.code, message=self.message, data=self.data)


class NotFoundError(ServiceError):
    """Raised when a requested entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            ErrorCode.EMPTY_RESULT_SET, data={"entity": entity, "id": str(identifier)}
        )


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state (e.g. duplicate)."""

    status_code = 409

    def __init__(self, message: str = "") -> None:
        super().__init__(ErrorCode.UNIQUENESS_VIOLATION, message)


class MissingArgumentsError(ServiceError):
    """Raised when mandatory arguments are absent from a request body."""

    def __init__(self, *names: str) -> None:
        self.names = names
        super().__init__(ErrorCode.MISSING_ARGUMENTS, data={"arguments": list(names)})


class CorruptCtokenError(ServiceError):
    """Raised when a continuation token is not valid base64 text."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(ErrorCode.CORRUPT_CTOKEN_FORMAT)


class EnvelopeError(ServiceError):
    """Raised when a request envelope could not be opened."""

    def __init__(self, report: Report) -> None:
        super().__init__(report.code, report.message, data=report.data)
