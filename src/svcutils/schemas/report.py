"""Error report schemas.

A Report is the only part of an error that reaches a client: a numeric code,
a message and an optional small data map. Diagnostic chains stay in the logs.

Error responses flatten the report next to the status:
{"status": "Error", "code": 1001, "message": "...", "data": {...}}, with
every zero/empty field omitted.
"""

from pydantic import BaseModel, JsonValue, field_validator

from svcutils.registry import ErrorRegistry


class Report(BaseModel):
    """Specifics of an error reported back to the user.

    The output is potentially visible to an end-user, so caution should be
    exercised in forming this object. A blank message is resolved from the
    error registry when the report is sent, not when it is built.
    """

    code: int = 0
    message: str = ""
    data: dict[str, JsonValue] | None = None

    @field_validator("code")
    @classmethod
    def _plain_int(cls, v: int) -> int:
        return int(v)

    @field_validator("data")
    @classmethod
    def _empty_as_none(cls, v: dict[str, JsonValue] | None) -> dict[str, JsonValue] | None:
        return v or None

    def resolved(self, registry: ErrorRegistry) -> "Report":
        """Answer a copy whose blank message is filled in from the registry."""
        if self.message or self.code <= 0:
            return self
        return self.model_copy(update={"message": registry.resolve(self.code)})

    def __str__(self) -> str:
        return self.model_dump_json(exclude_defaults=True)
