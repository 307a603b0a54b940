from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, ValidationError, field_validator

from roster.errors import StudentValidationError
from roster.schemas.base import CamelModel


def field_errors(raw_errors: Sequence[Mapping[str, Any]]) -> list[dict[str, str]]:
    errors = []
    for error in raw_errors:
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})
    return errors


class StudentFields(CamelModel):
    """The only fields a client may write on a student, for both create and update."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=1, max_length=255)
    major: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def email_has_at_sign(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("Email must contain '@'")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StudentFields":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise StudentValidationError(field_errors(e.errors())) from None


class StudentResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    major: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeleteResponse(CamelModel):
    message: str = "Deleted"
