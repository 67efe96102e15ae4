"""Validation of untrusted model output against pydantic schemas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from backend.app.ai.errors import SchemaValidationError

T = TypeVar("T", bound=BaseModel)


class FieldError(BaseModel):
    """One structural problem at a dotted path inside the validated data."""

    path: str = Field(description="Dotted field path, empty for the root")
    message: str = Field(description="Human-readable reason")


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of validating one value.

    Exactly one of ``data`` (valid) and ``errors`` (invalid) is populated.
    """

    valid: bool
    data: T | None = None
    errors: list[FieldError] | None = None

    @classmethod
    def ok(cls, data: T) -> ValidationResult[T]:
        return cls(valid=True, data=data)

    @classmethod
    def failed(cls, errors: list[FieldError]) -> ValidationResult[T]:
        return cls(valid=False, errors=errors)


def _field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(
            path=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]


class SchemaValidator:
    """Validate raw data (usually parsed JSON) into typed models."""

    def validate(self, data: Any, schema: type[T]) -> ValidationResult[T]:
        """Parse and coerce ``data`` as ``schema``; never raises."""
        try:
            return ValidationResult.ok(schema.model_validate(data))
        except ValidationError as e:
            return ValidationResult.failed(_field_errors(e))

    def validate_or_throw(self, data: Any, schema: type[T]) -> T:
        """Parse ``data`` as ``schema``.

        Raises:
            SchemaValidationError: with the flat list of field errors.
        """
        result = self.validate(data, schema)
        if not result.valid:
            raise SchemaValidationError(result.errors or [])
        return result.data  # type: ignore[return-value]
