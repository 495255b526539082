"""Error state models."""

from typing import Literal

from pydantic import BaseModel, Field


class DriverFailure(BaseModel):
    """A failure reported by the database driver."""

    kind: Literal["driver"] = "driver"
    code: int | str | None = None
    message: str


class ValidationFailure(BaseModel):
    """A failure raised by this layer before the driver was involved."""

    kind: Literal["validation"] = "validation"
    message: str


Failure = DriverFailure | ValidationFailure


class ErrorState(BaseModel):
    """Record of the most recent failures.

    Driver failures fill ``code``, ``message`` and ``trace``. Validation and
    fetch failures raised by this layer only fill ``error``. Nothing is
    cleared on success, so callers inspect the fields right after a call
    returned ``False``.
    """

    code: int | str | None = None
    message: str | None = None
    trace: list[str] = Field(default_factory=list)
    error: str | None = None

    def record_driver_failure(
        self, code: int | str | None, message: str, trace: list[str]
    ) -> DriverFailure:
        """Store a driver failure and return its tagged form."""
        self.code = code
        self.message = message
        self.trace = trace
        return DriverFailure(code=code, message=message)

    def record_validation_failure(self, message: str) -> ValidationFailure:
        """Store a layer-level failure and return its tagged form."""
        self.error = message
        return ValidationFailure(message=message)
