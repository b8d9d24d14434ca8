"""
Custom exceptions for the referee engine.
"""

from typing import Any, Optional


class RefereeError(Exception):
    """Base exception for the referee engine."""
    pass


class IntakeError(RefereeError):
    """A single constraint field that failed validation."""

    def __init__(self, field: str, provided_value: Any, message: str):
        self.field = field
        self.provided_value = provided_value
        self.message = message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(field={self.field!r}, provided_value={self.provided_value!r})"


class InputTypeError(IntakeError):
    """Raised for a field value that is not a finite integer."""

    def __init__(self, field: str, provided_value: Any):
        super().__init__(
            field,
            provided_value,
            f"{field} must be a whole number between 1 and 10, got {provided_value!r}",
        )


class InputRangeError(IntakeError):
    """Raised for an integer field value outside the 1-10 scale."""

    def __init__(self, field: str, provided_value: Any, minimum: int = 1, maximum: int = 10):
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            field,
            provided_value,
            f"{field} must be between {minimum} and {maximum}, got {provided_value}",
        )


class IntakeValidationError(RefereeError):
    """All field errors collected during a single intake call."""

    def __init__(self, errors: list[IntakeError]):
        self.errors = list(errors)
        self.message = "; ".join(e.message for e in self.errors) or "Invalid constraint input"
        super().__init__(self.message)

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class DataIntegrityError(RefereeError):
    """Static reference data is missing or malformed. Not recoverable."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(self.message)


class ConfigValidationError(RefereeError):
    """A configuration update violated its invariants and was rejected."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        self.message = "Invalid configuration: " + "; ".join(self.errors)
        super().__init__(self.message)
