"""Exceptions raised at the intake boundary.

The dispatch engine itself never raises during normal operation; these
errors belong to the layer that turns user input into a resolved
emergency before the hospital ever sees it.
"""

from typing import Optional


class IntakeError(ValueError):
    """Base exception for rejected intake."""


class IntakeValidationError(IntakeError):
    """Raised when one or more intake form fields are unacceptable."""

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        detail = "; ".join(f"{name}: {msg}" for name, msg in self.field_errors.items())
        super().__init__(f"Intake rejected: {detail}")


class LocationNotFoundError(IntakeError, LookupError):
    """Raised when a location identifier does not resolve to a house."""

    def __init__(self, house_number: Optional[int]) -> None:
        super().__init__(f"House not found: {house_number}")
        self.house_number = house_number


__all__ = [
    "IntakeError",
    "IntakeValidationError",
    "LocationNotFoundError",
]
