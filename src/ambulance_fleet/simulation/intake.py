"""Intake desk: validate a typed form and hand it to the hospital.

This is the only place user input is checked. A form that fails any
check raises before ``Hospital.submit_emergency`` is called, so the
dispatch engine only ever receives resolved, well-formed emergencies.
"""

import logging
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from ambulance_fleet.exceptions import IntakeValidationError, LocationNotFoundError
from ambulance_fleet.models.enums import Severity
from ambulance_fleet.models.network import Coordinates
from ambulance_fleet.simulation.hospital import Hospital
from ambulance_fleet.simulation.town import Town

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32
MAX_AGE_DIGITS = 4
MAX_DESCRIPTION_LENGTH = 200
MAX_HOUSE_DIGITS = 6


class IntakeForm(BaseModel):
    """Raw intake form fields, exactly as typed."""

    patient_name: str = Field("", description="Patient name")
    age: str = Field("", description="Age (digits)")
    severity: str = Field(Severity.NORMAL.value, description="Severity label")
    description: str = Field("", description="Free-text description")
    house_number: str = Field("", description="House number (digits)")

    model_config = {"extra": "forbid"}


class CheckedIntake(BaseModel):
    """An intake form that passed every field rule.

    Validate with ``context={"town": town}`` so the house number is
    checked against the town as well.
    """

    patient_name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Patient name, surrounding whitespace removed"
    )
    age: int = Field(..., ge=0, description="Age in years")
    severity: str = Field(..., description="Severity label as entered")
    description: str = Field(
        "",
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Free-text description"
    )
    house_number: int = Field(..., description="House the call came from")

    model_config = {"extra": "forbid"}

    @field_validator("patient_name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return str(v).strip()

    @field_validator("age", mode="before")
    @classmethod
    def age_digits(cls, v: str) -> int:
        text = str(v).strip()
        if not text:
            raise ValueError("Age required")
        return _parse_digits(text, MAX_AGE_DIGITS)

    @field_validator("house_number", mode="before")
    @classmethod
    def house_digits(cls, v: str) -> int:
        text = str(v).strip()
        if not text:
            raise ValueError("House not found")
        return _parse_digits(text, MAX_HOUSE_DIGITS)

    @field_validator("house_number")
    @classmethod
    def house_in_town(cls, v: int, info: ValidationInfo) -> int:
        town = (info.context or {}).get("town")
        if town is not None and town.get_house(v) is None:
            raise ValueError("House not found")
        return v


def _parse_digits(text: str, max_digits: int) -> int:
    if not text.isdigit() or len(text) > max_digits:
        raise ValueError("Invalid number")
    return int(text)


# Constraint failures reported with the desk's own wording
_CONSTRAINT_MESSAGES = {
    ("patient_name", "string_too_short"): "Name required",
    ("patient_name", "string_too_long"): f"Name too long (max {MAX_NAME_LENGTH})",
    ("description", "string_too_long"): f"Description too long (max {MAX_DESCRIPTION_LENGTH})",
}


def _field_errors(error: ValidationError) -> dict[str, str]:
    """One message per failing field, first failure wins."""
    messages: dict[str, str] = {}
    for detail in error.errors():
        name = str(detail["loc"][0])
        if detail["type"] == "value_error":
            message = str(detail["ctx"]["error"])
        else:
            message = _CONSTRAINT_MESSAGES.get((name, detail["type"]), detail["msg"])
        messages.setdefault(name, message)
    return messages


@dataclass(frozen=True)
class ResolvedIntake:
    """A validated form with its location looked up."""

    patient_name: str
    age: int
    severity: str
    description: str
    house_number: int
    location: Coordinates


def validate_form(form: IntakeForm, town: Town) -> ResolvedIntake:
    """Check every field and resolve the house number.

    Raises:
        IntakeValidationError: With one message per failing field
    """
    try:
        checked = CheckedIntake.model_validate(form.model_dump(), context={"town": town})
    except ValidationError as e:
        raise IntakeValidationError(_field_errors(e)) from e

    try:
        location = town.resolve(checked.house_number)
    except LocationNotFoundError as e:
        raise IntakeValidationError({"house_number": "House not found"}) from e

    return ResolvedIntake(
        patient_name=checked.patient_name,
        age=checked.age,
        severity=checked.severity,
        description=checked.description,
        house_number=checked.house_number,
        location=location,
    )


def submit_form(
    hospital: Hospital,
    town: Town,
    form: Union[IntakeForm, dict[str, Any]],
) -> int:
    """Validate ``form`` and submit it to ``hospital``.

    Returns:
        The emergency id issued by the hospital

    Raises:
        IntakeValidationError: If the form is rejected; the hospital
            is left untouched
    """
    if not isinstance(form, IntakeForm):
        form = IntakeForm.model_validate(form)

    try:
        resolved = validate_form(form, town)
    except IntakeValidationError as e:
        logger.warning("Intake rejected for '%s': %s", form.patient_name, e.field_errors)
        raise

    return hospital.submit_emergency(
        patient_name=resolved.patient_name,
        age=resolved.age,
        severity=resolved.severity,
        description=resolved.description,
        location_id=resolved.house_number,
        location=resolved.location,
    )
