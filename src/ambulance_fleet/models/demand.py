"""Demand generation configuration models.

Demand represents calls arriving at the intake desk during a
headless run. Each call is an intake form exactly as a dispatcher
would type it, so scripted calls pass through the same validation
as interactive ones.

Demand can be specified manually (explicit call list) or
generated stochastically from a rate (Poisson process).
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ambulance_fleet.models.enums import DemandMode, Severity


class ScriptedEmergency(BaseModel):
    """An intake form submitted at a known time.

    Text fields hold the raw user input. Nothing here is validated
    beyond its type; the intake desk decides whether the form is
    acceptable.
    """

    time_s: float = Field(
        ...,
        ge=0,
        description="Time from simulation start (seconds)"
    )
    patient_name: str = Field(
        "",
        description="Patient name as typed"
    )
    age: str = Field(
        "",
        description="Patient age as typed (digits)"
    )
    severity: str = Field(
        Severity.NORMAL.value,
        description="Severity label (Critical, High, Normal)"
    )
    description: str = Field(
        "",
        description="Free-text description of the emergency"
    )
    house_number: str = Field(
        "",
        description="House number as typed"
    )

    model_config = {"extra": "forbid"}

    def form_fields(self) -> dict[str, str]:
        """The form payload, without the scheduling time."""
        return self.model_dump(exclude={"time_s"})


class RateBasedDemand(BaseModel):
    """Stochastic demand generation parameters.

    Calls arrive via a Poisson process at a uniformly chosen house,
    with severity drawn from ``severity_weights``.
    """

    rate_per_minute: float = Field(
        ...,
        gt=0,
        description="Mean arrival rate (calls per minute)"
    )
    severity_weights: dict[str, float] = Field(
        default={"Critical": 0.2, "High": 0.3, "Normal": 0.5},
        description="Relative weights for each severity label"
    )

    # Time window for generation
    active_from_s: float = Field(
        0,
        ge=0,
        description="Start generating calls after this time (seconds)"
    )
    active_until_s: Optional[float] = Field(
        None,
        ge=0,
        description="Stop generating calls after this time (None=until sim end)"
    )

    @model_validator(mode="after")
    def validate_time_window(self) -> "RateBasedDemand":
        """Ensure active window is valid."""
        if self.active_until_s is not None:
            if self.active_until_s <= self.active_from_s:
                raise ValueError(
                    f"active_until_s ({self.active_until_s}) must be > "
                    f"active_from_s ({self.active_from_s})"
                )
        return self

    @model_validator(mode="after")
    def validate_severity_weights(self) -> "RateBasedDemand":
        """Ensure weights are usable for a weighted draw."""
        if not self.severity_weights:
            raise ValueError("severity_weights cannot be empty")

        for label, weight in self.severity_weights.items():
            if weight <= 0:
                raise ValueError(
                    f"Weight for severity '{label}' must be > 0, got {weight}"
                )
        return self

    model_config = {"extra": "forbid"}


class DemandConfiguration(BaseModel):
    """Complete demand definition for a scenario.

    - MANUAL: explicit call list with exact times
    - RATE_BASED: stochastic generation from an arrival rate

    The mode determines which fields are used. Validation ensures
    the appropriate fields are populated for the selected mode.
    """

    mode: DemandMode = Field(
        DemandMode.MANUAL,
        description="How demand is generated"
    )

    manual_events: list[ScriptedEmergency] = Field(
        default_factory=list,
        description="Explicit call list (used when mode=MANUAL)"
    )

    rate_based: Optional[RateBasedDemand] = Field(
        None,
        description="Arrival rate definition (used when mode=RATE_BASED)"
    )

    @model_validator(mode="after")
    def validate_mode_has_data(self) -> "DemandConfiguration":
        """Ensure selected mode has corresponding data."""
        if self.mode == DemandMode.MANUAL:
            if not self.manual_events:
                raise ValueError(
                    "Manual demand mode requires at least one event in manual_events"
                )
        elif self.mode == DemandMode.RATE_BASED:
            if self.rate_based is None:
                raise ValueError(
                    "Rate-based demand mode requires a rate_based configuration"
                )
        return self

    model_config = {"extra": "forbid"}


def create_manual_demand(
    events: list[tuple[float, str, str, int]]
) -> DemandConfiguration:
    """Create manual demand from a simple call list.

    Args:
        events: List of (time_s, patient_name, severity, house_number) tuples

    Returns:
        DemandConfiguration with manual mode

    Example:
        demand = create_manual_demand([
            (0.0, "Ada", "Critical", 12),
            (5.0, "Bo", "Normal", 40),
        ])
    """
    manual_events = [
        ScriptedEmergency(
            time_s=time_s,
            patient_name=name,
            age="40",
            severity=severity,
            house_number=str(house),
        )
        for time_s, name, severity, house in events
    ]
    return DemandConfiguration(
        mode=DemandMode.MANUAL,
        manual_events=manual_events,
    )
