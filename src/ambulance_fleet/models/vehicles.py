"""Vehicle performance and fleet definition models."""

from pydantic import BaseModel, Field, model_validator

from ambulance_fleet.models.network import Coordinates


DEFAULT_PARKING_SLOTS = [
    (374.0, 30.0),
    (409.0, 30.0),
    (479.0, 30.0),
    (514.0, 30.0),
]


class VehicleSpec(BaseModel):
    """Ambulance speed profile.

    Vehicles drive at full speed to a scene, slower on the way back,
    and creep at a fraction of full speed when settling into their
    parking slot.
    """

    speed: float = Field(
        150.0,
        gt=0,
        le=10_000,
        description="Driving speed (world units per second)"
    )
    return_speed_factor: float = Field(
        0.8,
        gt=0,
        le=1,
        description="Speed multiplier while returning to the hospital"
    )
    idle_drift_factor: float = Field(
        0.4,
        gt=0,
        le=1,
        description="Speed multiplier while settling into the parking slot"
    )

    model_config = {"extra": "forbid"}

    def return_speed(self) -> float:
        return self.speed * self.return_speed_factor

    def drift_speed(self) -> float:
        return self.speed * self.idle_drift_factor


class HospitalConfig(BaseModel):
    """The hospital and the ambulance fleet parked at it.

    One ambulance is created per parking slot, numbered from
    ``first_vehicle_id`` in slot order.
    """

    location: Coordinates = Field(
        default_factory=lambda: Coordinates(x=444, y=0),
        description="World position of the hospital building"
    )
    parking_slots: list[Coordinates] = Field(
        default_factory=lambda: [Coordinates(x=x, y=y) for x, y in DEFAULT_PARKING_SLOTS],
        min_length=1,
        description="Home parking coordinate of each ambulance"
    )
    first_vehicle_id: int = Field(
        1,
        ge=0,
        description="Id given to the ambulance in the first slot"
    )
    on_scene_duration_s: float = Field(
        4.0,
        ge=0,
        description="Time an ambulance dwells on scene (seconds)"
    )
    vehicle: VehicleSpec = Field(
        default_factory=VehicleSpec,
        description="Speed profile shared by the fleet"
    )

    @model_validator(mode="after")
    def parking_slots_distinct(self) -> "HospitalConfig":
        """Validate that no two ambulances share a parking slot."""
        seen = set()
        for slot in self.parking_slots:
            key = slot.as_tuple()
            if key in seen:
                raise ValueError(f"Duplicate parking slot at ({slot.x}, {slot.y})")
            seen.add(key)
        return self

    model_config = {"extra": "forbid"}

    @property
    def fleet_size(self) -> int:
        return len(self.parking_slots)
