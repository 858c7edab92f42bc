"""Top-level scenario model combining all components.

A Scenario is the complete input for a headless run:
the road grid, the town laid out on it, the hospital and its fleet,
the demand arriving at the intake desk, and simulation parameters.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ambulance_fleet.models.demand import DemandConfiguration, ScriptedEmergency
from ambulance_fleet.models.enums import DemandMode, Severity
from ambulance_fleet.models.network import GridSpec, TownLayout
from ambulance_fleet.models.vehicles import HospitalConfig

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class SimulationConfig(BaseModel):
    """Global simulation control parameters."""

    # Time
    duration_s: float = Field(
        120.0,
        gt=0,
        le=86_400,  # Up to one simulated day
        description="Total simulation duration (seconds)"
    )
    frame_dt_s: float = Field(
        1.0 / 60.0,
        gt=0,
        le=1.0,
        description="Elapsed time per frame tick (seconds)"
    )
    random_seed: int = Field(
        42,
        description="RNG seed for reproducible stochastic demand"
    )

    # Output control
    log_level: str = Field(
        "INFO",
        description="Diagnostic logging verbosity (DEBUG, INFO, WARNING, ERROR)"
    )

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got '{v}'")
        return level

    model_config = {"extra": "forbid"}

    @property
    def frame_count(self) -> int:
        """Number of frame ticks in a full run."""
        return int(round(self.duration_s / self.frame_dt_s))


class Scenario(BaseModel):
    """Complete scenario definition.

    Validation ensures the hospital and its parking slots sit on or
    near the road grid, and that scripted calls fall inside the run.
    """

    # Metadata
    name: str = Field(
        ...,
        min_length=1,
        description="Scenario name"
    )
    description: Optional[str] = Field(
        None,
        description="Scenario description and notes"
    )
    version: str = Field(
        "1.0.0",
        description="Schema version for compatibility checking"
    )

    grid: GridSpec = Field(
        default_factory=GridSpec,
        description="Road lattice"
    )
    town: TownLayout = Field(
        default_factory=TownLayout,
        description="Residential lot layout"
    )
    hospital: HospitalConfig = Field(
        default_factory=HospitalConfig,
        description="Hospital location and ambulance fleet"
    )
    demand: DemandConfiguration = Field(
        ...,
        description="Demand generation configuration"
    )
    config: SimulationConfig = Field(
        default_factory=SimulationConfig,
        description="Simulation control parameters"
    )

    @model_validator(mode="after")
    def validate_all_references(self) -> "Scenario":
        """Ensure locations and times are consistent with the grid and run."""
        errors = []

        # Hospital and fleet must be reachable from the lattice
        margin = self.grid.block_size
        if not self.grid.contains(self.hospital.location, margin=margin):
            errors.append(
                f"Hospital at ({self.hospital.location.x}, {self.hospital.location.y}) "
                f"is more than one block outside the road grid"
            )
        for i, slot in enumerate(self.hospital.parking_slots):
            if not self.grid.contains(slot, margin=margin):
                errors.append(
                    f"Parking slot[{i}] at ({slot.x}, {slot.y}) "
                    f"is more than one block outside the road grid"
                )

        for i, event in enumerate(self.demand.manual_events):
            if event.time_s > self.config.duration_s:
                errors.append(
                    f"Manual event[{i}] at {event.time_s}s is after the end "
                    f"of the run ({self.config.duration_s}s)"
                )

        if errors:
            raise ValueError(
                f"Scenario validation failed with {len(errors)} error(s):\n"
                + "\n".join(f"  - {e}" for e in errors)
            )

        return self

    @property
    def house_count(self) -> int:
        """Number of houses the town layout produces."""
        return (
            self.grid.blocks_x * self.town.lots_x
            * self.grid.blocks_y * self.town.lots_y
        )

    def summary(self) -> str:
        """Generate human-readable scenario summary."""
        lines = [
            f"Scenario: {self.name}",
            f"  Duration: {self.config.duration_s} s "
            f"({self.config.frame_count} frames)",
            f"  Grid: {self.grid.blocks_x}x{self.grid.blocks_y} blocks "
            f"of {self.grid.block_size}",
            f"  Houses: {self.house_count}",
            f"  Ambulances: {self.hospital.fleet_size}",
            f"  On-scene time: {self.hospital.on_scene_duration_s} s",
            f"  Demand mode: {self.demand.mode.value}",
        ]

        if self.demand.mode == DemandMode.MANUAL:
            lines.append(f"  Manual events: {len(self.demand.manual_events)}")
        else:
            lines.append(
                f"  Arrival rate: {self.demand.rate_based.rate_per_minute}/min"
            )

        return "\n".join(lines)

    model_config = {"extra": "forbid"}


def default_scenario() -> Scenario:
    """The single-hospital 3x3 town with a short burst of calls."""
    calls = [
        (1.0, "Alice Moreno", "34", Severity.CRITICAL, "Chest pain", "14"),
        (1.0, "Ben Okafor", "71", Severity.NORMAL, "Fall at home", "52"),
        (3.0, "Chloe Lindqvist", "8", Severity.HIGH, "Allergic reaction", "29"),
        (4.0, "Dev Raman", "45", Severity.CRITICAL, "Unconscious", "40"),
        (4.0, "Eve Hart", "63", Severity.HIGH, "Breathing difficulty", "7"),
        (6.0, "Farid Nasser", "22", Severity.NORMAL, "Sprained ankle", "33"),
    ]
    return Scenario(
        name="Default town",
        description="One hospital, four ambulances, six calls in the first seconds",
        demand=DemandConfiguration(
            mode=DemandMode.MANUAL,
            manual_events=[
                ScriptedEmergency(
                    time_s=t,
                    patient_name=name,
                    age=age,
                    severity=sev.value,
                    description=desc,
                    house_number=house,
                )
                for t, name, age, sev, desc, house in calls
            ],
        ),
        config=SimulationConfig(duration_s=60.0),
    )


def load_scenario(path: str) -> Scenario:
    """Load and validate a scenario from JSON file.

    Args:
        path: Path to scenario JSON file

    Returns:
        Validated Scenario instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If JSON doesn't match schema
    """
    import json
    from pathlib import Path

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(file_path) as f:
        data = json.load(f)

    return Scenario.model_validate(data)


def save_scenario(scenario: Scenario, path: str, indent: int = 2) -> None:
    """Save a scenario to JSON file."""
    from pathlib import Path

    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, "w") as f:
        f.write(scenario.model_dump_json(indent=indent))
