"""Enumeration types for the ambulance fleet schema"""

from enum import Enum


class Severity(str, Enum):
    """Severity labels offered by the intake form"""

    NORMAL = "Normal"
    """Stable patient, no immediate threat"""

    HIGH = "High"
    """Serious condition, needs prompt response"""

    CRITICAL = "Critical"
    """Life-threatening, dispatch ahead of everything else"""


class Priority(int, Enum):
    """Dispatch priority levels (lower number = more urgent)"""

    CRITICAL = 1
    """P1 - Immediate, life-threatening"""

    HIGH = 2
    """P2 - Urgent but not immediately life-threatening"""

    NORMAL = 3
    """P3 - Routine response"""


def priority_for_severity(label: str) -> Priority:
    """Map a severity label to its dispatch priority.

    Matching is exact: "Critical" -> P1, "High" -> P2, any other
    label (including unknown ones) -> P3.
    """
    if label == Severity.CRITICAL.value:
        return Priority.CRITICAL
    if label == Severity.HIGH.value:
        return Priority.HIGH
    return Priority.NORMAL


class VehicleStatus(str, Enum):
    """Lifecycle state of an ambulance"""

    IDLE = "idle"
    """Parked at the hospital, available for dispatch"""

    TO_SCENE = "to_scene"
    """Driving to an assigned emergency"""

    ON_SCENE = "on_scene"
    """Stationary at the emergency, dwell timer running"""

    RETURNING = "returning"
    """Driving back to its parking slot"""

    @property
    def label(self) -> str:
        """Short display label."""
        return _STATUS_LABELS[self]

    @property
    def has_assignment(self) -> bool:
        """Whether a vehicle in this state carries an emergency assignment."""
        return self in (VehicleStatus.TO_SCENE, VehicleStatus.ON_SCENE)


_STATUS_LABELS = {
    VehicleStatus.IDLE: "IDLE",
    VehicleStatus.TO_SCENE: "EN ROUTE",
    VehicleStatus.ON_SCENE: "ON SCENE",
    VehicleStatus.RETURNING: "RETURNING",
}


class DemandMode(str, Enum):
    """How demand is generated in a headless run"""

    MANUAL = "manual"
    """Scripted intake forms at exact times"""

    RATE_BASED = "rate_based"
    """Stochastic arrivals (Poisson process) at random houses"""


class EventType(str, Enum):
    """Types of events recorded in the simulation log"""

    # Intake
    EMERGENCY_RECEIVED = "emergency_received"
    INTAKE_REJECTED = "intake_rejected"

    # Vehicle lifecycle
    VEHICLE_DISPATCHED = "vehicle_dispatched"
    VEHICLE_ARRIVED = "vehicle_arrived"
    SCENE_CLEARED = "scene_cleared"
    VEHICLE_RETURNED = "vehicle_returned"

    # System events
    SIMULATION_STARTED = "simulation_started"
    SIMULATION_ENDED = "simulation_ended"
