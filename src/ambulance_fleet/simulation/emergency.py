"""Emergency records and their queue ordering."""

from dataclasses import dataclass, field
from typing import Optional

from ambulance_fleet.models.enums import Priority, priority_for_severity
from ambulance_fleet.models.network import Coordinates


@dataclass(frozen=True)
class PatientRecord:
    """Who needs help and where, as captured at intake."""

    name: str
    age: int = 0
    severity: str = "Normal"
    description: str = ""
    house_number: Optional[int] = None
    """Location identifier the caller gave (house number)"""


@dataclass(frozen=True)
class Emergency:
    """A call waiting for an ambulance.

    Frozen: the hospital stamps ``id``, ``created_at`` and
    ``assigned_hospital`` by building a new instance at intake, and
    snapshots can hand the same object to readers safely.
    """

    patient: PatientRecord
    location: Coordinates
    priority: Priority = Priority.NORMAL
    id: Optional[int] = None
    created_at: float = 0.0
    """Simulation clock at intake (seconds)"""
    assigned_hospital: Optional[int] = None

    @classmethod
    def from_patient(cls, patient: PatientRecord, location: Coordinates) -> "Emergency":
        """Build an unstamped emergency with priority derived from severity."""
        return cls(
            patient=patient,
            location=location,
            priority=priority_for_severity(patient.severity),
        )

    @property
    def sort_key(self) -> tuple[int, float, int]:
        return (int(self.priority), self.created_at, self.id or 0)


@dataclass(order=True)
class QueuedEmergency:
    """Heap entry: ordered by priority, then intake time, then id."""

    priority: int
    created_at: float
    emergency_id: int
    emergency: Emergency = field(compare=False)

    @classmethod
    def wrap(cls, emergency: Emergency) -> "QueuedEmergency":
        priority, created_at, emergency_id = emergency.sort_key
        return cls(priority, created_at, emergency_id, emergency)
