"""Simulation event logging and tracking.

All simulation events are recorded to an EventLog, which can be
queried for KPI calculation and exported for analysis.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ambulance_fleet.models.enums import EventType, Priority

ACTIVITY_FEED_SIZE = 8


@dataclass
class SimEvent:
    """A single simulation event.

    Events are the atomic units of simulation output. Each event
    records what happened, when, where, and to whom.
    """

    time_s: float
    """Simulation time when event occurred (seconds from start)"""

    event_type: EventType
    """Category of event"""

    entity_id: str
    """ID of primary entity involved (ambulance, emergency, etc.)"""

    location: Optional[str] = None
    """House number or named place where the event occurred"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional event-specific data"""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialisation."""
        return {
            "time_s": self.time_s,
            "event_type": self.event_type.value,
            "entity_id": self.entity_id,
            "location": self.location,
            **self.details,
        }


@dataclass
class EmergencyRecord:
    """Tracks an emergency from intake to scene clearance.

    Created at intake, updated on dispatch and arrival, closed when
    the ambulance leaves the scene.
    """

    id: int
    """Emergency id issued by the hospital"""

    priority: Priority
    """Dispatch priority"""

    severity: str
    """Severity label as entered"""

    patient_name: str
    """Patient name"""

    location_id: Optional[int]
    """House number of the emergency"""

    time_received: float
    """When the hospital accepted the call (sim seconds)"""

    # Timestamps for KPI calculation
    time_dispatched: Optional[float] = None
    """When an ambulance was assigned"""

    time_on_scene: Optional[float] = None
    """When the ambulance arrived"""

    time_cleared: Optional[float] = None
    """When the ambulance left the scene"""

    # Tracking
    dispatched_vehicle: Optional[int] = None
    """Ambulance id that responded"""

    @property
    def wait_time_s(self) -> Optional[float]:
        """Time from intake to dispatch."""
        if self.time_dispatched is not None:
            return self.time_dispatched - self.time_received
        return None

    @property
    def response_time_s(self) -> Optional[float]:
        """Time from intake to arrival on scene."""
        if self.time_on_scene is not None:
            return self.time_on_scene - self.time_received
        return None

    @property
    def total_time_s(self) -> Optional[float]:
        """Time from intake to scene clearance."""
        if self.time_cleared is not None:
            return self.time_cleared - self.time_received
        return None


class EventLog:
    """Collects and manages simulation events.

    The EventLog is the primary output of a simulation run.
    It can be queried for specific event types, filtered by
    time range, and exported for analysis.
    """

    def __init__(self):
        self._events: list[SimEvent] = []
        self._emergencies: dict[int, EmergencyRecord] = {}

    def log(self, event: SimEvent) -> None:
        """Record an event."""
        self._events.append(event)

    def log_event(
        self,
        time_s: float,
        event_type: EventType,
        entity_id: str,
        location: Optional[str] = None,
        **details: Any,
    ) -> SimEvent:
        """Convenience method to create and log an event."""
        event = SimEvent(
            time_s=time_s,
            event_type=event_type,
            entity_id=entity_id,
            location=location,
            details=details,
        )
        self.log(event)
        return event

    # === Emergency Tracking ===

    def open_emergency(
        self,
        emergency_id: int,
        priority: Priority,
        severity: str,
        patient_name: str,
        location_id: Optional[int],
        time_received: float,
    ) -> EmergencyRecord:
        """Create and register the record for a newly received emergency."""
        record = EmergencyRecord(
            id=emergency_id,
            priority=Priority(priority),
            severity=severity,
            patient_name=patient_name,
            location_id=location_id,
            time_received=time_received,
        )
        self._emergencies[emergency_id] = record
        return record

    def get_emergency(self, emergency_id: int) -> Optional[EmergencyRecord]:
        """Retrieve an emergency record by id."""
        return self._emergencies.get(emergency_id)

    @property
    def emergencies(self) -> list[EmergencyRecord]:
        """All registered emergencies, in intake order."""
        return list(self._emergencies.values())

    # === Event Queries ===

    @property
    def events(self) -> list[SimEvent]:
        """All events in chronological order."""
        return sorted(self._events, key=lambda e: e.time_s)

    def recent(self, limit: int = ACTIVITY_FEED_SIZE) -> list[SimEvent]:
        """Newest events first, at most ``limit`` of them."""
        if limit <= 0:
            return []
        return list(reversed(self._events[-limit:]))

    def filter_by_type(self, event_type: EventType) -> list[SimEvent]:
        """Get events of a specific type."""
        return [e for e in self._events if e.event_type == event_type]

    def filter_by_entity(self, entity_id: str) -> list[SimEvent]:
        """Get events for a specific entity."""
        return [e for e in self._events if e.entity_id == entity_id]

    def filter_by_time(
        self,
        start_s: float = 0,
        end_s: Optional[float] = None,
    ) -> list[SimEvent]:
        """Get events within a time range."""
        events = [e for e in self._events if e.time_s >= start_s]
        if end_s is not None:
            events = [e for e in events if e.time_s <= end_s]
        return events

    # === Export ===

    def to_list(self) -> list[dict[str, Any]]:
        """Export all events as list of dicts."""
        return [e.to_dict() for e in self.events]

    def to_dataframe(self):
        """Export events to pandas DataFrame."""
        import pandas as pd
        return pd.DataFrame(self.to_list())

    def emergencies_to_dataframe(self):
        """Export emergency tracking to DataFrame."""
        import pandas as pd

        columns = [
            "id", "priority", "severity", "patient_name", "location_id",
            "time_received", "time_dispatched", "time_on_scene", "time_cleared",
            "dispatched_vehicle", "wait_time_s", "response_time_s", "total_time_s",
        ]
        records = []
        for rec in self._emergencies.values():
            records.append({
                "id": rec.id,
                "priority": rec.priority.value,
                "severity": rec.severity,
                "patient_name": rec.patient_name,
                "location_id": rec.location_id,
                "time_received": rec.time_received,
                "time_dispatched": rec.time_dispatched,
                "time_on_scene": rec.time_on_scene,
                "time_cleared": rec.time_cleared,
                "dispatched_vehicle": rec.dispatched_vehicle,
                "wait_time_s": rec.wait_time_s,
                "response_time_s": rec.response_time_s,
                "total_time_s": rec.total_time_s,
            })

        return pd.DataFrame(records, columns=columns)

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return (
            f"EventLog({len(self._events)} events, "
            f"{len(self._emergencies)} emergencies)"
        )


def emergency_entity(emergency_id: int) -> str:
    """Event-log entity id for an emergency."""
    return f"EM_{emergency_id:04d}"


def vehicle_entity(vehicle_id: int) -> str:
    """Event-log entity id for an ambulance."""
    return f"AMB_{vehicle_id:02d}"
