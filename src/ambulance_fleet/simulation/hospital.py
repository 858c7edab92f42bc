"""Dispatch engine: the hospital, its intake queue and its fleet.

The hospital owns every piece of mutable simulation state. Callers
submit emergencies and advance time with ``tick``; everything they
read back is a snapshot.

One tick runs three phases in order:
1. Assignment pass - pending emergencies, most urgent first, each take
   the nearest idle ambulance. Emergencies with no idle ambulance stay
   queued for the next tick.
2. Movement - every ambulance advances along its route.
3. Reconciliation - arrivals, scene clearances and returns are applied.
"""

import heapq
import logging
from dataclasses import replace
from typing import Optional

from ambulance_fleet.models.enums import EventType, Priority, VehicleStatus
from ambulance_fleet.models.network import Coordinates
from ambulance_fleet.models.vehicles import HospitalConfig
from ambulance_fleet.routing.planner import PathPlanner
from ambulance_fleet.simulation.ambulance import Ambulance, Transition, VehicleSnapshot
from ambulance_fleet.simulation.emergency import Emergency, PatientRecord, QueuedEmergency
from ambulance_fleet.simulation.events import EventLog, emergency_entity, vehicle_entity

logger = logging.getLogger(__name__)


class Hospital:
    """Single-hospital dispatch engine.

    Usage:
        hospital = Hospital(HospitalConfig(), planner)
        hospital.submit_emergency("Ada", 40, "Critical", "", 12, doorstep)
        hospital.tick(1 / 60)
    """

    def __init__(
        self,
        config: HospitalConfig,
        planner: PathPlanner,
        hospital_id: int = 0,
        event_log: Optional[EventLog] = None,
    ):
        self.config = config
        self.planner = planner
        self.hospital_id = hospital_id
        self.event_log = event_log if event_log is not None else EventLog()

        self.location: Coordinates = config.location
        self.on_scene_duration_s: float = config.on_scene_duration_s

        # Simulation clock (seconds), advanced by tick()
        self.now: float = 0.0

        self._ambulances: list[Ambulance] = [
            Ambulance(id=config.first_vehicle_id + i, parking=slot, spec=config.vehicle)
            for i, slot in enumerate(config.parking_slots)
        ]

        # Pending emergencies (priority heap)
        self._queue: list[QueuedEmergency] = []
        self._next_emergency_id: int = 1
        self._handled_count: int = 0

    # === Intake ===

    def receive_emergency(self, incoming: Emergency) -> int:
        """Accept an emergency and queue it.

        The caller resolves patient details, location and priority.
        The hospital issues the id, stamps the intake time and tags
        itself as the assigned hospital. A plain integer priority is
        accepted and stored as ``Priority``.
        """
        emergency = replace(
            incoming,
            priority=Priority(incoming.priority),
            id=self._next_emergency_id,
            created_at=self.now,
            assigned_hospital=self.hospital_id,
        )
        self._next_emergency_id += 1
        heapq.heappush(self._queue, QueuedEmergency.wrap(emergency))

        self.event_log.open_emergency(
            emergency_id=emergency.id,
            priority=emergency.priority,
            severity=emergency.patient.severity,
            patient_name=emergency.patient.name,
            location_id=emergency.patient.house_number,
            time_received=self.now,
        )
        self.event_log.log_event(
            time_s=self.now,
            event_type=EventType.EMERGENCY_RECEIVED,
            entity_id=emergency_entity(emergency.id),
            location=_location_label(emergency.patient.house_number),
            patient=emergency.patient.name,
            severity=emergency.patient.severity,
            priority=emergency.priority.value,
        )
        logger.info(
            "Emergency %d received: %s (%s) at house %s",
            emergency.id,
            emergency.patient.name,
            emergency.patient.severity,
            emergency.patient.house_number,
        )
        return emergency.id

    def submit_emergency(
        self,
        patient_name: str,
        age: int,
        severity: str,
        description: str,
        location_id: Optional[int],
        location: Coordinates,
    ) -> int:
        """Build an emergency from resolved intake fields and queue it."""
        patient = PatientRecord(
            name=patient_name,
            age=age,
            severity=severity,
            description=description,
            house_number=location_id,
        )
        return self.receive_emergency(Emergency.from_patient(patient, location))

    # === Tick ===

    def tick(self, elapsed_s: float) -> None:
        """Advance the simulation by one frame."""
        if elapsed_s < 0:
            raise ValueError(f"Elapsed time must be >= 0, got {elapsed_s}")

        self.dispatch_vehicles()
        self.now += elapsed_s
        self.advance_vehicles(elapsed_s)
        self.update_after_movement(elapsed_s)

    def dispatch_vehicles(self) -> list[tuple[int, int]]:
        """Assignment pass over the whole pending queue.

        Emergencies are taken in (priority, intake time) order. Each one
        goes to the nearest available ambulance; if none is left it is
        kept, and the queue is rebuilt from what remains.

        Returns:
            (emergency id, ambulance id) pairs assigned in this pass
        """
        if not self._queue:
            return []

        assignments = []
        backlog = []
        for entry in sorted(self._queue):
            emergency = entry.emergency
            ambulance = self._find_nearest_available(emergency.location)
            if ambulance is None:
                backlog.append(entry)
                continue

            route = self.planner.plan_route(ambulance.position, emergency.location)
            ambulance.dispatch(emergency, route)
            assignments.append((emergency.id, ambulance.id))
            self._record_dispatch(emergency, ambulance)

        # A sorted list is already a valid heap
        self._queue = backlog
        if backlog:
            logger.debug(
                "%d emergencies deferred at t=%.2fs, no idle ambulance",
                len(backlog),
                self.now,
            )
        return assignments

    def advance_vehicles(self, elapsed_s: float) -> None:
        """Movement phase."""
        for ambulance in self._ambulances:
            ambulance.advance(elapsed_s)

    def update_after_movement(self, elapsed_s: float) -> list[Transition]:
        """Reconciliation phase: apply each ambulance's due transition."""
        transitions = []
        for ambulance in self._ambulances:
            transition = ambulance.update_after_movement(
                elapsed_s, self.planner, self.on_scene_duration_s
            )
            if transition is not None:
                transitions.append(transition)
                self._record_transition(transition)
        return transitions

    def _find_nearest_available(self, target: Coordinates) -> Optional[Ambulance]:
        """Closest idle ambulance to ``target``; lowest fleet index wins ties."""
        best = None
        best_distance = float("inf")
        for ambulance in self._ambulances:
            if not ambulance.is_available:
                continue
            dist = ambulance.position.distance_to(target)
            if dist < best_distance:
                best_distance = dist
                best = ambulance
        return best

    # === Event recording ===

    def _record_dispatch(self, emergency: Emergency, ambulance: Ambulance) -> None:
        record = self.event_log.get_emergency(emergency.id)
        if record is not None:
            record.time_dispatched = self.now
            record.dispatched_vehicle = ambulance.id

        self.event_log.log_event(
            time_s=self.now,
            event_type=EventType.VEHICLE_DISPATCHED,
            entity_id=vehicle_entity(ambulance.id),
            location=_location_label(emergency.patient.house_number),
            emergency_id=emergency.id,
            priority=emergency.priority.value,
            route_length=self.planner.route_length(ambulance.route),
        )
        logger.info(
            "Ambulance %d dispatched to emergency %d (P%d, house %s)",
            ambulance.id,
            emergency.id,
            emergency.priority.value,
            emergency.patient.house_number,
        )

    def _record_transition(self, transition: Transition) -> None:
        record = None
        if transition.emergency_id is not None:
            record = self.event_log.get_emergency(transition.emergency_id)

        if transition.to_status is VehicleStatus.ON_SCENE:
            event_type = EventType.VEHICLE_ARRIVED
            if record is not None:
                record.time_on_scene = self.now
        elif transition.to_status is VehicleStatus.RETURNING:
            event_type = EventType.SCENE_CLEARED
            self._handled_count += 1
            if record is not None:
                record.time_cleared = self.now
        else:
            event_type = EventType.VEHICLE_RETURNED

        self.event_log.log_event(
            time_s=self.now,
            event_type=event_type,
            entity_id=vehicle_entity(transition.vehicle_id),
            location=_location_label(transition.location_id),
            emergency_id=transition.emergency_id,
        )
        logger.info(
            "Ambulance %d: %s -> %s",
            transition.vehicle_id,
            transition.from_status.label,
            transition.to_status.label,
        )

    # === Queries ===

    @property
    def vehicles(self) -> list[VehicleSnapshot]:
        """Snapshot of the fleet in fleet order."""
        return [ambulance.snapshot() for ambulance in self._ambulances]

    def get_vehicle(self, vehicle_id: int) -> Optional[VehicleSnapshot]:
        for ambulance in self._ambulances:
            if ambulance.id == vehicle_id:
                return ambulance.snapshot()
        return None

    def pending_snapshot(self) -> list[Emergency]:
        """Pending emergencies in dispatch order, without touching the queue."""
        return [entry.emergency for entry in sorted(self._queue)]

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def handled_count(self) -> int:
        """Emergencies whose scene has been cleared."""
        return self._handled_count

    @property
    def total_received(self) -> int:
        return self._next_emergency_id - 1

    @property
    def next_emergency_id(self) -> int:
        return self._next_emergency_id

    @property
    def fleet_size(self) -> int:
        return len(self._ambulances)

    def status_counts(self) -> dict[VehicleStatus, int]:
        """Number of ambulances in each status; always sums to the fleet size."""
        counts = {status: 0 for status in VehicleStatus}
        for ambulance in self._ambulances:
            counts[ambulance.status] += 1
        return counts

    def summary(self) -> str:
        """One-line dashboard text."""
        return (
            f"Total Emergencies: {self.total_received} | "
            f"Handled: {self.handled_count} | "
            f"Pending: {self.pending_count}"
        )


def _location_label(location_id: Optional[int]) -> Optional[str]:
    return None if location_id is None else str(location_id)
