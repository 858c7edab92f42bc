"""Ambulance runtime state and its lifecycle state machine.

An ambulance cycles IDLE -> TO_SCENE -> ON_SCENE -> RETURNING -> IDLE.
Only the dispatch step (IDLE -> TO_SCENE) is triggered from outside;
the hospital drives the other transitions once per tick through
``update_after_movement`` after every vehicle has moved.
"""

from dataclasses import dataclass, field
from typing import Optional

from ambulance_fleet.models.enums import VehicleStatus
from ambulance_fleet.models.network import Coordinates
from ambulance_fleet.models.vehicles import VehicleSpec
from ambulance_fleet.routing.planner import PathPlanner
from ambulance_fleet.simulation.emergency import Emergency

WAYPOINT_RADIUS = 3.0
"""Within this distance a waypoint counts as reached (world units)."""

ARRIVAL_RADIUS = 4.0
"""Within this distance of a destination the vehicle has arrived."""

DWELL_EPSILON = 1e-9
"""Dwell time left at or below this counts as elapsed (seconds)."""


@dataclass(frozen=True)
class VehicleSnapshot:
    """Point-in-time copy of an ambulance for display."""

    id: int
    position: Coordinates
    parking: Coordinates
    status: VehicleStatus
    route: tuple[Coordinates, ...]
    route_index: int
    emergency_id: Optional[int]
    patient_name: Optional[str]
    location_id: Optional[int]
    on_scene_remaining_s: float
    missions_completed: int

    @property
    def status_label(self) -> str:
        return self.status.label


@dataclass(frozen=True)
class Transition:
    """A status change made during reconciliation."""

    vehicle_id: int
    from_status: VehicleStatus
    to_status: VehicleStatus
    emergency_id: Optional[int] = None
    location_id: Optional[int] = None
    position: Optional[Coordinates] = None


@dataclass
class Ambulance:
    """Runtime state for one ambulance."""

    id: int
    parking: Coordinates
    spec: VehicleSpec = field(default_factory=VehicleSpec)

    # Current state
    position: Optional[Coordinates] = None
    status: VehicleStatus = VehicleStatus.IDLE
    route: list[Coordinates] = field(default_factory=list)
    route_index: int = 0
    on_scene_timer: float = 0.0

    # Assignment (None while not TO_SCENE / ON_SCENE)
    assigned_emergency_id: Optional[int] = None
    assigned_patient_name: Optional[str] = None
    assigned_location_id: Optional[int] = None

    # Statistics
    missions_completed: int = 0
    distance_travelled: float = 0.0

    def __post_init__(self):
        if self.position is None:
            self.position = self.parking

    # === State queries ===

    @property
    def busy(self) -> bool:
        return self.status is not VehicleStatus.IDLE

    @property
    def is_available(self) -> bool:
        """Idle and free to take a new emergency."""
        return not self.busy

    @property
    def has_assignment(self) -> bool:
        return self.assigned_emergency_id is not None

    @property
    def route_exhausted(self) -> bool:
        return self.route_index >= len(self.route)

    @property
    def destination(self) -> Optional[Coordinates]:
        return self.route[-1] if self.route else None

    def describe(self) -> str:
        """One-line status detail for the fleet panel."""
        if self.status is VehicleStatus.IDLE:
            return "Ready for dispatch"
        if self.status is VehicleStatus.TO_SCENE:
            return f"En route to house #{self.assigned_location_id}"
        if self.status is VehicleStatus.ON_SCENE:
            return f"On scene at house #{self.assigned_location_id}"
        return "Returning to hospital"

    def snapshot(self) -> VehicleSnapshot:
        return VehicleSnapshot(
            id=self.id,
            position=self.position,
            parking=self.parking,
            status=self.status,
            route=tuple(self.route),
            route_index=self.route_index,
            emergency_id=self.assigned_emergency_id,
            patient_name=self.assigned_patient_name,
            location_id=self.assigned_location_id,
            on_scene_remaining_s=(
                max(self.on_scene_timer, 0.0)
                if self.status is VehicleStatus.ON_SCENE else 0.0
            ),
            missions_completed=self.missions_completed,
        )

    # === Transitions ===

    def dispatch(self, emergency: Emergency, route: list[Coordinates]) -> None:
        """IDLE -> TO_SCENE with a freshly planned route."""
        if not self.is_available:
            raise RuntimeError(
                f"Ambulance {self.id} is {self.status.label}, cannot dispatch"
            )
        self.route = list(route)
        self.route_index = 0
        self.status = VehicleStatus.TO_SCENE
        self.on_scene_timer = 0.0
        self.assigned_emergency_id = emergency.id
        self.assigned_patient_name = emergency.patient.name
        self.assigned_location_id = emergency.patient.house_number

    def update_after_movement(
        self,
        elapsed_s: float,
        planner: PathPlanner,
        on_scene_duration_s: float,
    ) -> Optional[Transition]:
        """Apply the transition due for the current status, if any."""
        if self.status is VehicleStatus.TO_SCENE:
            if self.route_exhausted or self.position.distance_to(self.route[-1]) < ARRIVAL_RADIUS:
                self.route_index = len(self.route)
                self.status = VehicleStatus.ON_SCENE
                self.on_scene_timer = on_scene_duration_s
                return self._transition(VehicleStatus.TO_SCENE)

        elif self.status is VehicleStatus.ON_SCENE:
            self.on_scene_timer -= elapsed_s
            # Frame steps such as 1/60 leave rounding residue on the timer
            if self.on_scene_timer <= DWELL_EPSILON:
                transition = self._transition(VehicleStatus.ON_SCENE, VehicleStatus.RETURNING)
                self.route = planner.plan_route(self.position, self.parking)
                self.route_index = 0
                self.status = VehicleStatus.RETURNING
                self.on_scene_timer = 0.0
                self.assigned_emergency_id = None
                self.assigned_patient_name = None
                self.assigned_location_id = None
                self.missions_completed += 1
                return transition

        elif self.status is VehicleStatus.RETURNING:
            if self.position.distance_to(self.parking) < ARRIVAL_RADIUS or self.route_exhausted:
                self.position = self.parking
                self.route = []
                self.route_index = 0
                self.status = VehicleStatus.IDLE
                return self._transition(VehicleStatus.RETURNING)

        return None

    def _transition(
        self,
        from_status: VehicleStatus,
        to_status: Optional[VehicleStatus] = None,
    ) -> Transition:
        return Transition(
            vehicle_id=self.id,
            from_status=from_status,
            to_status=to_status or self.status,
            emergency_id=self.assigned_emergency_id,
            location_id=self.assigned_location_id,
            position=self.position,
        )

    # === Movement ===

    def advance(self, elapsed_s: float) -> None:
        """Move along the current route for one tick."""
        if self.route and not self.route_exhausted:
            target = self.route[self.route_index]
            if self.position.distance_to(target) > WAYPOINT_RADIUS:
                speed = self.spec.speed
                if self.status is VehicleStatus.RETURNING:
                    speed = self.spec.return_speed()
                self._move_toward(target, speed * elapsed_s)
            else:
                self.route_index += 1
        elif self.status is VehicleStatus.IDLE and self.position != self.parking:
            self._move_toward(self.parking, self.spec.drift_speed() * elapsed_s)

    def _move_toward(self, target: Coordinates, step: float) -> None:
        """Move up to ``step`` units toward ``target``, never past it."""
        dist = self.position.distance_to(target)
        if dist == 0.0 or step <= 0.0:
            return
        if step >= dist:
            self.position = target
            self.distance_travelled += dist
            return
        ratio = step / dist
        self.position = Coordinates(
            x=self.position.x + (target.x - self.position.x) * ratio,
            y=self.position.y + (target.y - self.position.y) * ratio,
        )
        self.distance_travelled += step
