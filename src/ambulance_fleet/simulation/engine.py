"""SimPy-driven headless simulation engine.

This module contains the SimulationEngine class that:
1. Builds the road grid, town and hospital from a scenario
2. Starts demand processes that post intake forms to an inbox
3. Runs a frame clock that drains the inbox and ticks the hospital
4. Returns the event log for analysis
"""

import logging
import random
from typing import Generator, Optional

import simpy

from ambulance_fleet.exceptions import IntakeValidationError
from ambulance_fleet.models import DemandMode, Scenario
from ambulance_fleet.models.demand import RateBasedDemand
from ambulance_fleet.models.enums import EventType
from ambulance_fleet.routing import GridRoadModel, PathPlanner
from ambulance_fleet.simulation.events import EventLog
from ambulance_fleet.simulation.hospital import Hospital
from ambulance_fleet.simulation.intake import IntakeForm, submit_form
from ambulance_fleet.simulation.town import Town

logger = logging.getLogger(__name__)

PATIENT_FIRST_NAMES = [
    "Alex", "Sam", "Jordan", "Riley", "Morgan", "Casey", "Jamie", "Taylor",
]


class SimulationEngine:
    """Runs a scenario without a display.

    The frame clock is a simpy process stepping ``frame_dt_s`` at a time.
    Each frame first submits every form that arrived since the previous
    frame, then calls ``Hospital.tick`` once, so a call received in a
    frame is eligible for that frame's assignment pass.

    Usage:
        scenario = load_scenario("my_scenario.json")
        engine = SimulationEngine(scenario)
        event_log = engine.run()
    """

    def __init__(self, scenario: Scenario):
        self.scenario = scenario
        self.event_log = EventLog()

        # SimPy environment
        self.env: simpy.Environment = None

        # World
        self.grid: GridRoadModel = None
        self.planner: PathPlanner = None
        self.town: Town = None
        self.hospital: Hospital = None

        # Forms posted by demand processes, drained once per frame
        self.inbox: simpy.Store = None

        self.frames_run: int = 0
        self.rejected_forms: int = 0

        # Random state
        self._rng: random.Random = None

    def run(self) -> EventLog:
        """Execute the simulation and return event log."""
        self._setup()

        self.event_log.log_event(
            time_s=0.0,
            event_type=EventType.SIMULATION_STARTED,
            entity_id="SYSTEM",
            duration_s=self.scenario.config.duration_s,
            frame_dt_s=self.scenario.config.frame_dt_s,
            seed=self.scenario.config.random_seed,
            fleet_size=self.hospital.fleet_size,
        )
        logger.info("Simulation started: %s", self.scenario.name)

        self.env.run(until=self.scenario.config.duration_s)

        # Forms that arrived after the last frame never reach the hospital
        unprocessed = len(self.inbox.items)

        self.event_log.log_event(
            time_s=self.hospital.now,
            event_type=EventType.SIMULATION_ENDED,
            entity_id="SYSTEM",
            frames=self.frames_run,
            total_events=len(self.event_log),
            received=self.hospital.total_received,
            handled=self.hospital.handled_count,
            pending=self.hospital.pending_count,
            rejected=self.rejected_forms,
            unprocessed=unprocessed,
        )
        logger.info("Simulation ended: %s", self.hospital.summary())

        return self.event_log

    def _setup(self) -> None:
        """Initialise all simulation components."""
        self._rng = random.Random(self.scenario.config.random_seed)
        self.env = simpy.Environment()

        self.grid = GridRoadModel(self.scenario.grid)
        self.planner = PathPlanner(self.grid)
        self.town = Town(self.scenario.grid, self.scenario.town)
        self.hospital = Hospital(
            self.scenario.hospital,
            self.planner,
            event_log=self.event_log,
        )
        self.inbox = simpy.Store(self.env)

        self._start_demand_generators()
        self.env.process(self._frame_clock())

    def _start_demand_generators(self) -> None:
        demand = self.scenario.demand
        if demand.mode == DemandMode.MANUAL:
            self.env.process(self._manual_demand_generator())
        elif demand.mode == DemandMode.RATE_BASED:
            self.env.process(self._rate_based_generator(demand.rate_based))

    # === Frame clock ===

    def _frame_clock(self) -> Generator:
        """One hospital tick per frame until the run ends."""
        dt = self.scenario.config.frame_dt_s
        for _ in range(self.scenario.config.frame_count):
            # Submit everything posted since the previous frame
            while self.inbox.items:
                form = yield self.inbox.get()
                self._submit(form)
            self.hospital.tick(dt)
            self.frames_run += 1
            yield self.env.timeout(dt)

    def _submit(self, form: IntakeForm) -> Optional[int]:
        try:
            return submit_form(self.hospital, self.town, form)
        except IntakeValidationError as e:
            self.rejected_forms += 1
            self.event_log.log_event(
                time_s=self.hospital.now,
                event_type=EventType.INTAKE_REJECTED,
                entity_id="INTAKE",
                location=form.house_number or None,
                patient=form.patient_name,
                errors=e.field_errors,
            )
            return None

    # === Demand Generators ===

    def _manual_demand_generator(self) -> Generator:
        """Post scripted forms at their scheduled times."""
        events = sorted(
            self.scenario.demand.manual_events,
            key=lambda e: e.time_s
        )

        for event in events:
            if event.time_s > self.env.now:
                yield self.env.timeout(event.time_s - self.env.now)
            yield self.inbox.put(IntakeForm(**event.form_fields()))

    def _rate_based_generator(self, config: RateBasedDemand) -> Generator:
        """Post random forms from a Poisson process."""
        if config.active_from_s > 0:
            yield self.env.timeout(config.active_from_s)

        mean_interval = 60.0 / config.rate_per_minute  # seconds
        end_time = config.active_until_s or self.scenario.config.duration_s
        call_number = 0

        while self.env.now < end_time:
            interval = self._rng.expovariate(1.0 / mean_interval)
            yield self.env.timeout(interval)

            if self.env.now >= end_time:
                break

            call_number += 1
            yield self.inbox.put(self._random_form(config, call_number))

    def _random_form(self, config: RateBasedDemand, call_number: int) -> IntakeForm:
        labels = list(config.severity_weights.keys())
        weights = list(config.severity_weights.values())
        severity = self._rng.choices(labels, weights=weights, k=1)[0]
        house = self.town.random_house(self._rng)
        first = self._rng.choice(PATIENT_FIRST_NAMES)
        return IntakeForm(
            patient_name=f"{first} {call_number:03d}",
            age=str(self._rng.randint(1, 95)),
            severity=severity,
            description="Generated call",
            house_number=str(house.id),
        )

    # === Statistics ===

    def get_vehicle_stats(self) -> dict[int, dict]:
        """Per-ambulance statistics at the end of a run."""
        stats = {}
        for snapshot in self.hospital.vehicles:
            stats[snapshot.id] = {
                "status": snapshot.status.value,
                "missions_completed": snapshot.missions_completed,
                "position": snapshot.position.as_tuple(),
            }
        return stats
