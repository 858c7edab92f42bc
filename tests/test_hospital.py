"""Tests for the hospital dispatch engine."""

import pytest

from ambulance_fleet.models import Coordinates, EventType, GridSpec, HospitalConfig, Priority, VehicleStatus
from ambulance_fleet.routing import GridRoadModel, PathPlanner
from ambulance_fleet.simulation.emergency import Emergency, PatientRecord
from ambulance_fleet.simulation.hospital import Hospital

DT = 0.1


@pytest.fixture
def planner():
    return PathPlanner(GridRoadModel(GridSpec()))


@pytest.fixture
def hospital(planner):
    return Hospital(HospitalConfig(), planner)


@pytest.fixture
def single_vehicle_hospital(planner):
    config = HospitalConfig(parking_slots=[Coordinates(x=374, y=30)])
    return Hospital(config, planner)


def submit(hospital, name, severity, location, house=None):
    return hospital.submit_emergency(
        patient_name=name,
        age=30,
        severity=severity,
        description="",
        location_id=house,
        location=location,
    )


def assert_fleet_consistent(hospital):
    counts = hospital.status_counts()
    assert sum(counts.values()) == hospital.fleet_size

    assigned = [
        v.emergency_id for v in hospital.vehicles if v.emergency_id is not None
    ]
    assert len(assigned) == len(set(assigned))

    for vehicle in hospital.vehicles:
        if vehicle.status.has_assignment:
            assert vehicle.emergency_id is not None
        else:
            assert vehicle.emergency_id is None


def run_until_quiet(hospital, max_ticks=20_000):
    """Tick until nothing is pending and every vehicle is idle."""
    for _ in range(max_ticks):
        hospital.tick(DT)
        assert_fleet_consistent(hospital)
        counts = hospital.status_counts()
        if hospital.pending_count == 0 and counts[VehicleStatus.IDLE] == hospital.fleet_size:
            return
    pytest.fail("Fleet did not settle")


class TestIntake:
    def test_ids_strictly_increasing(self, hospital):
        ids = [submit(hospital, f"P{i}", "Normal", Coordinates(x=300, y=300)) for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]
        assert hospital.next_emergency_id == 6
        assert hospital.total_received == 5

    def test_ids_continue_across_ticks(self, hospital):
        first = submit(hospital, "A", "Normal", Coordinates(x=300, y=300))
        hospital.tick(DT)
        second = submit(hospital, "B", "High", Coordinates(x=500, y=300))
        assert second > first

    def test_intake_stamps_emergency(self, hospital):
        hospital.tick(0.5)
        submit(hospital, "Ada", "Critical", Coordinates(x=300, y=300), house=12)
        pending = hospital.pending_snapshot()
        assert len(pending) == 1
        emergency = pending[0]
        assert emergency.id == 1
        assert emergency.created_at == pytest.approx(0.5)
        assert emergency.priority == Priority.CRITICAL
        assert emergency.assigned_hospital == hospital.hospital_id
        assert emergency.patient.house_number == 12

    def test_receive_prebuilt_emergency(self, hospital):
        incoming = Emergency.from_patient(
            PatientRecord(name="Bo", severity="High"),
            Coordinates(x=100, y=100),
        )
        emergency_id = hospital.receive_emergency(incoming)
        assert emergency_id == 1
        assert incoming.id is None
        assert hospital.pending_snapshot()[0].priority == Priority.HIGH

    def test_receive_integer_priority(self, hospital):
        incoming = Emergency(
            patient=PatientRecord(name="Cy", severity="Critical", house_number=4),
            location=Coordinates(x=300, y=300),
            priority=1,
        )
        emergency_id = hospital.receive_emergency(incoming)

        assert emergency_id == 1
        queued = hospital.pending_snapshot()[0]
        assert queued.priority is Priority.CRITICAL
        record = hospital.event_log.get_emergency(1)
        assert record.priority is Priority.CRITICAL
        received = hospital.event_log.filter_by_type(EventType.EMERGENCY_RECEIVED)
        assert received[0].details["priority"] == 1

        hospital.tick(DT)
        assert hospital.event_log.emergencies_to_dataframe()["priority"].tolist() == [1]

    def test_unknown_priority_leaves_state_untouched(self, hospital):
        incoming = Emergency(
            patient=PatientRecord(name="Cy"),
            location=Coordinates(x=300, y=300),
            priority=7,
        )
        with pytest.raises(ValueError):
            hospital.receive_emergency(incoming)

        assert hospital.pending_count == 0
        assert hospital.next_emergency_id == 1
        assert len(hospital.event_log) == 0

    def test_intake_logs_event(self, hospital):
        submit(hospital, "Ada", "Critical", Coordinates(x=300, y=300), house=12)
        events = hospital.event_log.filter_by_type(EventType.EMERGENCY_RECEIVED)
        assert len(events) == 1
        assert events[0].entity_id == "EM_0001"
        assert events[0].location == "12"
        assert hospital.event_log.get_emergency(1).time_received == 0.0


class TestAssignment:
    def test_nearest_vehicle_dispatched_same_tick(self, hospital):
        location = Coordinates(x=600, y=400)
        submit(hospital, "Ada", "Critical", location)

        parked = hospital.vehicles
        nearest = min(parked, key=lambda v: v.position.distance_to(location))

        hospital.tick(DT)

        vehicle = hospital.get_vehicle(nearest.id)
        assert vehicle.status == VehicleStatus.TO_SCENE
        assert vehicle.emergency_id == 1
        assert len(vehicle.route) >= 2
        assert vehicle.route[-1] == location
        assert vehicle.route[0] == nearest.parking
        assert hospital.pending_count == 0

    def test_nearest_tie_goes_to_lowest_fleet_index(self, planner):
        config = HospitalConfig(parking_slots=[
            Coordinates(x=300, y=0),
            Coordinates(x=500, y=0),
        ])
        hospital = Hospital(config, planner)
        submit(hospital, "Ada", "Normal", Coordinates(x=400, y=300))
        assert hospital.dispatch_vehicles() == [(1, 1)]

    def test_two_critical_one_normal_single_vehicle(self, single_vehicle_hospital):
        hospital = single_vehicle_hospital
        normal = submit(hospital, "N", "Normal", Coordinates(x=300, y=300))
        critical_a = submit(hospital, "C1", "Critical", Coordinates(x=500, y=300))
        critical_b = submit(hospital, "C2", "Critical", Coordinates(x=100, y=500))

        assignments = hospital.dispatch_vehicles()

        assert assignments == [(critical_a, 1)]
        pending = hospital.pending_snapshot()
        assert [e.id for e in pending] == [critical_b, normal]
        assert pending[0].priority == Priority.CRITICAL

    def test_priority_order_with_enough_vehicles(self, hospital):
        submit(hospital, "N1", "Normal", Coordinates(x=300, y=300))
        submit(hospital, "H1", "High", Coordinates(x=300, y=500))
        submit(hospital, "N2", "Normal", Coordinates(x=500, y=300))
        submit(hospital, "C1", "Critical", Coordinates(x=500, y=500))
        submit(hospital, "H2", "High", Coordinates(x=700, y=300))
        submit(hospital, "N3", "Normal", Coordinates(x=100, y=700))

        assignments = hospital.dispatch_vehicles()

        assert [emergency_id for emergency_id, _ in assignments] == [4, 2, 5, 1]
        assert [e.id for e in hospital.pending_snapshot()] == [3, 6]

    def test_priority_order_over_whole_run(self, single_vehicle_hospital):
        hospital = single_vehicle_hospital
        severities = ["Normal", "High", "Critical", "Normal", "Critical", "High"]
        for i, severity in enumerate(severities):
            submit(hospital, f"P{i}", severity, Coordinates(x=300, y=300))

        run_until_quiet(hospital)

        dispatched = [
            e.details["priority"]
            for e in hospital.event_log.filter_by_type(EventType.VEHICLE_DISPATCHED)
        ]
        assert dispatched == sorted(dispatched)
        assert dispatched == [1, 1, 2, 2, 3, 3]
        assert hospital.handled_count == 6

    def test_unassigned_emergency_is_not_lost(self, single_vehicle_hospital):
        hospital = single_vehicle_hospital
        submit(hospital, "A", "Normal", Coordinates(x=300, y=300))
        waiting = submit(hospital, "B", "Normal", Coordinates(x=500, y=300))

        for _ in range(5):
            hospital.tick(DT)
            assert [e.id for e in hospital.pending_snapshot()] == [waiting]

    def test_pending_snapshot_does_not_mutate(self, single_vehicle_hospital):
        hospital = single_vehicle_hospital
        for name in ("A", "B", "C"):
            submit(hospital, name, "High", Coordinates(x=300, y=300))

        first = hospital.pending_snapshot()
        second = hospital.pending_snapshot()
        assert first == second
        assert hospital.pending_count == 3

    def test_dispatch_records_event(self, hospital):
        submit(hospital, "Ada", "High", Coordinates(x=300, y=300), house=9)
        hospital.tick(DT)
        events = hospital.event_log.filter_by_type(EventType.VEHICLE_DISPATCHED)
        assert len(events) == 1
        assert events[0].details["emergency_id"] == 1
        record = hospital.event_log.get_emergency(1)
        assert record.time_dispatched == 0.0
        assert record.dispatched_vehicle is not None


class TestTick:
    def test_negative_elapsed_rejected(self, hospital):
        with pytest.raises(ValueError):
            hospital.tick(-0.1)

    def test_zero_elapsed_allowed(self, hospital):
        hospital.tick(0.0)
        assert hospital.now == 0.0

    def test_clock_advances(self, hospital):
        for _ in range(10):
            hospital.tick(DT)
        assert hospital.now == pytest.approx(1.0)

    def test_mission_completes_and_vehicle_parks(self, hospital):
        submit(hospital, "Ada", "Critical", Coordinates(x=600, y=400), house=3)
        hospital.tick(DT)
        vehicle_id = next(v.id for v in hospital.vehicles if v.status != VehicleStatus.IDLE)

        run_until_quiet(hospital)

        vehicle = hospital.get_vehicle(vehicle_id)
        assert vehicle.status == VehicleStatus.IDLE
        assert vehicle.position == vehicle.parking
        assert vehicle.emergency_id is None
        assert vehicle.patient_name is None
        assert vehicle.location_id is None
        assert vehicle.missions_completed == 1
        assert hospital.handled_count == 1

        record = hospital.event_log.get_emergency(1)
        assert record.time_on_scene is not None
        assert record.time_cleared - record.time_on_scene == pytest.approx(4.0, abs=2 * DT)

    def test_all_vehicles_return_to_own_slots(self, hospital):
        locations = [
            Coordinates(x=150, y=650),
            Coordinates(x=650, y=650),
            Coordinates(x=300, y=300),
            Coordinates(x=520, y=180),
            Coordinates(x=410, y=590),
        ]
        for i, location in enumerate(locations):
            submit(hospital, f"P{i}", "High", location)

        run_until_quiet(hospital)

        for vehicle in hospital.vehicles:
            assert vehicle.position == vehicle.parking
        assert hospital.handled_count == len(locations)

    def test_transition_events_in_order(self, hospital):
        submit(hospital, "Ada", "Normal", Coordinates(x=500, y=300))
        run_until_quiet(hospital)

        vehicle_events = [
            e.event_type
            for e in hospital.event_log.events
            if e.entity_id.startswith("AMB_")
        ]
        assert vehicle_events == [
            EventType.VEHICLE_DISPATCHED,
            EventType.VEHICLE_ARRIVED,
            EventType.SCENE_CLEARED,
            EventType.VEHICLE_RETURNED,
        ]


class TestQueries:
    def test_initial_state(self, hospital):
        assert hospital.fleet_size == 4
        assert hospital.pending_count == 0
        assert hospital.handled_count == 0
        assert hospital.location == Coordinates(x=444, y=0)
        assert [v.id for v in hospital.vehicles] == [1, 2, 3, 4]
        assert hospital.status_counts()[VehicleStatus.IDLE] == 4

    def test_unknown_vehicle(self, hospital):
        assert hospital.get_vehicle(99) is None

    def test_fleet_snapshot_is_detached(self, hospital):
        submit(hospital, "Ada", "Critical", Coordinates(x=600, y=400))
        before = hospital.vehicles
        hospital.tick(DT)
        assert all(v.status == VehicleStatus.IDLE for v in before)

    def test_summary(self, single_vehicle_hospital):
        hospital = single_vehicle_hospital
        submit(hospital, "A", "Normal", Coordinates(x=300, y=300))
        submit(hospital, "B", "Normal", Coordinates(x=300, y=300))
        hospital.tick(DT)
        assert hospital.summary() == "Total Emergencies: 2 | Handled: 0 | Pending: 1"
