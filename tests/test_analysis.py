"""Tests for the event log and KPI extraction."""

import json

import pytest

from ambulance_fleet.analysis import compute_all_kpis, compute_dispatch_kpis
from ambulance_fleet.models import EventType, Priority
from ambulance_fleet.simulation.events import EventLog, emergency_entity, vehicle_entity


@pytest.fixture
def event_log():
    log = EventLog()

    first = log.open_emergency(1, Priority.CRITICAL, "Critical", "Ada", 12, time_received=0.0)
    first.time_dispatched = 0.0
    first.time_on_scene = 3.0
    first.time_cleared = 7.0
    first.dispatched_vehicle = 2

    second = log.open_emergency(2, Priority.NORMAL, "Normal", "Bo", 40, time_received=1.0)
    second.time_dispatched = 2.0
    second.time_on_scene = 6.0
    second.dispatched_vehicle = 2

    log.open_emergency(3, Priority.HIGH, "High", "Cy", 7, time_received=5.0)

    log.log_event(0.0, EventType.EMERGENCY_RECEIVED, emergency_entity(1), location="12")
    log.log_event(0.0, EventType.VEHICLE_DISPATCHED, vehicle_entity(2), location="12", emergency_id=1)
    log.log_event(1.0, EventType.EMERGENCY_RECEIVED, emergency_entity(2), location="40")
    log.log_event(3.0, EventType.VEHICLE_ARRIVED, vehicle_entity(2), location="12", emergency_id=1)
    log.log_event(2.5, EventType.INTAKE_REJECTED, "INTAKE", errors={"age": "Invalid number"})
    return log


class TestEventLog:
    def test_entity_ids(self):
        assert emergency_entity(7) == "EM_0007"
        assert vehicle_entity(3) == "AMB_03"

    def test_events_sorted_by_time(self, event_log):
        times = [e.time_s for e in event_log.events]
        assert times == sorted(times)

    def test_recent_newest_first(self, event_log):
        recent = event_log.recent(limit=2)
        assert [e.event_type for e in recent] == [
            EventType.INTAKE_REJECTED,
            EventType.VEHICLE_ARRIVED,
        ]
        assert event_log.recent(limit=0) == []
        assert len(event_log.recent()) == 5

    def test_filters(self, event_log):
        assert len(event_log.filter_by_type(EventType.EMERGENCY_RECEIVED)) == 2
        assert len(event_log.filter_by_entity("AMB_02")) == 2
        assert len(event_log.filter_by_time(1.0, 2.5)) == 2

    def test_event_to_dict_flattens_details(self, event_log):
        rows = event_log.to_list()
        dispatched = next(r for r in rows if r["event_type"] == "vehicle_dispatched")
        assert dispatched["emergency_id"] == 1
        assert dispatched["location"] == "12"

    def test_emergency_record_times(self, event_log):
        first = event_log.get_emergency(1)
        assert first.wait_time_s == 0.0
        assert first.response_time_s == 3.0
        assert first.total_time_s == 7.0
        third = event_log.get_emergency(3)
        assert third.wait_time_s is None
        assert third.response_time_s is None

    def test_dataframes(self, event_log):
        events = event_log.to_dataframe()
        assert len(events) == 5
        assert "event_type" in events.columns

        emergencies = event_log.emergencies_to_dataframe()
        assert list(emergencies["id"]) == [1, 2, 3]
        assert "response_time_s" in emergencies.columns

    def test_empty_emergency_dataframe_has_columns(self):
        df = EventLog().emergencies_to_dataframe()
        assert len(df) == 0
        assert "wait_time_s" in df.columns

    def test_open_emergency_coerces_priority(self):
        log = EventLog()
        record = log.open_emergency(1, 2, "High", "Bo", 3, time_received=0.0)
        assert record.priority is Priority.HIGH
        assert log.emergencies_to_dataframe()["priority"].tolist() == [2]

    def test_repr(self, event_log):
        assert repr(event_log) == "EventLog(5 events, 3 emergencies)"


class TestDispatchKPIs:
    def test_counts(self, event_log):
        kpis = compute_dispatch_kpis(event_log)
        assert kpis.total_emergencies == 3
        assert kpis.dispatched == 2
        assert kpis.on_scene == 2
        assert kpis.handled == 1
        assert kpis.pending == 1
        assert kpis.rejected_intake == 1

    def test_times(self, event_log):
        kpis = compute_dispatch_kpis(event_log)
        assert kpis.mean_wait_time == pytest.approx(0.5)
        assert kpis.max_wait_time == pytest.approx(1.0)
        assert kpis.mean_response_time == pytest.approx(4.0)
        assert kpis.max_response_time == pytest.approx(5.0)

    def test_by_priority(self, event_log):
        kpis = compute_dispatch_kpis(event_log)
        assert set(kpis.by_priority) == {1, 2, 3}
        assert kpis.by_priority[1]["mean_response"] == pytest.approx(3.0)
        assert kpis.by_priority[2]["dispatched"] == 0
        assert kpis.by_priority[2]["mean_response"] is None

    def test_missions_by_vehicle(self, event_log):
        kpis = compute_dispatch_kpis(event_log)
        assert kpis.missions_by_vehicle == {2: 2}

    def test_empty_log(self):
        kpis = compute_dispatch_kpis(EventLog())
        assert kpis.total_emergencies == 0
        assert kpis.mean_wait_time is None
        assert "N/A" in kpis.summary()

    def test_all_kpis_json_serialisable(self, event_log):
        data = compute_all_kpis(event_log)
        text = json.dumps(data)
        assert "dispatch" in json.loads(text)

    def test_summary(self, event_log):
        summary = compute_dispatch_kpis(event_log).summary()
        assert "Total:      3" in summary
        assert "P1 (Critical)" in summary
        assert "A2: 2" in summary
