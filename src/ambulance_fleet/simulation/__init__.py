"""Dispatch engine, vehicle state machine and headless runner."""

from ambulance_fleet.simulation.ambulance import Ambulance, Transition, VehicleSnapshot
from ambulance_fleet.simulation.emergency import Emergency, PatientRecord
from ambulance_fleet.simulation.events import EmergencyRecord, EventLog, SimEvent
from ambulance_fleet.simulation.hospital import Hospital
from ambulance_fleet.simulation.intake import IntakeForm, submit_form, validate_form
from ambulance_fleet.simulation.town import House, Town
from ambulance_fleet.simulation.engine import SimulationEngine

__all__ = [
    "Ambulance",
    "EmergencyRecord",
    "Emergency",
    "EventLog",
    "Hospital",
    "House",
    "IntakeForm",
    "PatientRecord",
    "SimEvent",
    "SimulationEngine",
    "Town",
    "Transition",
    "VehicleSnapshot",
    "submit_form",
    "validate_form",
]
