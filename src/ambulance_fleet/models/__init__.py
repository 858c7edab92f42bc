"""Pydantic schema models for ambulance fleet scenarios"""

from ambulance_fleet.models.enums import (
    DemandMode,
    EventType,
    Priority,
    Severity,
    VehicleStatus,
    priority_for_severity,
)
from ambulance_fleet.models.network import Coordinates, GridSpec, TownLayout
from ambulance_fleet.models.vehicles import HospitalConfig, VehicleSpec
from ambulance_fleet.models.demand import DemandConfiguration, RateBasedDemand, ScriptedEmergency
from ambulance_fleet.models.scenario import Scenario, SimulationConfig, default_scenario

__all__ = [
    # Enums
    "DemandMode",
    "EventType",
    "Priority",
    "Severity",
    "VehicleStatus",
    "priority_for_severity",
    # Network
    "Coordinates",
    "GridSpec",
    "TownLayout",
    # Fleet
    "HospitalConfig",
    "VehicleSpec",
    # Demand
    "DemandConfiguration",
    "RateBasedDemand",
    "ScriptedEmergency",
    # Scenario
    "Scenario",
    "SimulationConfig",
    "default_scenario",
]
