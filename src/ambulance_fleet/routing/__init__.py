"""Road lattice model and route planner."""

from ambulance_fleet.routing.grid import GridRoadModel
from ambulance_fleet.routing.planner import PathPlanner

__all__ = [
    "GridRoadModel",
    "PathPlanner",
]
