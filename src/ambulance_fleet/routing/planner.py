"""Grid-constrained route planning.

Routes are built constructively rather than searched: both endpoints
are snapped to their nearest intersection and the snapped start is
walked one block at a time toward the snapped end, correcting x
before y. The result is an L-shaped path along road lines that
always exists and is identical for identical inputs.
"""

from ambulance_fleet.models.network import Coordinates
from ambulance_fleet.routing.grid import GridRoadModel

AXIS_EPSILON = 1.0
"""Axis offsets at or below this count as aligned (world units)."""


class PathPlanner:
    """Turns a pair of world points into a drivable waypoint list."""

    def __init__(self, grid: GridRoadModel):
        self.grid = grid

    def lattice_steps(self, start: Coordinates, end: Coordinates) -> list[Coordinates]:
        """Intersections visited between the snapped endpoints, both included."""
        current = self.grid.nearest_intersection(start)
        target = self.grid.nearest_intersection(end)
        step = self.grid.block_size

        steps = [current]
        x, y = current.x, current.y
        while abs(x - target.x) > AXIS_EPSILON or abs(y - target.y) > AXIS_EPSILON:
            if abs(x - target.x) > AXIS_EPSILON:
                x += step if x < target.x else -step
            else:
                y += step if y < target.y else -step
            steps.append(Coordinates(x=x, y=y))
        return steps

    def plan_route(self, start: Coordinates, end: Coordinates) -> list[Coordinates]:
        """Route from ``start`` to ``end`` along the lattice.

        The first waypoint is ``start`` and the last is ``end``, exactly
        as given. Lattice waypoints in between are skipped only when they
        repeat the waypoint before them, so the shortest route has two
        entries.
        """
        route = [start]
        for waypoint in self.lattice_steps(start, end):
            if waypoint != route[-1]:
                route.append(waypoint)

        if len(route) == 1 or route[-1] != end:
            route.append(end)
        return route

    def route_length(self, route: list[Coordinates]) -> float:
        """Total driving distance along a route."""
        return sum(a.distance_to(b) for a, b in zip(route, route[1:]))
