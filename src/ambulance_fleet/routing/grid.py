"""Street lattice queries."""

from typing import Iterator

from ambulance_fleet.models.network import Coordinates, GridSpec


class GridRoadModel:
    """Answers geometric questions about the road lattice.

    Pure and stateless apart from the grid parameters, so one instance
    can be shared by the planner and anything else that needs it.
    """

    def __init__(self, spec: GridSpec):
        self.spec = spec

    @property
    def block_size(self) -> float:
        return self.spec.block_size

    def intersections(self) -> Iterator[Coordinates]:
        """Yield every intersection in row-major order (y outer, x inner)."""
        origin = self.spec.origin
        size = self.spec.block_size
        for j in range(self.spec.blocks_y + 1):
            for i in range(self.spec.blocks_x + 1):
                yield Coordinates(x=origin.x + i * size, y=origin.y + j * size)

    def nearest_intersection(self, point: Coordinates) -> Coordinates:
        """Intersection closest to ``point`` by Euclidean distance.

        Ties go to the first intersection found in row-major order.
        """
        best = None
        best_distance = float("inf")
        for intersection in self.intersections():
            dist = point.distance_to(intersection)
            if dist < best_distance:
                best_distance = dist
                best = intersection
        return best

    def is_intersection(self, point: Coordinates, tolerance: float = 1e-6) -> bool:
        """Whether ``point`` sits on a lattice intersection."""
        return point.distance_to(self.nearest_intersection(point)) <= tolerance

    def on_road(self, point: Coordinates, tolerance: float = 1e-6) -> bool:
        """Whether ``point`` lies on any lattice line within the grid bounds."""
        if not self.spec.contains(point, margin=tolerance):
            return False
        origin = self.spec.origin
        size = self.spec.block_size
        fx = (point.x - origin.x) / size
        fy = (point.y - origin.y) / size
        return (
            abs(fx - round(fx)) * size <= tolerance
            or abs(fy - round(fy)) * size <= tolerance
        )
