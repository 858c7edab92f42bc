"""Tests for the road lattice and route planner."""

import pytest

from ambulance_fleet.models import Coordinates, GridSpec
from ambulance_fleet.routing import GridRoadModel, PathPlanner


@pytest.fixture
def grid():
    return GridRoadModel(GridSpec())


@pytest.fixture
def planner(grid):
    return PathPlanner(grid)


class TestGridRoadModel:
    def test_intersection_count(self, grid):
        assert len(list(grid.intersections())) == 16

    def test_row_major_order(self, grid):
        points = list(grid.intersections())
        assert points[0] == Coordinates(x=100, y=100)
        assert points[1] == Coordinates(x=300, y=100)
        assert points[4] == Coordinates(x=100, y=300)

    def test_nearest_intersection(self, grid):
        assert grid.nearest_intersection(Coordinates(x=280, y=110)) == Coordinates(x=300, y=100)
        assert grid.nearest_intersection(Coordinates(x=444, y=0)) == Coordinates(x=500, y=100)

    def test_tie_goes_to_first_in_row_major_order(self, grid):
        # Equidistant from (100,100), (300,100), (100,300) and (300,300)
        centre = Coordinates(x=200, y=200)
        assert grid.nearest_intersection(centre) == Coordinates(x=100, y=100)

    def test_far_point_snaps_to_corner(self, grid):
        assert grid.nearest_intersection(Coordinates(x=-999, y=5000)) == Coordinates(x=100, y=700)

    def test_is_intersection(self, grid):
        assert grid.is_intersection(Coordinates(x=500, y=300))
        assert not grid.is_intersection(Coordinates(x=400, y=300))

    def test_on_road(self, grid):
        assert grid.on_road(Coordinates(x=400, y=300))
        assert grid.on_road(Coordinates(x=300, y=650))
        assert not grid.on_road(Coordinates(x=210, y=220))
        assert not grid.on_road(Coordinates(x=900, y=300))


class TestPathPlanner:
    def test_route_starts_and_ends_at_inputs(self, planner):
        start = Coordinates(x=409, y=30)
        end = Coordinates(x=187.3, y=551.2)
        route = planner.plan_route(start, end)
        assert route[0] == start
        assert route[-1] == end

    def test_route_is_deterministic(self, planner):
        start = Coordinates(x=374, y=30)
        end = Coordinates(x=612, y=430)
        assert planner.plan_route(start, end) == planner.plan_route(start, end)

    def test_same_point_gives_two_entries(self, planner):
        point = Coordinates(x=300, y=300)
        route = planner.plan_route(point, point)
        assert route == [point, point]

    def test_minimum_length(self, planner):
        for start, end in [
            (Coordinates(x=0, y=0), Coordinates(x=1, y=1)),
            (Coordinates(x=100, y=100), Coordinates(x=100, y=100)),
            (Coordinates(x=450, y=50), Coordinates(x=690, y=710)),
        ]:
            assert len(planner.plan_route(start, end)) >= 2

    def test_inner_waypoints_are_intersections(self, planner, grid):
        route = planner.plan_route(Coordinates(x=444, y=0), Coordinates(x=150, y=640))
        for waypoint in route[1:-1]:
            assert grid.is_intersection(waypoint)

    def test_consecutive_intersections_one_block_apart(self, planner, grid):
        route = planner.plan_route(Coordinates(x=444, y=0), Coordinates(x=150, y=640))
        inner = route[1:-1]
        for a, b in zip(inner, inner[1:]):
            dx = abs(a.x - b.x)
            dy = abs(a.y - b.y)
            assert (dx, dy) in {(grid.block_size, 0), (0, grid.block_size)}

    def test_x_corrected_before_y(self, planner):
        steps = planner.lattice_steps(Coordinates(x=100, y=100), Coordinates(x=500, y=500))
        assert steps == [
            Coordinates(x=100, y=100),
            Coordinates(x=300, y=100),
            Coordinates(x=500, y=100),
            Coordinates(x=500, y=300),
            Coordinates(x=500, y=500),
        ]

    def test_route_length_is_bounded(self, planner, grid):
        spec = grid.spec
        worst = (spec.blocks_x + spec.blocks_y) + 3
        route = planner.plan_route(Coordinates(x=0, y=0), Coordinates(x=900, y=900))
        assert len(route) <= worst

    def test_start_on_intersection_not_duplicated(self, planner):
        start = Coordinates(x=300, y=100)
        route = planner.plan_route(start, Coordinates(x=500, y=100))
        assert route == [start, Coordinates(x=500, y=100)]

    def test_route_length(self, planner):
        route = [Coordinates(x=0, y=0), Coordinates(x=3, y=4), Coordinates(x=3, y=10)]
        assert planner.route_length(route) == pytest.approx(11.0)
