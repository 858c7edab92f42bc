"""Houses laid out on the road grid, and house-number lookup."""

import random
from dataclasses import dataclass
from typing import Iterable, Optional

from ambulance_fleet.exceptions import LocationNotFoundError
from ambulance_fleet.models.enums import VehicleStatus
from ambulance_fleet.models.network import Coordinates, GridSpec, TownLayout

EMERGENCY_MARKER_TOLERANCE = 5.0


@dataclass(frozen=True)
class House:
    """A house body (axis-aligned rectangle) on one lot."""

    id: int
    x: float
    y: float
    width: float
    height: float

    @property
    def doorstep(self) -> Coordinates:
        """Bottom-centre of the house, where ambulances pull up."""
        return Coordinates(x=self.x + self.width / 2.0, y=self.y + self.height)

    def contains(self, point: Coordinates) -> bool:
        return (
            self.x <= point.x <= self.x + self.width
            and self.y <= point.y <= self.y + self.height
        )


class Town:
    """The houses of the simulated town, numbered 1..N.

    Lots fill each block inside the road half-widths, ``lots_x`` by
    ``lots_y``. Numbering runs row-major across the whole town, so
    house 1 is top-left and numbers increase left to right.
    """

    def __init__(self, grid: GridSpec, layout: Optional[TownLayout] = None):
        self.grid = grid
        self.layout = layout or TownLayout()
        self._houses: dict[int, House] = {}
        self._build()

    def _build(self) -> None:
        rng = random.Random(self.layout.random_seed)
        grid = self.grid
        layout = self.layout
        half_road = grid.road_width / 2.0
        usable = grid.block_size - grid.road_width
        lot_w = usable / layout.lots_x
        lot_h = usable / layout.lots_y
        pad = layout.lot_padding

        house_id = 1
        for py in range(grid.blocks_y * layout.lots_y):
            for px in range(grid.blocks_x * layout.lots_x):
                by, ly = divmod(py, layout.lots_y)
                bx, lx = divmod(px, layout.lots_x)
                block_x = grid.origin.x + bx * grid.block_size + half_road
                block_y = grid.origin.y + by * grid.block_size + half_road

                x = block_x + lx * lot_w + pad / 2.0
                y = block_y + ly * lot_h + pad / 2.0
                w = max(lot_w - pad, 1.0)
                h = max(lot_h - pad, 1.0)
                body_w = w * rng.uniform(0.75, 0.95)
                body_h = h * rng.uniform(0.55, 0.85)

                self._houses[house_id] = House(
                    id=house_id,
                    x=x + (w - body_w) / 2.0,
                    y=y + (h - body_h) / 2.0 + body_h * 0.08,
                    width=body_w,
                    height=body_h,
                )
                house_id += 1

    @property
    def houses(self) -> list[House]:
        return list(self._houses.values())

    def __len__(self) -> int:
        return len(self._houses)

    def get_house(self, house_number: int) -> Optional[House]:
        return self._houses.get(house_number)

    def resolve(self, house_number: Optional[int]) -> Coordinates:
        """World location for a house number.

        Raises:
            LocationNotFoundError: If no house has that number
        """
        house = self._houses.get(house_number) if house_number is not None else None
        if house is None:
            raise LocationNotFoundError(house_number)
        return house.doorstep

    def house_at(self, point: Coordinates) -> Optional[int]:
        """Number of the house whose body contains ``point``, if any."""
        for house in self._houses.values():
            if house.contains(point):
                return house.id
        return None

    def random_house(self, rng: random.Random) -> House:
        return self._houses[rng.randint(1, len(self._houses))]

    def houses_with_active_emergency(self, vehicles: Iterable) -> set[int]:
        """Houses an ambulance is heading to or working at.

        ``vehicles`` are fleet snapshots; a house is active when its
        doorstep matches the final waypoint of a TO_SCENE or ON_SCENE
        vehicle within a few units on each axis.
        """
        targets = [
            v.route[-1] for v in vehicles
            if v.status in (VehicleStatus.TO_SCENE, VehicleStatus.ON_SCENE) and v.route
        ]
        active = set()
        for house in self._houses.values():
            door = house.doorstep
            for target in targets:
                if (
                    abs(door.x - target.x) < EMERGENCY_MARKER_TOLERANCE
                    and abs(door.y - target.y) < EMERGENCY_MARKER_TOLERANCE
                ):
                    active.add(house.id)
                    break
        return active
