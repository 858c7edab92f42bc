"""Road network models: world coordinates and the street lattice"""

from pydantic import BaseModel, Field, model_validator


class Coordinates(BaseModel):
    """A point in world space.

    Used for every location in the simulation: hospital, parking slots,
    house doorsteps, route waypoints and live vehicle positions.
    Frozen so it can be shared between the engine and its readers.
    """

    x: float = Field(..., description="X coordinate (world units, grows right)")
    y: float = Field(..., description="Y coordinate (world units, grows down)")

    model_config = {"extra": "forbid", "frozen": True}

    def distance_to(self, other: "Coordinates") -> float:
        """Euclidean distance to another coordinate point."""
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class GridSpec(BaseModel):
    """Rectangular street lattice.

    Roads run along every line x = origin.x + i * block_size
    (i in 0..blocks_x) and y = origin.y + j * block_size
    (j in 0..blocks_y). Intersections are where they cross.
    """

    origin: Coordinates = Field(
        default_factory=lambda: Coordinates(x=100, y=100),
        description="World position of the top-left intersection"
    )
    block_size: float = Field(
        200.0,
        gt=0,
        description="Distance between parallel roads (world units)"
    )
    blocks_x: int = Field(
        3,
        ge=1,
        le=100,
        description="Number of blocks along the x axis"
    )
    blocks_y: int = Field(
        3,
        ge=1,
        le=100,
        description="Number of blocks along the y axis"
    )
    road_width: float = Field(
        44.0,
        gt=0,
        description="Carriageway width, used for lot layout"
    )

    @model_validator(mode="after")
    def road_narrower_than_block(self) -> "GridSpec":
        """Validate that roads leave room for lots inside each block."""
        if self.road_width >= self.block_size:
            raise ValueError(
                f"Road width ({self.road_width}) must be smaller than "
                f"block size ({self.block_size})"
            )
        return self

    model_config = {"extra": "forbid"}

    @property
    def width(self) -> float:
        """Span of the lattice along x."""
        return self.blocks_x * self.block_size

    @property
    def height(self) -> float:
        """Span of the lattice along y."""
        return self.blocks_y * self.block_size

    def contains(self, point: Coordinates, margin: float = 0.0) -> bool:
        """Whether a point lies inside the lattice bounds grown by ``margin``."""
        return (
            self.origin.x - margin <= point.x <= self.origin.x + self.width + margin
            and self.origin.y - margin <= point.y <= self.origin.y + self.height + margin
        )


class TownLayout(BaseModel):
    """Residential lots laid out inside each block.

    Every block holds ``lots_x * lots_y`` houses. House sizes are
    randomised from ``random_seed`` so a layout is reproducible.
    """

    lots_x: int = Field(3, ge=1, le=20, description="Lots per block along x")
    lots_y: int = Field(2, ge=1, le=20, description="Lots per block along y")
    lot_padding: float = Field(
        8.0,
        ge=0,
        description="Gap kept free around each lot (world units)"
    )
    random_seed: int = Field(
        7,
        description="RNG seed for house sizes"
    )

    model_config = {"extra": "forbid"}
