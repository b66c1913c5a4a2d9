"""Grid Bounded Context.

The Ordnance Survey national grid as used to address tiles:
- Value Objects: GridRef, Distance
- Errors: InvalidGridRefError, OutOfBoundsError
"""

from domain.grid.errors import GridError, InvalidGridRefError, OutOfBoundsError
from domain.grid.value_objects import (
    GRID_CHARS,
    KILOMETRE,
    METRE,
    TILE_SIZE,
    Distance,
    GridRef,
)

__all__ = [
    "GRID_CHARS",
    "KILOMETRE",
    "METRE",
    "TILE_SIZE",
    "Distance",
    "GridError",
    "GridRef",
    "InvalidGridRefError",
    "OutOfBoundsError",
]
