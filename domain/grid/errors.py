"""Grid Bounded Context - Error Hierarchy.

Custom exceptions for grid reference parsing and arithmetic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.grid.value_objects import GridRef


class GridError(Exception):
    """Base error for grid reference operations."""


class InvalidGridRefError(GridError):
    """Grid reference string has bad letters, bad digits or an odd digit count."""


class OutOfBoundsError(GridError):
    """Arithmetic carried a reference past the edge of the lettered grid.

    Attributes:
        ref: The reference the offsets were applied to
        east: Requested easting offset in metres
        north: Requested northing offset in metres
    """

    def __init__(self, ref: "GridRef", east: int, north: int) -> None:
        self.ref = ref
        self.east = east
        self.north = north
        super().__init__(
            f"Moving {ref} by ({east:+d} m E, {north:+d} m N) "
            f"falls off the edge of the grid"
        )
