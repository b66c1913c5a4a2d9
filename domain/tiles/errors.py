"""Tiles Bounded Context - Error Hierarchy.

Custom exceptions for locating, loading and reading dataset tiles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.grid.value_objects import GridRef


class TileError(Exception):
    """Base error for tile operations."""


class TileNotFoundError(TileError):
    """No backing file in the dataset matches the coordinate.

    Attributes:
        ref: The (tile-aligned) reference that was looked up
    """

    def __init__(self, ref: "GridRef") -> None:
        self.ref = ref
        super().__init__(f"Tile {ref} not found")


class InvalidTileError(TileError):
    """Tile header or geometry is malformed, non-square or the wrong size."""


class InvalidTileDataError(TileError):
    """Tile samples are missing, short or not numeric."""


class CoordinateOutsideTileError(TileError):
    """A value or pixel was requested for a coordinate the tile does not cover.

    Attributes:
        ref: The offending GridRef
        bottom_left: The tile's bottom-left corner
    """

    def __init__(self, ref: "GridRef", bottom_left: "GridRef") -> None:
        self.ref = ref
        self.bottom_left = bottom_left
        super().__init__(f"Coordinate {ref} outside tile {bottom_left}")
