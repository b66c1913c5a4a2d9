"""Tiles Bounded Context - Value Objects.

Immutable tiles as handed out by a tile database. A tile is a square piece of
a dataset anchored at its bottom-left grid reference. Two payload variants
exist, tagged by `capability`:

- ElevationTile (SCALAR): 2D float32 samples, row 0 = southernmost
- ImageTile (RASTER): 3D pixel array (rows, cols, bands), row 0 = northernmost

Payload arrays are copied and made read-only at construction, so tiles shared
through a cache cannot be modified by callers.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.grid.value_objects import Distance, GridRef
from domain.tiles.errors import CoordinateOutsideTileError


class TileCapability(str, Enum):
    """What kind of lookup a tile (and the database serving it) supports."""

    SCALAR = "scalar"
    RASTER = "raster"


def _freeze(array: NDArray[Any], dtype: Any = None) -> NDArray[Any]:
    """Return an owned, C-contiguous, read-only copy of `array`."""
    frozen = np.array(array, dtype=dtype, copy=True, order="C")
    frozen.flags.writeable = False
    return frozen


class Tile(BaseModel):
    """Common geometry of every tile (Value Object).

    Invariants:
        - width, height and precision are positive
        - width and height are whole multiples of precision
    """

    capability: ClassVar[TileCapability]

    bottom_left: GridRef
    width: Distance = Field(gt=0)
    height: Distance = Field(gt=0)
    precision: Distance = Field(gt=0)  # native sample spacing

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_geometry(self) -> "Tile":
        if self.width % self.precision or self.height % self.precision:
            raise ValueError(
                f"Tile size {self.width}x{self.height} is not a multiple of "
                f"precision {self.precision}"
            )
        return self

    @property
    def columns(self) -> int:
        """Number of precision-sized cells across the tile."""
        return self.width // self.precision

    @property
    def rows(self) -> int:
        """Number of precision-sized cells up the tile."""
        return self.height // self.precision

    def contains(self, ref: GridRef) -> bool:
        return ref.align(self.width) == self.bottom_left

    def cell_offset(self, ref: GridRef) -> tuple[int, int]:
        """Return (cells east, cells north) of `ref` from the bottom-left corner.

        Raises:
            CoordinateOutsideTileError: `ref` is not covered by this tile
        """
        if not self.contains(ref):
            raise CoordinateOutsideTileError(ref, self.bottom_left)

        aligned = ref.align(self.precision)
        east = aligned.easting - self.bottom_left.easting
        north = aligned.northing - self.bottom_left.northing
        return east // self.precision, north // self.precision

    def __str__(self) -> str:
        return str(self.bottom_left)


class ElevationTile(Tile):
    """Tile of scalar samples such as terrain heights.

    `data[row][col]` is the sample `row * precision` metres north and
    `col * precision` metres east of `bottom_left`.
    """

    capability: ClassVar[TileCapability] = TileCapability.SCALAR

    data: NDArray[np.float32]

    @model_validator(mode="after")
    def validate_data(self) -> "ElevationTile":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape != (self.rows, self.columns):
            raise ValueError(
                f"Data shape {self.data.shape} does not match tile "
                f"({self.rows}, {self.columns})"
            )
        object.__setattr__(self, "data", _freeze(self.data, np.float32))
        return self

    def get_float64(self, ref: GridRef) -> float:
        """Sample at `ref`, floored to the tile's precision."""
        col, row = self.cell_offset(ref)
        return float(self.data[row, col])

    def nodata_fraction(self) -> float:
        """Fraction of samples that are NaN (0.0 to 1.0)."""
        return float(np.isnan(self.data).mean())


class ImageTile(Tile):
    """Tile carrying an image rasterised at `pixel_precision` pixels per cell.

    Different datasets rasterise the same precision at different densities,
    so pixel maths always goes through `pixel_precision`.
    """

    capability: ClassVar[TileCapability] = TileCapability.RASTER

    image: NDArray[Any]  # (rows, cols, bands), row 0 = north edge
    pixel_precision: int = Field(gt=0)

    @model_validator(mode="after")
    def validate_image(self) -> "ImageTile":
        if self.image.ndim != 3:
            raise ValueError(
                f"Image must be 3D (rows, cols, bands), got {self.image.ndim}D"
            )
        expected = (
            self.rows * self.pixel_precision,
            self.columns * self.pixel_precision,
        )
        if self.image.shape[:2] != expected:
            raise ValueError(
                f"Image size {self.image.shape[:2]} does not match tile {expected}"
            )
        object.__setattr__(self, "image", _freeze(self.image))
        return self

    @property
    def bands(self) -> int:
        return int(self.image.shape[2])

    def get_pixel_coord(self, ref: GridRef) -> tuple[int, int]:
        """Return (x, y) of `ref` in image space.

        x counts from the west edge; y counts from the top of the image, so the
        tile's bottom-left maps to (0, image height).

        Raises:
            CoordinateOutsideTileError: `ref` is not covered by this tile
        """
        cells_east, cells_north = self.cell_offset(ref)
        pixels_east = cells_east * self.pixel_precision
        pixels_north = cells_north * self.pixel_precision
        return pixels_east, self.image.shape[0] - pixels_north


def distance_to_pixels(tile: ImageTile, distance: Distance) -> int:
    """Convert a distance to a pixel count at the tile's density.

    Only exact for distances that are multiples of `tile.precision`.
    """
    return (distance // tile.precision) * tile.pixel_precision
