"""Domain Port(s) for Tile I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.

A database declares which capability its tiles provide; the stitching
services check it before sampling.
"""

from __future__ import annotations

from typing import Protocol

from domain.grid.value_objects import Distance, GridRef
from domain.tiles.value_objects import ElevationTile, ImageTile, Tile, TileCapability


class TileDatabase(Protocol):
    """Port for tiled datasets addressed by grid reference.

    Implementations live in infrastructure (e.g., Terrain 50 adapter).
    """

    capability: TileCapability

    @property
    def precision(self) -> Distance:
        """Native sample spacing, discovered when the database is opened."""
        ...

    def get_tile(self, ref: GridRef) -> Tile:
        """Return the tile covering `ref`, loading it if necessary."""
        ...


class ElevationDatabase(TileDatabase, Protocol):
    """Tiled dataset of scalar samples."""

    def get_float64(self, ref: GridRef) -> float:
        """Return the sample at `ref`, whichever tile it falls in."""
        ...

    def get_elevation_tile(self, ref: GridRef) -> ElevationTile:
        ...


class ImageDatabase(TileDatabase, Protocol):
    """Tiled dataset of images."""

    def get_image_tile(self, ref: GridRef) -> ImageTile:
        ...
