"""Configuration for file-backed tile databases.

Values are validated once, at construction, and never change afterwards.
There is no environment or file lookup: callers pass values to `open()`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.grid.errors import InvalidGridRefError
from domain.grid.value_objects import KILOMETRE, TILE_SIZE, Distance, GridRef

DEFAULT_TILE_SIZE: Distance = 10 * KILOMETRE
DEFAULT_CACHE_CAPACITY = 16

# Tile assumed present in every national dataset (central London)
DEFAULT_REFERENCE_TILE = "TQ 28"


class DatabaseConfig(BaseModel):
    """Settings for one database rooted at `root`.

    Tiles are expected under `root / "data" / <square> / <file>`.
    """

    root: Path
    tile_size: Distance = Field(default=DEFAULT_TILE_SIZE, gt=0)
    cache_capacity: int = Field(default=DEFAULT_CACHE_CAPACITY, gt=0)
    reference_tile: str = DEFAULT_REFERENCE_TILE

    model_config = ConfigDict(frozen=True)

    @field_validator("tile_size")
    @classmethod
    def validate_tile_size(cls, value: Distance) -> Distance:
        # Tiles must never straddle a 100 km square
        if TILE_SIZE % value != 0:
            raise ValueError(f"Tile size {value} must divide {TILE_SIZE}")
        return value

    @field_validator("reference_tile")
    @classmethod
    def validate_reference_tile(cls, value: str) -> str:
        try:
            GridRef.parse(value)
        except InvalidGridRefError as e:
            raise ValueError(str(e)) from e
        return value

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    @property
    def reference_ref(self) -> GridRef:
        return GridRef.parse(self.reference_tile)
