"""Terrain Bounded Context - Value Objects.

Transient results of stitching: produced fresh by each generation call and
holding no long-lived state. Arrays are made read-only at construction.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.grid.value_objects import Distance, GridRef


class Surface(BaseModel):
    """Grid of scalar samples covering a rectangular region (Value Object).

    Samples sit on the corners of resolution-sized cells, so a region
    W x H metres gives (H / resolution + 1) rows of (W / resolution + 1).

    Row order follows `north_to_south`: False (default) puts the southernmost
    row at index 0, True puts the northernmost row there. Column 0 is always
    the west edge.
    """

    data: NDArray[np.float64]
    min_value: float
    max_value: float
    resolution: Distance = Field(gt=0)
    north_to_south: bool = False

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_data(self) -> "Surface":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise ValueError(f"Data cannot be empty: {self.data.shape}")
        frozen = np.array(self.data, dtype=np.float64, copy=True, order="C")
        frozen.flags.writeable = False
        object.__setattr__(self, "data", frozen)
        return self

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def columns(self) -> int:
        return int(self.data.shape[1])

    def adjust_max(self, new_max: float) -> "Surface":
        """Return a copy shifted so that `new_max` becomes the maximum."""
        shift = new_max - self.max_value
        return self.model_copy(
            update={
                "data": self._derived(self.data + shift),
                "min_value": self.min_value + shift,
                "max_value": new_max,
            }
        )

    def scale(self, factor: float) -> "Surface":
        """Return a copy with every sample multiplied by `factor`."""
        bounds = sorted((self.min_value * factor, self.max_value * factor))
        return self.model_copy(
            update={
                "data": self._derived(self.data * factor),
                "min_value": bounds[0],
                "max_value": bounds[1],
            }
        )

    @staticmethod
    def _derived(data: NDArray[np.float64]) -> NDArray[np.float64]:
        # model_copy skips validation, so freeze here
        data.flags.writeable = False
        return data


class Texture(BaseModel):
    """Composite image covering a rectangular region (Value Object).

    `image` is (rows, cols, bands) with row 0 at the north edge, as images
    are conventionally stored.
    """

    image: NDArray[Any]
    bottom_left: GridRef
    width: Distance = Field(gt=0)
    height: Distance = Field(gt=0)
    precision: Distance = Field(gt=0)
    pixel_precision: int = Field(gt=0)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_image(self) -> "Texture":
        if self.image.ndim != 3:
            raise ValueError(f"Image must be 3D, got {self.image.ndim}D")
        frozen = np.array(self.image, copy=True, order="C")
        frozen.flags.writeable = False
        object.__setattr__(self, "image", frozen)
        return self

    @property
    def pixel_size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        return int(self.image.shape[1]), int(self.image.shape[0])


class TextureMap(BaseModel):
    """Per-sample UV coordinates tying a Surface to its Texture (Value Object).

    `tex_coords[row, col]` is (u, v) in [0, 1] for surface sample (row, col).
    """

    surface: Surface
    texture: Texture
    north_to_south: bool = False
    tex_coords: NDArray[np.float64]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_coords(self) -> "TextureMap":
        expected = (self.surface.rows, self.surface.columns, 2)
        if self.tex_coords.shape != expected:
            raise ValueError(
                f"tex_coords shape {self.tex_coords.shape} does not match {expected}"
            )
        frozen = np.array(self.tex_coords, dtype=np.float64, copy=True, order="C")
        frozen.flags.writeable = False
        object.__setattr__(self, "tex_coords", frozen)
        return self

    def uv(self, row: int, col: int) -> tuple[float, float]:
        u, v = self.tex_coords[row, col]
        return float(u), float(v)
