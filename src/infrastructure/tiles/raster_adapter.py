"""Raster adapter for ImageDatabase.

Loads georeferenced map images (GeoTIFF, or PNG/TIFF with a world file)
using rasterio and returns domain ImageTile Value Objects. Coordinates in
the geotransform are British National Grid metres from the false origin.

Lifecycle (to avoid resource leaks):
1) Enter rasterio.Env for GDAL configuration
2) Open dataset with context manager (rasterio.open)
3) Validate the geotransform: finite, north-up, unrotated, square pixels
4) Derive precision and pixel density from the pixel size
5) Read all bands, expanding palette images through their colour map
6) Exit contexts to release GDAL handles
7) Return ImageTile with pixels as (rows, cols, bands), north edge first
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
import rasterio
from affine import Affine
from rasterio.enums import ColorInterp

from domain.grid.errors import OutOfBoundsError
from domain.grid.value_objects import METRE, Distance, GridRef
from domain.tiles.errors import InvalidTileError
from domain.tiles.value_objects import ImageTile, TileCapability

from .database import CachedTileDatabase

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

# Pixel sizes within this of a whole number (or whole reciprocal) are exact
_SCALE_TOLERANCE = 1e-6


def _check_transform(transform: Any) -> None:
    if not isinstance(transform, Affine):
        raise InvalidTileError("Missing affine transform")
    if any(
        math.isnan(v) or math.isinf(v)
        for v in (
            transform.a,
            transform.b,
            transform.c,
            transform.d,
            transform.e,
            transform.f,
        )
    ):
        raise InvalidTileError("Invalid (NaN/Inf) transform values")
    if transform.b != 0 or transform.d != 0:
        raise InvalidTileError("Rotated rasters are not supported")
    if transform.a <= 0 or transform.e >= 0:
        raise InvalidTileError("Raster must be north-up with positive pixel size")
    if transform.a != -transform.e:
        raise InvalidTileError(
            f"Pixels must be square, got {transform.a} x {-transform.e}"
        )


def _derive_scale(pixel_size: float) -> tuple[Distance, int]:
    """Return (precision, pixels per precision) for a pixel size in metres.

    Pixels of a metre or more give one pixel per `pixel_size` metres;
    smaller pixels give `1 / pixel_size` pixels per metre.
    """
    if pixel_size >= METRE:
        whole = round(pixel_size)
        if abs(pixel_size - whole) > _SCALE_TOLERANCE:
            raise InvalidTileError(f"Pixel size {pixel_size} m is not whole metres")
        return int(whole) * METRE, 1

    reciprocal = 1.0 / pixel_size
    whole = round(reciprocal)
    if abs(reciprocal - whole) > _SCALE_TOLERANCE:
        raise InvalidTileError(
            f"Pixel size {pixel_size} m does not divide a metre evenly"
        )
    return METRE, int(whole)


def _whole_metres(value: float, name: str) -> Distance:
    whole = round(value)
    if abs(value - whole) > _SCALE_TOLERANCE:
        raise InvalidTileError(f"Raster {name} {value} is not on a whole metre")
    return int(whole)


def _read_pixels(src: Any) -> np.ndarray:
    """Read every band as (rows, cols, bands), expanding palettes to RGB."""
    bands = src.read()

    if src.count == 1 and tuple(src.colorinterp)[0] == ColorInterp.palette:
        colormap = src.colormap(1)
        indices = bands[0]
        size = max(max(colormap, default=0), int(indices.max(initial=0))) + 1
        lut = np.zeros((size, 3), dtype=np.uint8)
        for idx, rgba in colormap.items():
            lut[idx] = rgba[:3]
        return lut[indices]

    return np.transpose(bands, (1, 2, 0))


def load_raster_tile(file_path: Path | str) -> ImageTile:
    """Load one georeferenced image as an ImageTile.

    Raises:
        InvalidTileError: Unreadable raster, unsupported geotransform, or a
            corner that is off the grid or not on whole metres
        FileNotFoundError: The file does not exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    try:
        with rasterio.Env():
            with rasterio.open(path) as src:
                if src.count == 0:
                    raise InvalidTileError("Empty or bandless file")

                transform = src.transform
                _check_transform(transform)
                precision, pixel_precision = _derive_scale(transform.a)

                if src.width % pixel_precision or src.height % pixel_precision:
                    raise InvalidTileError(
                        f"Raster {src.width}x{src.height} px is not a whole "
                        f"number of {precision} m cells"
                    )

                left = _whole_metres(transform.c, "left edge")
                bottom = _whole_metres(
                    transform.f + transform.e * src.height, "bottom edge"
                )
                image = _read_pixels(src)
                width = (src.width // pixel_precision) * precision
                height = (src.height // pixel_precision) * precision

    except PermissionError as e:
        # Re-raise with filename only to avoid leaking full path in logs
        raise PermissionError(path.name) from e
    except rasterio.errors.RasterioError as e:
        raise InvalidTileError(f"Corrupted or invalid raster: {e}") from e

    try:
        bottom_left = GridRef.origin().add(left, bottom)
    except OutOfBoundsError as e:
        raise InvalidTileError(f"Raster {path.name} is off the grid: {e}") from e

    logger.debug(
        "Raster %s: %dx%d px, %d px per %d m",
        path.name,
        image.shape[1],
        image.shape[0],
        pixel_precision,
        precision,
    )
    return ImageTile(
        bottom_left=bottom_left,
        width=width,
        height=height,
        precision=precision,
        pixel_precision=pixel_precision,
        image=image,
    )


class RasterDatabase(CachedTileDatabase[ImageTile]):
    """Image database over a directory of georeferenced map tiles."""

    capability = TileCapability.RASTER
    suffixes = (".tif", ".tiff", ".png")

    def _load_tile(self, path: Path) -> ImageTile:
        return load_raster_tile(path)

    def get_image_tile(self, ref: GridRef) -> ImageTile:
        return self.get_tile(ref)
