"""Shared test helpers.

In-memory tile databases for domain tests (no I/O), and writers that lay out
synthetic datasets on disk for adapter tests.

Synthetic values are derived from absolute grid position so that any seam
error in stitching shows up as a wrong value:
- elevation samples are `abs_easting + abs_northing` in metres
- image band 0 is the absolute cell column, band 1 the absolute cell row

These utilities are used by:
- tests/conftest.py
- tests/gis/test_terrain50_adapter.py
- tests/gis/test_raster_adapter.py
- tests/terrain/*
"""

from __future__ import annotations

import zipfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import numpy as np

from domain.grid.value_objects import Distance, GridRef
from domain.tiles.value_objects import ElevationTile, ImageTile, TileCapability

TERRAIN50_SUFFIX = "_OST50GRID_20230601.zip"


# ---------------------------------------------------------------------------
# Synthetic values
# ---------------------------------------------------------------------------
def cell_values(
    bottom_left: GridRef, rows: int, cols: int, precision: Distance
) -> np.ndarray:
    """`abs_easting + abs_northing` of each cell, row 0 = south."""
    east = bottom_left.abs_easting + np.arange(cols, dtype=np.float64) * precision
    north = bottom_left.abs_northing + np.arange(rows, dtype=np.float64) * precision
    return north[:, None] + east[None, :]


def cell_image(
    bottom_left: GridRef,
    cols: int,
    rows: int,
    precision: Distance,
    pixel_precision: int = 1,
    bands: int = 2,
) -> np.ndarray:
    """Image of absolute cell indices, (rows, cols, bands), row 0 = north."""
    width = cols * pixel_precision
    height = rows * pixel_precision
    x_cells = np.arange(width) // pixel_precision
    y_cells = (height - 1 - np.arange(height)) // pixel_precision

    image = np.zeros((height, width, bands), dtype=np.int32)
    image[..., 0] = bottom_left.abs_easting // precision + x_cells[None, :]
    if bands > 1:
        image[..., 1] = bottom_left.abs_northing // precision + y_cells[:, None]
    return image


# ---------------------------------------------------------------------------
# In-memory databases
# ---------------------------------------------------------------------------
class FakeElevationDatabase:
    """ElevationDatabase computing tiles on demand.

    Tiles whose bottom-left is in `nan_tiles` are entirely NoData.
    """

    capability = TileCapability.SCALAR

    def __init__(
        self,
        tile_size: Distance = 1000,
        precision: Distance = 50,
        nan_tiles: Iterable[GridRef] = (),
    ) -> None:
        self.tile_size = tile_size
        self._precision = precision
        self.nan_tiles = set(nan_tiles)
        self._tiles: dict[GridRef, ElevationTile] = {}

    @property
    def precision(self) -> Distance:
        return self._precision

    def get_tile(self, ref: GridRef) -> ElevationTile:
        key = ref.align(self.tile_size)
        if key not in self._tiles:
            cells = self.tile_size // self._precision
            data = cell_values(key, cells, cells, self._precision)
            if key in self.nan_tiles:
                data[:] = np.nan
            self._tiles[key] = ElevationTile(
                bottom_left=key,
                width=self.tile_size,
                height=self.tile_size,
                precision=self._precision,
                data=data,
            )
        return self._tiles[key]

    def get_elevation_tile(self, ref: GridRef) -> ElevationTile:
        return self.get_tile(ref)

    def get_float64(self, ref: GridRef) -> float:
        return self.get_tile(ref).get_float64(ref)


class FakeImageDatabase:
    """ImageDatabase computing tiles on demand.

    `overrides` maps a tile's bottom-left to replacement `pixel_precision`,
    `bands` or `precision` for that tile only.
    """

    capability = TileCapability.RASTER

    def __init__(
        self,
        tile_size: Distance = 1000,
        precision: Distance = 50,
        pixel_precision: int = 1,
        bands: int = 2,
        overrides: Mapping[GridRef, Mapping[str, Any]] | None = None,
    ) -> None:
        self.tile_size = tile_size
        self._precision = precision
        self.pixel_precision = pixel_precision
        self.bands = bands
        self.overrides = dict(overrides or {})
        self.requests: list[GridRef] = []

    @property
    def precision(self) -> Distance:
        return self._precision

    def get_tile(self, ref: GridRef) -> ImageTile:
        key = ref.align(self.tile_size)
        self.requests.append(key)

        settings = {
            "precision": self._precision,
            "pixel_precision": self.pixel_precision,
            "bands": self.bands,
            **self.overrides.get(key, {}),
        }
        cells = self.tile_size // settings["precision"]
        return ImageTile(
            bottom_left=key,
            width=self.tile_size,
            height=self.tile_size,
            precision=settings["precision"],
            pixel_precision=settings["pixel_precision"],
            image=cell_image(
                key,
                cells,
                cells,
                settings["precision"],
                settings["pixel_precision"],
                settings["bands"],
            ),
        )

    def get_image_tile(self, ref: GridRef) -> ImageTile:
        return self.get_tile(ref)


# ---------------------------------------------------------------------------
# Terrain 50 writers
# ---------------------------------------------------------------------------
def asc_text(
    bottom_left: GridRef,
    cells: int,
    cellsize: Distance,
    values: np.ndarray | None = None,
    nodata: float | None = None,
) -> str:
    """Render an ASCII grid; `values` is row 0 = south like a tile."""
    if values is None:
        values = cell_values(bottom_left, cells, cells, cellsize)

    lines = [
        f"ncols {values.shape[1]}",
        f"nrows {values.shape[0]}",
        f"xllcorner {bottom_left.abs_easting}",
        f"yllcorner {bottom_left.abs_northing}",
        f"cellsize {cellsize}",
    ]
    if nodata is not None:
        lines.append(f"nodata_value {nodata:.2f}")
    # Files run north to south
    for row in values[::-1]:
        lines.append(" ".join(f"{v:.2f}" for v in row))
    return "\n".join(lines) + "\n"


def write_zip(path: Path, members: Mapping[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, text in members.items():
            archive.writestr(name, text)
    return path


def terrain50_tile_path(data_dir: Path, ref: GridRef) -> Path:
    return data_dir / ref.tile.lower() / f"{ref.tile}{ref.digits}{TERRAIN50_SUFFIX}"


def write_terrain50_dataset(
    root: Path,
    refs: Iterable[GridRef],
    tile_size: Distance = 1000,
    cellsize: Distance = 50,
) -> Path:
    """Write one zipped tile per ref under `root/data`; returns `root`."""
    for ref in refs:
        key = ref.align(tile_size)
        text = asc_text(key, tile_size // cellsize, cellsize)
        write_zip(
            terrain50_tile_path(root / "data", key),
            {f"{key.tile}{key.digits}.asc": text, "metadata.xml": "<xml/>"},
        )
    return root


# ---------------------------------------------------------------------------
# Raster writers (real rasterio)
# ---------------------------------------------------------------------------
def write_geotiff(
    path: Path, bottom_left: GridRef, image: np.ndarray, pixel_size: float
) -> Path:
    """Write `image` (rows, cols, bands) as a north-up GeoTIFF."""
    import rasterio
    from rasterio.transform import from_origin

    rows, cols, bands = image.shape
    transform = from_origin(
        bottom_left.abs_easting,
        bottom_left.abs_northing + rows * pixel_size,
        pixel_size,
        pixel_size,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=rows,
        width=cols,
        count=bands,
        dtype=image.dtype.name,
        transform=transform,
    ) as dst:
        dst.write(np.transpose(image, (2, 0, 1)))
    return path
