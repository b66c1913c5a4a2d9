"""Terrain 50 adapter for ElevationDatabase.

Reads OS Terrain 50 style ESRI ASCII grids, one zip archive per tile:

    data/<sq>/<SQ><digits>*.zip  ->  exactly one <name>.asc member

An .asc file is a header of `key value` lines followed by the samples as a
space-separated matrix, northernmost row first:

    ncols 200
    nrows 200
    xllcorner 520000      <- metres east of the false origin
    yllcorner 180000      <- metres north of the false origin
    cellsize 50
    [nodata_value -9999]
    12.3 12.1 ...

Rows are reversed on load so that row 0 of the tile is the southern edge.
"""

from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterable
from pathlib import Path

import numpy as np

from domain.grid.errors import OutOfBoundsError
from domain.grid.value_objects import METRE, Distance, GridRef
from domain.tiles.errors import InvalidTileDataError, InvalidTileError
from domain.tiles.value_objects import ElevationTile, TileCapability

from .database import CachedTileDatabase

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("ncols", "nrows", "xllcorner", "yllcorner", "cellsize")
_NODATA_KEY = "nodata_value"

# Tiles above this share of NoData are logged, but still served
_NODATA_WARN_PERCENT = 80.0


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _parse_header(lines: list[str]) -> tuple[dict[str, int], float | None, int]:
    """Return (integer keys, nodata value, index of the first data line)."""
    values: dict[str, int] = {}
    nodata: float | None = None

    idx = 0
    while idx < len(lines) and not _is_number(lines[idx].split()[0]):
        fields = lines[idx].split()
        if len(fields) != 2:
            raise InvalidTileError(f"Unexpected header data: {lines[idx]}")
        key, raw = fields[0].lower(), fields[1]

        if key == _NODATA_KEY:
            try:
                nodata = float(raw)
            except ValueError as e:
                raise InvalidTileError(f"Invalid {key}: {raw}") from e
        else:
            try:
                values[key] = int(raw)
            except ValueError as e:
                raise InvalidTileError(f"Header {key} must be an integer: {raw}") from e
        idx += 1

    missing = [key for key in _REQUIRED_KEYS if key not in values]
    if missing:
        raise InvalidTileError(f"Missing header keys: {', '.join(missing)}")

    return values, nodata, idx


def _parse_rows(lines: list[str], nrows: int, ncols: int) -> np.ndarray:
    if len(lines) != nrows:
        raise InvalidTileDataError(f"Expected {nrows} rows of data, got {len(lines)}")

    data = np.empty((nrows, ncols), dtype=np.float32)
    for y, line in enumerate(lines):
        fields = line.split()
        if len(fields) != ncols:
            raise InvalidTileDataError(
                f"Row {y}: expected {ncols} values, got {len(fields)}"
            )
        try:
            # The file runs north to south, the tile south to north
            data[nrows - y - 1] = [float(v) for v in fields]
        except ValueError as e:
            raise InvalidTileDataError(f"Row {y}: {e}") from e
    return data


def parse_asc_tile(lines: Iterable[str]) -> ElevationTile:
    """Parse the text of an ASCII grid into an ElevationTile.

    Blank lines are ignored anywhere in the input.

    Raises:
        InvalidTileError: Malformed header, a corner off the grid, or a
            tile that is empty or not square
        InvalidTileDataError: Missing, short or non-numeric sample rows
    """
    content = [line.strip() for line in lines]
    content = [line for line in content if line]

    header, nodata, first_row = _parse_header(content)

    ncols, nrows = header["ncols"], header["nrows"]
    cellsize: Distance = header["cellsize"] * METRE
    if cellsize <= 0 or ncols <= 0 or nrows <= 0:
        raise InvalidTileError("Invalid tile size")

    width = ncols * cellsize
    height = nrows * cellsize
    if width != height:
        raise InvalidTileError(f"Invalid tile size: {width}x{height} m is not square")

    try:
        bottom_left = GridRef.origin().add(header["xllcorner"], header["yllcorner"])
    except OutOfBoundsError as e:
        raise InvalidTileError(f"Tile corner is off the grid: {e}") from e

    data = _parse_rows(content[first_row:], nrows, ncols)
    if nodata is not None:
        data[data == np.float32(nodata)] = np.nan

    return ElevationTile(
        bottom_left=bottom_left,
        width=width,
        height=height,
        precision=cellsize,
        data=data,
    )


def open_tile(path: Path | str) -> ElevationTile:
    """Read a zipped Terrain 50 tile.

    Raises:
        InvalidTileError: Not a zip archive, or not exactly one .asc member
        InvalidTileDataError: The grid is not ASCII text
        OSError: The file cannot be read (logged by name, then re-raised)
    """
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as archive:
            members = [n for n in archive.namelist() if n.lower().endswith(".asc")]
            if len(members) != 1:
                raise InvalidTileError(
                    f"{path.name}: expected one .asc member, found {len(members)}"
                )
            with archive.open(members[0]) as raw:
                text = io.TextIOWrapper(raw, encoding="ascii")
                return parse_asc_tile(text)
    except zipfile.BadZipFile as e:
        raise InvalidTileError(f"{path.name} is not a zip archive") from e
    except UnicodeDecodeError as e:
        raise InvalidTileDataError(f"{path.name} is not an ASCII grid") from e
    except OSError as e:
        # Log only the file name to avoid leaking absolute paths
        logger.error(
            "Failed to read %s (errno=%s, strerror=%s)",
            path.name,
            getattr(e, "errno", "unknown"),
            getattr(e, "strerror", "unknown"),
        )
        raise


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
class Terrain50Database(CachedTileDatabase[ElevationTile]):
    """Elevation database over a directory of zipped ASCII grid tiles.

    Example:
        >>> db = Terrain50Database.open("/data/terr50", 10 * KILOMETRE)
        >>> db.get_float64(GridRef.parse("SH 60986 54375"))
        1064.4
    """

    capability = TileCapability.SCALAR
    suffixes = (".zip",)

    def _load_tile(self, path: Path) -> ElevationTile:
        tile = open_tile(path)

        nodata_pct = tile.nodata_fraction() * 100.0
        if nodata_pct > _NODATA_WARN_PERCENT:
            logger.warning(
                "Tile %s: %.1f%% NoData samples detected", path.name, nodata_pct
            )
        return tile

    def get_float64(self, ref: GridRef) -> float:
        return self.get_tile(ref).get_float64(ref)

    def get_elevation_tile(self, ref: GridRef) -> ElevationTile:
        return self.get_tile(ref)
