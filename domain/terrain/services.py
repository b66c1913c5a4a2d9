"""Terrain Bounded Context - Domain Services.

Pure stitching logic. NO file I/O - tiles arrive through the database ports
defined in `domain/tiles/repositories.py`, and whichever cache sits behind
those ports is the only shared state.

- generate_surface: point-by-point sampling of a scalar database
- generate_texture: sub-rectangle compositing of an image database
- generate_texture_map: UV coordinates pairing a surface with a texture
"""

from __future__ import annotations

import math

import numpy as np

from domain.grid.value_objects import Distance, GridRef
from domain.terrain.errors import InvalidResolutionError
from domain.terrain.value_objects import Surface, Texture, TextureMap
from domain.tiles.errors import InvalidTileError
from domain.tiles.repositories import ElevationDatabase, ImageDatabase, TileDatabase
from domain.tiles.value_objects import ImageTile, TileCapability, distance_to_pixels


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def south_west_of(centre: GridRef, width: Distance, height: Distance) -> GridRef:
    """Return the south-west corner of a width x height region around `centre`."""
    return centre.add(-(width // 2), -(height // 2))


def _require_capability(database: TileDatabase, capability: TileCapability) -> None:
    actual = getattr(database, "capability", None)
    if actual is not capability:
        raise TypeError(
            f"{type(database).__name__} provides {actual!r} tiles, "
            f"{capability.value} required"
        )


def _check_resolution(resolution: Distance, precision: Distance) -> None:
    """Resolution must be a whole multiple (>= 1) of the native precision."""
    if resolution < precision:
        raise InvalidResolutionError(
            f"Resolution must be at least database precision ({precision})",
            resolution,
            precision,
        )
    if resolution % precision != 0:
        raise InvalidResolutionError(
            f"Resolution must be a multiple of database precision ({precision})",
            resolution,
            precision,
        )


# ---------------------------------------------------------------------------
# Surface
# ---------------------------------------------------------------------------
def generate_surface(
    database: ElevationDatabase,
    south_west: GridRef,
    width: Distance,
    height: Distance,
    *,
    resolution: Distance | None = None,
    north_to_south: bool = False,
) -> Surface:
    """Sample a scalar database over a rectangular region.

    Samples are taken on the corners of resolution-sized cells, so the result
    has one more row and column than the number of cells. Each sample is
    fetched on its own, which lets the region span any number of tiles.

    Args:
        database: Source of samples (SCALAR capability)
        south_west: South-west corner of the region
        width: East-west extent in metres
        height: North-south extent in metres
        resolution: Sample spacing; defaults to the database precision
        north_to_south: Put the northernmost row at index 0

    Returns:
        Surface with running min/max of the (non-NaN) samples

    Raises:
        InvalidResolutionError: Resolution finer than, or not a multiple of,
            the database precision
        OutOfBoundsError: The region leaves the lettered grid
        TileError: A covering tile is missing or unreadable
        ValueError: Negative width or height

    Example:
        >>> sw = south_west_of(GridRef.parse("SH 60986 54375"), 2000, 2000)
        >>> surface = generate_surface(db, sw, 2000, 2000)
        >>> surface.data.shape
        (41, 41)
    """
    _require_capability(database, TileCapability.SCALAR)

    precision = database.precision
    if resolution is None:
        resolution = precision
    _check_resolution(resolution, precision)

    if width < 0 or height < 0:
        raise ValueError(f"Region size must not be negative: {width}x{height}")

    n_rows = height // resolution + 1
    n_cols = width // resolution + 1
    data = np.empty((n_rows, n_cols), dtype=np.float64)

    min_value = math.inf
    max_value = -math.inf

    for row in range(n_rows):
        for col in range(n_cols):
            ref = south_west.add(col * resolution, row * resolution)
            value = database.get_float64(ref)
            data[row, col] = value

            # NaN compares false both ways, so NoData never moves the bounds
            if value < min_value:
                min_value = value
            if value > max_value:
                max_value = value

    if min_value > max_value:
        # Every sample was NaN
        min_value = max_value = math.nan

    if north_to_south:
        data = data[::-1]

    return Surface(
        data=data,
        min_value=min_value,
        max_value=max_value,
        resolution=resolution,
        north_to_south=north_to_south,
    )


# ---------------------------------------------------------------------------
# Texture
# ---------------------------------------------------------------------------
def _check_tile_matches(tile: ImageTile, precision: Distance, first: ImageTile) -> None:
    """Tiles are copied pixel for pixel, so every tile must share one scale."""
    if tile.precision != precision:
        raise InvalidResolutionError(
            f"Tile {tile} precision ({tile.precision}) differs from "
            f"database precision ({precision})",
            tile.precision,
            precision,
        )
    if tile.pixel_precision != first.pixel_precision:
        raise InvalidResolutionError(
            f"Tile {tile} has {tile.pixel_precision} pixels per {precision} m, "
            f"expected {first.pixel_precision}",
            tile.precision,
            precision,
        )
    if tile.bands != first.bands:
        raise InvalidTileError(
            f"Tile {tile} has {tile.bands} bands, expected {first.bands}"
        )


def generate_texture(
    database: ImageDatabase,
    centre: GridRef,
    width: Distance,
    height: Distance,
) -> Texture:
    """Composite the images of every tile under a region into one image.

    Rather than sampling pixel by pixel, each covering tile contributes the
    sub-rectangle of its image that lies inside the region, copied straight
    into the canvas. Tiles are walked a row at a time from the south, and
    west to east within a row, tracking two cursors:

    - drawn_x: pixels already filled in the current row (from the west edge)
    - unfilled_y: pixel rows still empty above the rows drawn so far

    The region's corner is aligned to the database precision so that every
    tile boundary falls on a whole pixel; combined with width and height
    being multiples of the precision, the pieces tile the canvas exactly.

    Args:
        database: Source of images (RASTER capability)
        centre: Centre of the region
        width: East-west extent in metres
        height: North-south extent in metres

    Returns:
        Texture whose image row 0 is the north edge of the region

    Raises:
        InvalidResolutionError: Width/height not positive multiples of the
            precision, or tiles of differing precision/pixel density
        InvalidTileError: Tiles disagree on band count or do not line up
        OutOfBoundsError: The region leaves the lettered grid
        TileError: A covering tile is missing or unreadable
    """
    _require_capability(database, TileCapability.RASTER)

    precision = database.precision
    for extent in (width, height):
        if extent <= 0 or extent % precision != 0:
            raise InvalidResolutionError(
                f"Texture size {width}x{height} must be a positive multiple of "
                f"database precision ({precision})",
                extent,
                precision,
            )

    bottom_left = south_west_of(centre, width, height).align(precision)
    right_edge = bottom_left.abs_easting + width
    top_edge = bottom_left.abs_northing + height

    first = database.get_image_tile(bottom_left)
    _check_tile_matches(first, precision, first)

    canvas_w = distance_to_pixels(first, width)
    canvas_h = distance_to_pixels(first, height)
    canvas = np.zeros((canvas_h, canvas_w, first.bands), dtype=first.image.dtype)

    unfilled_y = canvas_h
    row_start = bottom_left

    while unfilled_y > 0:
        coord = row_start
        drawn_x = 0
        row_height = 0

        while drawn_x < canvas_w:
            tile = database.get_image_tile(coord)
            _check_tile_matches(tile, precision, first)

            tile_left = tile.bottom_left.abs_easting
            tile_bottom = tile.bottom_left.abs_northing

            # Bottom-left of the patch this tile contributes
            min_x, max_y = tile.get_pixel_coord(coord)

            # Right-hand limit: whole tile unless the region ends inside it
            max_x = tile.image.shape[1]
            if right_edge < tile_left + tile.width:
                edge = tile.bottom_left.add(right_edge - tile_left, 0)
                max_x, _ = tile.get_pixel_coord(edge)

            # Top limit: whole tile unless the region ends inside it
            min_y = 0
            if top_edge < tile_bottom + tile.height:
                edge = tile.bottom_left.add(0, top_edge - tile_bottom)
                _, min_y = tile.get_pixel_coord(edge)

            piece_w = max_x - min_x
            piece_h = max_y - min_y
            dst_y = unfilled_y - piece_h
            overflows = dst_y < 0 or drawn_x + piece_w > canvas_w
            if piece_w <= 0 or piece_h <= 0 or overflows:
                raise InvalidTileError(
                    f"Tile {tile} does not line up with the region at {coord}"
                )

            canvas[dst_y:unfilled_y, drawn_x : drawn_x + piece_w] = tile.image[
                min_y:max_y, min_x:max_x
            ]

            drawn_x += piece_w
            row_height = piece_h

            if drawn_x < canvas_w:
                # Next tile east, same height within the tile row
                coord = tile.bottom_left.add(
                    tile.width, coord.northing - tile.bottom_left.northing
                )

        unfilled_y -= row_height

        if unfilled_y > 0:
            # Next tile row north, snapped back onto the tile grid
            row_start = row_start.add(0, tile.height)
            aligned = row_start.align(tile.height)
            row_start = row_start.add(0, aligned.northing - row_start.northing)

    return Texture(
        image=canvas,
        bottom_left=bottom_left,
        width=width,
        height=height,
        precision=precision,
        pixel_precision=first.pixel_precision,
    )


# ---------------------------------------------------------------------------
# Texture map
# ---------------------------------------------------------------------------
def generate_texture_map(
    texture: Texture, surface: Surface, *, north_to_south: bool = False
) -> TextureMap:
    """Assign each surface sample a (u, v) coordinate into the texture.

    u runs 0 -> 1 west to east; v runs 0 -> 1 along the surface's row order,
    flipped when `north_to_south` differs from the surface's orientation.
    """
    u = np.linspace(0.0, 1.0, surface.columns)
    v = np.linspace(0.0, 1.0, surface.rows)
    if north_to_south != surface.north_to_south:
        v = 1.0 - v

    uu, vv = np.meshgrid(u, v)
    return TextureMap(
        surface=surface,
        texture=texture,
        north_to_south=north_to_south,
        tex_coords=np.stack([uu, vv], axis=-1),
    )
