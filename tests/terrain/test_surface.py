"""Tests for generate_surface.

The in-memory elevation database stores `abs_easting + abs_northing` at each
sample, so every sample of a stitched surface is predictable regardless of
which tile it came from.
"""

from __future__ import annotations

import math

import numpy as np
import pytest
from pydantic import ValidationError

from domain.grid.errors import OutOfBoundsError
from domain.grid.value_objects import GridRef
from domain.terrain.errors import InvalidResolutionError
from domain.terrain.services import generate_surface, south_west_of
from domain.terrain.value_objects import Surface
from tests.conftest_utils import FakeElevationDatabase, cell_values

# Bottom-left of a 1 km tile, 2 km short of the SH/SJ boundary
SOUTH_WEST = GridRef(tile="SH", easting=98000, northing=54000)


def test_shape_and_values_across_2x1_tile_seam(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 2000, 1000)

    assert surface.data.shape == (21, 41)
    np.testing.assert_array_equal(surface.data, cell_values(SOUTH_WEST, 21, 41, 50))
    assert surface.resolution == 50
    assert surface.north_to_south is False


def test_seam_across_100km_squares(elevation_db):
    # 3 km wide from SH 98000: runs into SJ
    surface = generate_surface(elevation_db, SOUTH_WEST, 3000, 500)

    np.testing.assert_array_equal(surface.data, cell_values(SOUTH_WEST, 11, 61, 50))
    # Values keep increasing by one precision step across the boundary
    assert np.all(np.diff(surface.data[0]) == 50)


def test_min_max_tracked(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 2000, 1000)
    base = SOUTH_WEST.abs_easting + SOUTH_WEST.abs_northing
    assert surface.min_value == base
    assert surface.max_value == base + 2000 + 1000


def test_coarser_resolution(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 2000, 1000, resolution=100)

    assert surface.data.shape == (11, 21)
    np.testing.assert_array_equal(surface.data, cell_values(SOUTH_WEST, 11, 21, 100))


def test_resolution_defaults_to_precision(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 100, 100)
    assert surface.resolution == elevation_db.precision
    assert surface.data.shape == (3, 3)


def test_resolution_finer_than_precision_raises(elevation_db):
    with pytest.raises(InvalidResolutionError, match="at least") as exc_info:
        generate_surface(elevation_db, SOUTH_WEST, 1000, 1000, resolution=25)
    assert exc_info.value.resolution == 25
    assert exc_info.value.precision == 50


def test_resolution_not_multiple_raises(elevation_db):
    with pytest.raises(InvalidResolutionError, match="multiple of"):
        generate_surface(elevation_db, SOUTH_WEST, 1000, 1000, resolution=75)


def test_zero_size_gives_single_sample(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 0, 0)
    assert surface.data.shape == (1, 1)


def test_negative_size_raises(elevation_db):
    with pytest.raises(ValueError):
        generate_surface(elevation_db, SOUTH_WEST, -50, 100)


def test_north_to_south_reverses_rows(elevation_db):
    south_first = generate_surface(elevation_db, SOUTH_WEST, 1000, 500)
    north_first = generate_surface(
        elevation_db, SOUTH_WEST, 1000, 500, north_to_south=True
    )

    assert north_first.north_to_south is True
    np.testing.assert_array_equal(north_first.data, south_first.data[::-1])
    assert north_first.min_value == south_first.min_value
    assert north_first.max_value == south_first.max_value


def test_nodata_ignored_in_bounds():
    nan_tile = SOUTH_WEST.add(1000, 0)
    db = FakeElevationDatabase(nan_tiles=[nan_tile])

    surface = generate_surface(db, SOUTH_WEST, 2000, 500)

    # Columns 20-39 fall in the NoData tile, column 40 in SJ
    assert np.isnan(surface.data[:, 20:40]).all()
    assert not np.isnan(surface.data[:, 40]).any()
    base = SOUTH_WEST.abs_easting + SOUTH_WEST.abs_northing
    assert surface.min_value == base
    assert surface.max_value == base + 2000 + 500


def test_all_nodata_gives_nan_bounds():
    db = FakeElevationDatabase(nan_tiles=[SOUTH_WEST])
    surface = generate_surface(db, SOUTH_WEST, 500, 500)
    assert math.isnan(surface.min_value)
    assert math.isnan(surface.max_value)


def test_region_off_grid_raises(elevation_db):
    corner = GridRef(tile="EE", easting=99500, northing=0)
    with pytest.raises(OutOfBoundsError):
        generate_surface(elevation_db, corner, 1000, 0)


def test_image_database_rejected(image_db):
    with pytest.raises(TypeError):
        generate_surface(image_db, SOUTH_WEST, 1000, 1000)


def test_surface_from_centre(elevation_db, summit):
    south_west = south_west_of(summit, 2000, 2000)
    assert south_west == GridRef(tile="SH", easting=59986, northing=53375)

    surface = generate_surface(elevation_db, south_west, 2000, 2000)
    assert surface.data.shape == (41, 41)


def test_surface_is_immutable(elevation_db):
    surface = generate_surface(elevation_db, SOUTH_WEST, 500, 500)
    with pytest.raises(ValueError):
        surface.data[0, 0] = 1.0
    with pytest.raises(ValidationError):
        surface.resolution = 100


# ---------------------------------------------------------------------------
# Surface transforms
# ---------------------------------------------------------------------------
def make_surface() -> Surface:
    return Surface(
        data=np.array([[1.0, 2.0], [3.0, 5.0]]),
        min_value=1.0,
        max_value=5.0,
        resolution=50,
    )


def test_adjust_max_shifts_samples():
    adjusted = make_surface().adjust_max(10.0)

    np.testing.assert_array_equal(adjusted.data, [[6.0, 7.0], [8.0, 10.0]])
    assert (adjusted.min_value, adjusted.max_value) == (6.0, 10.0)
    assert not adjusted.data.flags.writeable


def test_scale_multiplies_samples():
    scaled = make_surface().scale(2.0)

    np.testing.assert_array_equal(scaled.data, [[2.0, 4.0], [6.0, 10.0]])
    assert (scaled.min_value, scaled.max_value) == (2.0, 10.0)


def test_negative_scale_swaps_bounds():
    scaled = make_surface().scale(-1.0)
    assert (scaled.min_value, scaled.max_value) == (-5.0, -1.0)


def test_transforms_leave_original_untouched():
    surface = make_surface()
    surface.scale(3.0)
    surface.adjust_max(0.0)
    np.testing.assert_array_equal(surface.data, [[1.0, 2.0], [3.0, 5.0]])
