"""Root pytest configuration for all tests.

Provides in-memory tile databases for domain tests. Adapter tests build
their datasets on disk under `tmp_path` using tests/conftest_utils.py.
"""

import pytest

from domain.grid.value_objects import GridRef
from tests.conftest_utils import FakeElevationDatabase, FakeImageDatabase


@pytest.fixture
def elevation_db() -> FakeElevationDatabase:
    """1 km tiles sampled every 50 m; value = abs easting + abs northing."""
    return FakeElevationDatabase(tile_size=1000, precision=50)


@pytest.fixture
def image_db() -> FakeImageDatabase:
    """1 km tiles, 50 m cells, one pixel per cell."""
    return FakeImageDatabase(tile_size=1000, precision=50, pixel_precision=1)


@pytest.fixture
def summit() -> GridRef:
    """Summit of Snowdon."""
    return GridRef.parse("SH 60986 54375")
