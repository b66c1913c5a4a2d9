"""Infrastructure adapters for the tiles bounded context.

File-backed tile databases for OS datasets, each caching loaded tiles.
Adapters exported for simplified imports.
"""

from .config import DatabaseConfig
from .database import CachedTileDatabase
from .layout import find_tile_path
from .raster_adapter import RasterDatabase, load_raster_tile
from .terrain50_adapter import Terrain50Database, open_tile, parse_asc_tile

__all__ = [
    "CachedTileDatabase",
    "DatabaseConfig",
    "RasterDatabase",
    "Terrain50Database",
    "find_tile_path",
    "load_raster_tile",
    "open_tile",
    "parse_asc_tile",
]
