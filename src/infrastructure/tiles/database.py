"""File-backed tile database with an LRU cache.

Shared lifecycle of every dataset adapter:
1) `open()` validates the data directory and loads the reference tile
2) The reference tile's size must equal the configured tile size
3) Its precision becomes the database precision
4) `get_tile()` aligns to the tile grid, consults the cache, and on a miss
   locates, loads and validates the file before caching it
   (size, corner and precision must all match the database)

Subclasses supply the file suffixes they understand and `_load_tile`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Generic, TypeVar

from domain.grid.value_objects import Distance, GridRef
from domain.tiles.cache import CacheStats, TileCache
from domain.tiles.errors import InvalidTileError
from domain.tiles.value_objects import Tile, TileCapability

from .config import DatabaseConfig
from .layout import find_tile_path

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

TileT = TypeVar("TileT", bound=Tile)
DatabaseT = TypeVar("DatabaseT", bound="CachedTileDatabase[Any]")


class CachedTileDatabase(ABC, Generic[TileT]):
    """Base class for datasets split into square tiles on disk.

    Parameters
    ----------
    config: DatabaseConfig
        Location, tile size and cache capacity. Use `open()` rather than
        constructing directly; it also discovers the precision.
    """

    capability: ClassVar[TileCapability]
    suffixes: ClassVar[tuple[str, ...]]

    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self._cache: TileCache[TileT] = TileCache(config.cache_capacity)
        self._precision: Distance | None = None

    @classmethod
    def open(
        cls: type[DatabaseT],
        root: Path | str,
        tile_size: Distance | None = None,
        **settings: Any,
    ) -> DatabaseT:
        """Open the dataset rooted at `root` (tiles live in `root/data`).

        Raises:
            FileNotFoundError: `root/data` does not exist
            NotADirectoryError: `root/data` is not a directory
            TileNotFoundError: The reference tile is missing
            InvalidTileError: The reference tile is not `tile_size` square
        """
        if tile_size is not None:
            settings["tile_size"] = tile_size
        config = DatabaseConfig(root=Path(root), **settings)

        data_dir = config.data_dir
        if not data_dir.exists():
            raise FileNotFoundError(str(data_dir))
        if not data_dir.is_dir():
            raise NotADirectoryError(f"{data_dir} should be a directory")

        database = cls(config)
        reference = database.get_tile(config.reference_ref)
        database._precision = reference.precision

        logger.info(
            "Opened %s database %s: tile size %d m, precision %d m",
            cls.capability.value,
            config.root.name,
            config.tile_size,
            reference.precision,
        )
        return database

    @property
    def precision(self) -> Distance:
        if self._precision is None:
            raise RuntimeError("Database precision is unknown until open() completes")
        return self._precision

    @property
    def tile_size(self) -> Distance:
        return self.config.tile_size

    @property
    def cache_stats(self) -> CacheStats:
        return self._cache.stats

    def get_tile(self, ref: GridRef) -> TileT:
        """Return the tile covering `ref`, from cache when possible.

        A failed lookup or load leaves the cache untouched.
        """
        key = ref.align(self.config.tile_size)

        tile = self._cache.read(key)
        if tile is not None:
            return tile

        path = find_tile_path(self.config.data_dir, key, self.suffixes)
        logger.debug("Loading tile %s from %s", key, path.name)
        tile = self._load_tile(path)
        self._check_tile(tile, key, path)

        self._cache.allocate(tile)
        return tile

    def _check_tile(self, tile: TileT, key: GridRef, path: Path) -> None:
        size = self.config.tile_size
        if tile.width != size or tile.height != size:
            raise InvalidTileError(
                f"Tile {path.name} is {tile.width}x{tile.height} m, "
                f"expected {size}x{size} m"
            )
        if tile.bottom_left != key:
            raise InvalidTileError(
                f"Tile {path.name} starts at {tile.bottom_left}, expected {key}"
            )
        # Unset only while open() loads the reference tile
        if self._precision is not None and tile.precision != self._precision:
            raise InvalidTileError(
                f"Tile {path.name} has precision {tile.precision} m, "
                f"database precision is {self._precision} m"
            )

    def describe(self) -> str:
        """One-line summary of the cache counters, also logged at DEBUG."""
        summary = f"Cache stats: {self._cache.stats}"
        logger.debug("%s\n%s", summary, self._cache.dump())
        return summary

    @abstractmethod
    def _load_tile(self, path: Path) -> TileT:
        """Read one tile file into a domain tile."""
