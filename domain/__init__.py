"""OS Terrain Domain Layer.

This package contains the core logic organized by bounded contexts:
- grid: National grid references, parsing, alignment and carry arithmetic
- tiles: Tile value objects, the LRU tile cache, tile database ports
- terrain: Stitching tiles into height surfaces and composite textures
"""

# Imports alphabetized per project style (isort)
from domain import grid, terrain, tiles

__all__ = ["grid", "terrain", "tiles"]
