"""Tiles Bounded Context.

Responsible for addressable pieces of a dataset and keeping them in memory:
- Value Objects: Tile, ElevationTile, ImageTile
- Cache: TileCache (fixed capacity, least-recently-used eviction)
- Ports: TileDatabase, ElevationDatabase, ImageDatabase
"""
