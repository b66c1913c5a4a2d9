"""Terrain Bounded Context - Error Hierarchy.

Custom exceptions for stitching surfaces and textures.
"""

from __future__ import annotations


class TerrainError(Exception):
    """Base error for terrain operations."""


class InvalidResolutionError(TerrainError):
    """Requested sampling does not line up with the dataset's native precision.

    Raised when a resolution is finer than, or not a multiple of, the
    database precision, or when tiles of differing precision would have to
    be mixed. No interpolation is ever attempted.

    Attributes:
        resolution: The requested sample spacing in metres
        precision: The database (or first tile) precision in metres
    """

    def __init__(self, message: str, resolution: int, precision: int) -> None:
        self.resolution = resolution
        self.precision = precision
        super().__init__(message)
