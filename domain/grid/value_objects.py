"""Grid Bounded Context - Value Objects.

Immutable representation of a British national grid reference.
All validation occurs at construction time via Pydantic.

The grid is a 5x5 arrangement of 500 km squares (first letter), each split
into 5x5 squares of 100 km (second letter). Letters run west to east, then
north to south, skipping "I". Offsets inside a 100 km square are whole metres.

Distances are plain integers counting metres so arithmetic stays exact.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.grid.errors import InvalidGridRefError, OutOfBoundsError

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
Distance = int  # signed whole metres

METRE: Distance = 1
KILOMETRE: Distance = 1000 * METRE
TILE_SIZE: Distance = 100 * KILOMETRE  # side of a lettered 100 km square

# ---------------------------------------------------------------------------
# Letter grid
# ---------------------------------------------------------------------------
GRID_CHARS = "ABCDEFGHJKLMNOPQRSTUVWXYZ"
_CELLS_PER_SIDE = 5  # letters per row/column at either level
GRID_SQUARES = _CELLS_PER_SIDE * _CELLS_PER_SIDE  # 100 km squares per side

_DIGITS = "0123456789"
_MAX_DIGITS_PER_AXIS = 5  # 5 digits per axis = 1 m resolution

ORIGIN_TILE = "SV"  # False origin of the national grid


def _square_indices(tile: str) -> tuple[int, int]:
    """Return (column from west, row from north) of a 100 km square.

    Both indices are in [0, GRID_SQUARES).
    """
    major = GRID_CHARS.index(tile[0])
    minor = GRID_CHARS.index(tile[1])
    major_row, major_col = divmod(major, _CELLS_PER_SIDE)
    minor_row, minor_col = divmod(minor, _CELLS_PER_SIDE)
    column = major_col * _CELLS_PER_SIDE + minor_col
    row = major_row * _CELLS_PER_SIDE + minor_row
    return column, row


def _square_letters(column: int, row: int) -> str:
    """Inverse of _square_indices."""
    major_col, minor_col = divmod(column, _CELLS_PER_SIDE)
    major_row, minor_row = divmod(row, _CELLS_PER_SIDE)
    return (
        GRID_CHARS[major_row * _CELLS_PER_SIDE + major_col]
        + GRID_CHARS[minor_row * _CELLS_PER_SIDE + minor_col]
    )


def carry(offset: Distance, modulus: Distance = TILE_SIZE) -> tuple[int, Distance]:
    """Split an offset into (whole squares, remainder in [0, modulus)).

    Floor division, so a negative offset borrows from the square to the
    west/south instead of truncating towards zero:

        >>> carry(-1)
        (-1, 99999)
    """
    squares, remainder = divmod(offset, modulus)
    return squares, remainder


_ORIGIN_COLUMN, _ORIGIN_ROW = _square_indices(ORIGIN_TILE)


# ---------------------------------------------------------------------------
# GridRef
# ---------------------------------------------------------------------------
class GridRef(BaseModel):
    """A point on the national grid (Value Object).

    Invariants:
        - tile is two letters drawn from GRID_CHARS
        - 0 <= easting < TILE_SIZE
        - 0 <= northing < TILE_SIZE

    Equality and hashing cover all three fields (Pydantic frozen model).
    """

    tile: str
    easting: Distance = Field(ge=0, lt=TILE_SIZE)
    northing: Distance = Field(ge=0, lt=TILE_SIZE)

    model_config = ConfigDict(frozen=True)

    @field_validator("tile")
    @classmethod
    def validate_tile(cls, value: str) -> str:
        if len(value) != 2 or any(c not in GRID_CHARS for c in value):
            raise ValueError(f"Invalid square '{value}'")
        return value

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------
    @classmethod
    def origin(cls) -> "GridRef":
        """South-west corner of the false origin square, SV 00."""
        return cls(tile=ORIGIN_TILE, easting=0, northing=0)

    @classmethod
    def parse(cls, text: str) -> "GridRef":
        """Parse a reference such as "SH 60986 54375", "st23" or "NT 5432 9876".

        Case and whitespace are ignored. The digit string is split in half;
        k digits per half means each unit is 10^(5-k) metres.

        Raises:
            InvalidGridRefError: Bad letters, non-numeric or odd-length digits
        """
        compact = "".join(text.upper().split())

        square = compact[:2]
        if len(square) != 2 or any(c not in GRID_CHARS for c in square):
            raise InvalidGridRefError(f"Invalid square '{square}'")

        numeric = compact[2:]
        if not numeric or any(c not in _DIGITS for c in numeric):
            raise InvalidGridRefError(f"Invalid digits '{numeric}'")
        if len(numeric) % 2 != 0:
            raise InvalidGridRefError(f"Need an even number of digits '{numeric}'")

        half = len(numeric) // 2
        if half > _MAX_DIGITS_PER_AXIS:
            raise InvalidGridRefError(
                f"At most {_MAX_DIGITS_PER_AXIS} digits per axis, got '{numeric}'"
            )

        unit = 10 ** (_MAX_DIGITS_PER_AXIS - half)
        return cls(
            tile=square,
            easting=int(numeric[:half]) * unit,
            northing=int(numeric[half:]) * unit,
        )

    # -----------------------------------------------------------------------
    # Formatting
    # -----------------------------------------------------------------------
    def digit_groups(self) -> tuple[str, str]:
        """Easting and northing digit groups, trimmed of shared trailing zeros.

        Zeros are removed from both groups together so the precision of the
        two axes stays equal, down to a single digit each.
        """
        digits = _MAX_DIGITS_PER_AXIS
        easting, northing = self.easting, self.northing
        while digits > 1 and easting % 10 == 0 and northing % 10 == 0:
            easting, northing, digits = easting // 10, northing // 10, digits - 1
        return f"{easting:0{digits}d}", f"{northing:0{digits}d}"

    @property
    def digits(self) -> str:
        """Both digit groups run together, as used in tile file names ("28")."""
        return "".join(self.digit_groups())

    def format(self) -> str:
        """Canonical string form, e.g. "sh6098654375" -> "SH 60986 54375"."""
        easting, northing = self.digit_groups()
        return f"{self.tile} {easting} {northing}"

    def __str__(self) -> str:
        return self.format()

    # -----------------------------------------------------------------------
    # Arithmetic
    # -----------------------------------------------------------------------
    def align(self, to: Distance) -> "GridRef":
        """Floor both offsets to a multiple of `to` (0 is treated as 1 m)."""
        if to < 0:
            raise ValueError(f"Alignment must not be negative: {to}")
        to = to or METRE
        return GridRef(
            tile=self.tile,
            easting=(self.easting // to) * to,
            northing=(self.northing // to) * to,
        )

    def add(self, east: Distance, north: Distance) -> "GridRef":
        """Offset by signed distances, carrying into neighbouring squares.

        Raises:
            OutOfBoundsError: The result lies outside the lettered grid
        """
        squares_east, easting = carry(self.easting + east)
        squares_north, northing = carry(self.northing + north)

        column, row = _square_indices(self.tile)
        column += squares_east
        row -= squares_north  # rows count from the north

        if not (0 <= column < GRID_SQUARES and 0 <= row < GRID_SQUARES):
            raise OutOfBoundsError(self, east, north)

        return GridRef(
            tile=_square_letters(column, row), easting=easting, northing=northing
        )

    @property
    def abs_easting(self) -> Distance:
        """Metres east of the false origin (SV 00)."""
        column, _ = _square_indices(self.tile)
        return (column - _ORIGIN_COLUMN) * TILE_SIZE + self.easting

    @property
    def abs_northing(self) -> Distance:
        """Metres north of the false origin (SV 00)."""
        _, row = _square_indices(self.tile)
        return (_ORIGIN_ROW - row) * TILE_SIZE + self.northing

    def sub(self, other: "GridRef") -> tuple[Distance, Distance]:
        """Return (east, north) metres from `other` to this reference."""
        return (
            self.abs_easting - other.abs_easting,
            self.abs_northing - other.abs_northing,
        )
