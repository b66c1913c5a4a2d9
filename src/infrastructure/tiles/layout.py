"""On-disk layout of OS tiled datasets.

    <data_dir>/<square>/<SQUARE><digits>[anything].<suffix>

e.g. `data/tq/TQ28_OST50GRID_20230601.zip` for the 10 km tile TQ 28.
Directory and file names are matched case-insensitively.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from domain.grid.value_objects import GridRef
from domain.tiles.errors import TileNotFoundError


def _tile_pattern(ref: GridRef) -> re.Pattern[str]:
    # "TQ28" must not also match "TQ2845"
    return re.compile(rf"^{ref.tile}{ref.digits}(?![0-9])", re.IGNORECASE)


def find_tile_path(data_dir: Path, ref: GridRef, suffixes: Iterable[str]) -> Path:
    """Locate the file holding the tile whose bottom-left is `ref`.

    Entries are scanned in sorted order so the first match is deterministic
    when a directory holds several candidates.

    Raises:
        TileNotFoundError: No matching square directory or tile file
    """
    allowed = {s.lower() for s in suffixes}
    pattern = _tile_pattern(ref)
    square = ref.tile.lower()

    for square_dir in sorted(data_dir.iterdir()):
        if not square_dir.is_dir() or square_dir.name.lower() != square:
            continue
        for candidate in sorted(square_dir.iterdir()):
            if not candidate.is_file():
                continue
            if candidate.suffix.lower() in allowed and pattern.match(candidate.name):
                return candidate

    raise TileNotFoundError(ref)
