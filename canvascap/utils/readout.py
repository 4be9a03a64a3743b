"""Parsing of the third-party "last clicked pixel" readout."""

import re
from typing import Optional, Union

from ..models.coords import TileCoords

# e.g. "(Tl X: 1, Tl Y: 2, Px X: 3, Px Y: 4)"
READOUT_PATTERN = re.compile(
    r"Tl X:\s*(\d+),\s*Tl Y:\s*(\d+),\s*Px X:\s*(\d+),\s*Px Y:\s*(\d+)",
    re.IGNORECASE,
)

# Bare "tx,ty,px,py" as typed on the command line
TUPLE_PATTERN = re.compile(r"^\s*(\d+)\s*[,\s]\s*(\d+)\s*[,\s]\s*(\d+)\s*[,\s]\s*(\d+)\s*$")


def parse_readout(text: Optional[str], tile_size: Optional[int] = None) -> Optional[TileCoords]:
    """
    Parse readout text into tile coordinates.

    Args:
        text: Raw readout text (may be None or garbage)
        tile_size: If given, local offsets must fall inside the tile

    Returns:
        TileCoords, or None if the text is not a valid coordinate tuple
    """
    if not text:
        return None
    match = READOUT_PATTERN.search(text)
    if match is None:
        return None
    return _build(match.groups(), tile_size)


def parse_coords(text: str, tile_size: Optional[int] = None) -> Optional[TileCoords]:
    """Parse either the readout form or a plain ``tx,ty,px,py`` tuple."""
    coords = parse_readout(text, tile_size)
    if coords is not None:
        return coords
    match = TUPLE_PATTERN.match(text or "")
    if match is None:
        return None
    return _build(match.groups(), tile_size)


def _build(groups: tuple[Union[str, None], ...], tile_size: Optional[int]) -> Optional[TileCoords]:
    tile_x, tile_y, px, py = (int(g) for g in groups)
    if tile_size is not None and (px >= tile_size or py >= tile_size):
        return None
    return TileCoords(tile_x, tile_y, px, py)
