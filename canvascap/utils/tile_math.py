"""Tile and global-pixel coordinate utilities."""

from typing import Iterator, Optional

from ..models.coords import (
    CaptureRectangle,
    GlobalPixel,
    TileCoords,
    TileIndex,
    TilePlacement,
)

# Edge length of one canvas tile in pixels
TILE_SIZE = 1000


def to_global(tile_x: int, tile_y: int, px: int, py: int, tile_size: int = TILE_SIZE) -> GlobalPixel:
    """
    Convert a tile index plus in-tile offset to a global pixel.

    Args:
        tile_x: Tile column (>= 0)
        tile_y: Tile row (>= 0)
        px: X offset inside the tile, in [0, tile_size)
        py: Y offset inside the tile, in [0, tile_size)
        tile_size: Tile edge length

    Returns:
        GlobalPixel
    """
    if tile_x < 0 or tile_y < 0:
        raise ValueError(f"Tile index must be non-negative, got ({tile_x},{tile_y})")
    if not (0 <= px < tile_size and 0 <= py < tile_size):
        raise ValueError(f"Pixel offset ({px},{py}) outside tile of size {tile_size}")
    return GlobalPixel(tile_x * tile_size + px, tile_y * tile_size + py)


def coords_to_global(coords: TileCoords, tile_size: int = TILE_SIZE) -> GlobalPixel:
    """Convert readout-style coordinates to a global pixel."""
    return to_global(coords.tile_x, coords.tile_y, coords.px, coords.py, tile_size)


def to_tile_local(gx: int, gy: int, tile_size: int = TILE_SIZE) -> TileCoords:
    """Split a global pixel into tile index and in-tile offset."""
    tile_x, px = divmod(gx, tile_size)
    tile_y, py = divmod(gy, tile_size)
    return TileCoords(tile_x, tile_y, px, py)


def normalize_rectangle(a: GlobalPixel, b: GlobalPixel) -> CaptureRectangle:
    """Build the inclusive rectangle spanned by two corners given in any order."""
    return CaptureRectangle(
        left=min(a.gx, b.gx),
        top=min(a.gy, b.gy),
        right=max(a.gx, b.gx),
        bottom=max(a.gy, b.gy),
    )


def tile_range(rect: CaptureRectangle, tile_size: int = TILE_SIZE) -> tuple[int, int, int, int]:
    """
    Inclusive tile index bounds covering a rectangle.

    Returns:
        (min_tile_x, min_tile_y, max_tile_x, max_tile_y)
    """
    return (
        rect.left // tile_size,
        rect.top // tile_size,
        rect.right // tile_size,
        rect.bottom // tile_size,
    )


def iter_tiles(rect: CaptureRectangle, tile_size: int = TILE_SIZE) -> Iterator[TileIndex]:
    """Yield every tile the rectangle overlaps, row by row (Y outer, X inner)."""
    min_x, min_y, max_x, max_y = tile_range(rect, tile_size)
    for tile_y in range(min_y, max_y + 1):
        for tile_x in range(min_x, max_x + 1):
            yield TileIndex(tile_x, tile_y)


def clip_to_tile(
    rect: CaptureRectangle,
    tile: TileIndex,
    tile_size: int = TILE_SIZE,
) -> Optional[TilePlacement]:
    """
    Intersect a tile's footprint with the capture rectangle.

    Args:
        rect: Capture rectangle (inclusive)
        tile: Tile to clip
        tile_size: Tile edge length

    Returns:
        TilePlacement with the source crop box and destination offset,
        or None if the tile does not overlap the rectangle.
    """
    tile_left = tile.tile_x * tile_size
    tile_top = tile.tile_y * tile_size

    sx = max(0, rect.left - tile_left)
    sy = max(0, rect.top - tile_top)
    ex = min(tile_size, rect.right + 1 - tile_left)
    ey = min(tile_size, rect.bottom + 1 - tile_top)

    if ex - sx <= 0 or ey - sy <= 0:
        return None

    return TilePlacement(
        tile=tile,
        sx=sx,
        sy=sy,
        ex=ex,
        ey=ey,
        dx=tile_left + sx - rect.left,
        dy=tile_top + sy - rect.top,
    )


def tile_url(base_url: str, tile: TileIndex) -> str:
    """Address of a tile PNG under the tile server base URL."""
    return f"{base_url.rstrip('/')}/{tile.tile_x}/{tile.tile_y}.png"
