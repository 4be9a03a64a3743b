"""Coordinate types for the tiled canvas.

Global pixel space is the canonical representation. Tile indices and
in-tile offsets are views derived from it when a tile URL or the external
tile/pixel notation is needed.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TileIndex:
    """Grid position of one square tile."""

    tile_x: int
    tile_y: int

    def __str__(self) -> str:
        return f"({self.tile_x},{self.tile_y})"


@dataclass(frozen=True)
class LocalPixel:
    """Offset of a pixel inside its tile."""

    px: int
    py: int


@dataclass(frozen=True)
class GlobalPixel:
    """A pixel in the single coordinate space spanning every tile."""

    gx: int
    gy: int


@dataclass(frozen=True)
class TileCoords:
    """Tile index plus in-tile offset, as shown by the coordinate readout."""

    tile_x: int
    tile_y: int
    px: int
    py: int

    @property
    def tile(self) -> TileIndex:
        return TileIndex(self.tile_x, self.tile_y)

    @property
    def local(self) -> LocalPixel:
        return LocalPixel(self.px, self.py)

    def __str__(self) -> str:
        return f"Tl X: {self.tile_x}, Tl Y: {self.tile_y}, Px X: {self.px}, Px Y: {self.py}"


@dataclass(frozen=True)
class CaptureRectangle:
    """Inclusive global-pixel rectangle, normalized so left <= right, top <= bottom."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1

    @property
    def top_left(self) -> GlobalPixel:
        return GlobalPixel(self.left, self.top)

    def __str__(self) -> str:
        return f"[{self.left},{self.top}]-[{self.right},{self.bottom}] {self.width}x{self.height}"


@dataclass(frozen=True)
class TilePlacement:
    """Where part of one tile lands in the output raster.

    The crop box ``(sx, sy, ex, ey)`` is in tile-local pixels with exclusive
    ``ex``/``ey``, matching ``PIL.Image.crop``. ``(dx, dy)`` is the paste
    offset in the output raster.
    """

    tile: TileIndex
    sx: int
    sy: int
    ex: int
    ey: int
    dx: int
    dy: int

    @property
    def width(self) -> int:
        return self.ex - self.sx

    @property
    def height(self) -> int:
        return self.ey - self.sy

    @property
    def crop_box(self) -> tuple[int, int, int, int]:
        return (self.sx, self.sy, self.ex, self.ey)

    @property
    def dest_box(self) -> tuple[int, int, int, int]:
        """Destination rectangle in the output raster (exclusive right/bottom)."""
        return (self.dx, self.dy, self.dx + self.width, self.dy + self.height)
