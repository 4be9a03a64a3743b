"""Region stitching: rebuild a rectangular crop of the canvas from its tiles."""

import logging
from typing import Callable, Optional, Protocol

from PIL import Image

from ..errors import InvalidRegion, RegionTooLarge, TileNetworkError
from ..models.coords import CaptureRectangle, TileIndex, TilePlacement
from ..utils.image_utils import new_raster
from ..utils.tile_math import TILE_SIZE, clip_to_tile, iter_tiles

logger = logging.getLogger(__name__)


class TileFetcher(Protocol):
    async def fetch_tile(self, base_url: str, tile: TileIndex) -> Image.Image: ...


ProgressCallback = Callable[[int, int, TileIndex], None]


class StitchService:
    """Fetches the tiles under a capture rectangle and composites them."""

    def __init__(
        self,
        fetcher: TileFetcher,
        tile_size: int = TILE_SIZE,
        max_dimension: int = 4096,
        max_pixels: Optional[int] = None,
        missing_tiles_blank: bool = False,
    ):
        """
        Initialize stitch service.

        Args:
            fetcher: Source of decoded tile bitmaps
            tile_size: Tile edge length in pixels
            max_dimension: Largest allowed capture width or height
            max_pixels: Largest allowed width*height (default max_dimension squared)
            missing_tiles_blank: Leave a tile's footprint transparent on HTTP 404
                instead of failing the capture
        """
        self.fetcher = fetcher
        self.tile_size = tile_size
        self.max_dimension = max_dimension
        self.max_pixels = max_pixels if max_pixels is not None else max_dimension * max_dimension
        self.missing_tiles_blank = missing_tiles_blank

    def validate_region(self, rect: CaptureRectangle) -> None:
        """Reject rectangles with a non-positive or over-budget size."""
        width, height = rect.width, rect.height
        if width <= 0 or height <= 0:
            raise InvalidRegion(width, height)
        if width > self.max_dimension or height > self.max_dimension:
            raise RegionTooLarge(width, height, self.max_dimension)
        if width * height > self.max_pixels:
            raise RegionTooLarge(width, height, self.max_pixels)

    def plan(self, rect: CaptureRectangle) -> list[TilePlacement]:
        """
        Work out which part of which tile goes where.

        Tiles are listed row by row (Y outer, X inner). Tiles whose
        intersection with the rectangle is empty are left out.
        """
        placements = []
        for tile in iter_tiles(rect, self.tile_size):
            placement = clip_to_tile(rect, tile, self.tile_size)
            if placement is None:
                continue
            placements.append(placement)
        return placements

    async def stitch(
        self,
        base_url: str,
        rect: CaptureRectangle,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Image.Image:
        """
        Build the output raster for a capture rectangle.

        Tiles are fetched one at a time; the next request is only issued
        once the previous tile has been pasted. Any fetch failure aborts
        the whole stitch.

        Args:
            base_url: Tile server base URL
            rect: Normalized capture rectangle
            progress_callback: Optional callback(done, total, tile)

        Returns:
            RGBA image of exactly rect.width x rect.height
        """
        self.validate_region(rect)

        placements = self.plan(rect)
        logger.info("Stitching %s from %d tile(s)", rect, len(placements))

        raster = new_raster(rect.width, rect.height)

        for done, placement in enumerate(placements, start=1):
            try:
                tile_image = await self.fetcher.fetch_tile(base_url, placement.tile)
            except TileNetworkError as exc:
                if not (self.missing_tiles_blank and exc.status_code == 404):
                    raise
                logger.warning("Tile %s missing, leaving its area blank", placement.tile)
            else:
                self._composite(raster, tile_image, placement)

            if progress_callback:
                progress_callback(done, len(placements), placement.tile)

        return raster

    def _composite(self, raster: Image.Image, tile_image: Image.Image, placement: TilePlacement) -> None:
        """Copy the placement's crop of a tile into the raster, pixel for pixel."""
        if tile_image.mode != "RGBA":
            tile_image = tile_image.convert("RGBA")
        region = tile_image.crop(placement.crop_box)
        raster.paste(region, (placement.dx, placement.dy))
