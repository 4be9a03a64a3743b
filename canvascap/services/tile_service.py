"""Canvas tile fetching over HTTP."""

import logging
from typing import Optional

import httpx
from PIL import Image

from ..errors import TileDecodeError, TileNetworkError
from ..models.coords import TileIndex
from ..utils.image_utils import decode_image
from ..utils.tile_math import tile_url

logger = logging.getLogger(__name__)


class TileService:
    """Service for downloading single canvas tiles."""

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize tile service.

        Args:
            timeout: Per-request timeout in seconds
            client: Pre-configured async client (mostly for tests)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch_tile(self, base_url: str, tile: TileIndex) -> Image.Image:
        """
        Download and decode one tile.

        Args:
            base_url: Tile server base URL
            tile: Tile to fetch

        Returns:
            RGBA PIL Image of the tile

        Raises:
            TileNetworkError: Transport failure or non-2xx response
            TileDecodeError: Payload is not an image
        """
        url = tile_url(base_url, tile)

        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TileNetworkError(tile, url, reason=str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise TileNetworkError(tile, url, status_code=response.status_code)

        try:
            image = decode_image(response.content)
        except ValueError as exc:
            raise TileDecodeError(tile, url) from exc

        logger.debug("Fetched tile %s (%dx%d)", tile, image.width, image.height)
        return image

    async def close(self):
        """Close the HTTP client."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
