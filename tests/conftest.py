"""Shared test fixtures."""

import asyncio

import numpy as np
import pytest
from PIL import Image

from canvascap.models.coords import TileIndex
from canvascap.services.pick_session import SurfaceRect
from canvascap.utils.tile_math import to_tile_local

TILE = 1000


def tile_code(tile: TileIndex) -> int:
    return (tile.tile_x * 7 + tile.tile_y * 13 + 1) % 256


def make_tile(tile: TileIndex, size: int = TILE) -> Image.Image:
    """Tile whose pixels encode their own position: R=px, G=py (mod 256), B=tile code."""
    ramp = (np.arange(size) % 256).astype(np.uint8)
    arr = np.zeros((size, size, 4), dtype=np.uint8)
    arr[:, :, 0] = ramp[np.newaxis, :]
    arr[:, :, 1] = ramp[:, np.newaxis]
    arr[:, :, 2] = tile_code(tile)
    arr[:, :, 3] = 255
    return Image.fromarray(arr, "RGBA")


def expected_pixel(gx: int, gy: int, size: int = TILE) -> tuple[int, int, int, int]:
    """Pixel value make_tile() produces at a global position."""
    c = to_tile_local(gx, gy, size)
    return (c.px % 256, c.py % 256, tile_code(c.tile), 255)


class FakeTileFetcher:
    """Records fetches and serves synthetic tiles."""

    def __init__(self, size: int = TILE, failures: dict = None):
        self.size = size
        self.failures = failures or {}
        self.calls: list[TileIndex] = []
        self.base_urls: list[str] = []

    async def fetch_tile(self, base_url: str, tile: TileIndex) -> Image.Image:
        self.calls.append(tile)
        self.base_urls.append(base_url)
        if tile in self.failures:
            raise self.failures[tile]
        return make_tile(tile, self.size)


@pytest.fixture
def fake_fetcher():
    """Tile fetcher serving 1000px synthetic tiles."""
    return FakeTileFetcher()


@pytest.fixture
def surface():
    """Canvas element occupying (100,100)-(900,700) in the viewport."""
    return SurfaceRect(left=100, top=100, width=800, height=600)


class Readout:
    """Mutable stand-in for the third-party coordinate readout."""

    def __init__(self, text=None):
        self.text = text
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.text

    def show(self, tile_x, tile_y, px, py):
        self.text = f"(Tl X: {tile_x}, Tl Y: {tile_y}, Px X: {px}, Px Y: {py})"


@pytest.fixture
def readout():
    return Readout()


@pytest.fixture
def wait_for_state():
    """Yield to the event loop until a pick session reaches a state."""

    async def _wait(session, state, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while session.state is not state:
            if loop.time() > deadline:
                raise AssertionError(f"session stuck in {session.state}, expected {state}")
            await asyncio.sleep(0.001)

    return _wait


@pytest.fixture
def solid_red_image():
    """64x64 solid red RGBA image."""
    return Image.new("RGBA", (64, 64), (255, 0, 0, 255))


@pytest.fixture
def red_png(tmp_path, solid_red_image):
    """Small PNG file on disk."""
    path = tmp_path / "red.png"
    solid_red_image.save(path)
    return path


@pytest.fixture
def tile_image():
    """Factory for synthetic tiles (see make_tile)."""
    return make_tile


@pytest.fixture
def pixel_at():
    """Expected synthetic pixel at a global position."""
    return expected_pixel


@pytest.fixture
def fetcher_factory():
    """Build a FakeTileFetcher with custom size or failures."""
    return FakeTileFetcher
