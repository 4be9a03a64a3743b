"""Tests for region stitching."""

import numpy as np
import pytest

from canvascap.errors import InvalidRegion, RegionTooLarge, TileDecodeError, TileNetworkError
from canvascap.models.coords import CaptureRectangle, TileIndex
from canvascap.services.stitch_service import StitchService


def _assert_matches_source(raster, rect, pixel_at):
    arr = np.array(raster)
    for oy in range(rect.height):
        for ox in range(rect.width):
            assert tuple(arr[oy, ox]) == pixel_at(rect.left + ox, rect.top + oy), (ox, oy)


class TestValidateRegion:
    """Test size validation."""

    def test_too_wide(self, fake_fetcher):
        stitcher = StitchService(fake_fetcher)
        with pytest.raises(RegionTooLarge) as exc_info:
            stitcher.validate_region(CaptureRectangle(0, 0, 4096, 0))
        assert exc_info.value.width == 4097
        assert exc_info.value.limit == 4096

    def test_at_limit_ok(self, fake_fetcher):
        StitchService(fake_fetcher).validate_region(CaptureRectangle(0, 0, 4095, 4095))

    def test_pixel_budget(self, fake_fetcher):
        stitcher = StitchService(fake_fetcher, max_dimension=100, max_pixels=50)
        with pytest.raises(RegionTooLarge):
            stitcher.validate_region(CaptureRectangle(0, 0, 9, 9))

    def test_non_positive(self, fake_fetcher):
        with pytest.raises(InvalidRegion):
            StitchService(fake_fetcher).validate_region(CaptureRectangle(10, 10, 9, 10))


class TestPlan:
    """Test placement planning."""

    def test_single_tile(self, fake_fetcher):
        placements = StitchService(fake_fetcher).plan(CaptureRectangle(1010, 2020, 1050, 2060))
        assert [p.tile for p in placements] == [TileIndex(1, 2)]

    def test_four_tiles_row_major(self, fake_fetcher):
        placements = StitchService(fake_fetcher).plan(CaptureRectangle(995, 995, 1005, 1005))
        assert [p.tile for p in placements] == [
            TileIndex(0, 0), TileIndex(1, 0), TileIndex(0, 1), TileIndex(1, 1),
        ]


class TestStitch:
    """Test fetching and compositing."""

    @pytest.mark.asyncio
    async def test_concrete_scenario(self, fake_fetcher, pixel_at):
        rect = CaptureRectangle(1010, 2020, 1050, 2060)
        raster = await StitchService(fake_fetcher).stitch("https://tiles.test", rect)

        assert raster.size == (41, 41)
        assert raster.mode == "RGBA"
        assert fake_fetcher.calls == [TileIndex(1, 2)]
        _assert_matches_source(raster, rect, pixel_at)

    @pytest.mark.asyncio
    async def test_single_pixel_at_tile_corner(self, fake_fetcher, pixel_at):
        rect = CaptureRectangle(2999, 999, 2999, 999)
        raster = await StitchService(fake_fetcher).stitch("https://tiles.test", rect)

        assert raster.size == (1, 1)
        assert fake_fetcher.calls == [TileIndex(2, 0)]
        assert raster.getpixel((0, 0)) == pixel_at(2999, 999)

    @pytest.mark.asyncio
    async def test_four_tile_straddle(self, fake_fetcher, pixel_at):
        rect = CaptureRectangle(995, 995, 1005, 1005)
        raster = await StitchService(fake_fetcher).stitch("https://tiles.test", rect)

        assert raster.size == (11, 11)
        assert len(fake_fetcher.calls) == 4
        _assert_matches_source(raster, rect, pixel_at)
        # Quadrant seams come from different tiles
        assert raster.getpixel((4, 4))[2] != raster.getpixel((5, 5))[2]

    @pytest.mark.asyncio
    async def test_too_large_fetches_nothing(self, fake_fetcher):
        with pytest.raises(RegionTooLarge):
            await StitchService(fake_fetcher).stitch("https://tiles.test", CaptureRectangle(0, 0, 4096, 0))
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_fetch_error_aborts(self, fetcher_factory):
        failing = TileIndex(1, 0)
        fetcher = fetcher_factory(failures={failing: TileNetworkError(failing, "u", status_code=500)})
        with pytest.raises(TileNetworkError) as exc_info:
            await StitchService(fetcher).stitch("https://tiles.test", CaptureRectangle(995, 995, 1005, 1005))

        assert exc_info.value.tile == failing
        # Sequential: the tile after the failure is never requested
        assert fetcher.calls == [TileIndex(0, 0), TileIndex(1, 0)]

    @pytest.mark.asyncio
    async def test_decode_error_aborts(self, fetcher_factory):
        bad = TileIndex(0, 0)
        fetcher = fetcher_factory(failures={bad: TileDecodeError(bad, "u")})
        with pytest.raises(TileDecodeError):
            await StitchService(fetcher).stitch("https://tiles.test", CaptureRectangle(0, 0, 5, 5))

    @pytest.mark.asyncio
    async def test_missing_tile_fatal_by_default(self, fetcher_factory):
        gone = TileIndex(1, 1)
        fetcher = fetcher_factory(failures={gone: TileNetworkError(gone, "u", status_code=404)})
        with pytest.raises(TileNetworkError):
            await StitchService(fetcher).stitch("https://tiles.test", CaptureRectangle(995, 995, 1005, 1005))

    @pytest.mark.asyncio
    async def test_missing_tile_blank_when_enabled(self, fetcher_factory, pixel_at):
        gone = TileIndex(1, 1)
        fetcher = fetcher_factory(failures={gone: TileNetworkError(gone, "u", status_code=404)})
        stitcher = StitchService(fetcher, missing_tiles_blank=True)

        raster = await stitcher.stitch("https://tiles.test", CaptureRectangle(995, 995, 1005, 1005))

        assert raster.getpixel((10, 10)) == (0, 0, 0, 0)
        assert raster.getpixel((0, 0)) == pixel_at(995, 995)
        assert len(fetcher.calls) == 4

    @pytest.mark.asyncio
    async def test_small_tile_bitmap_leaves_transparent(self, fetcher_factory):
        # Server returned a 500px bitmap for a 1000px tile slot
        fetcher = fetcher_factory(size=500)
        raster = await StitchService(fetcher).stitch("https://tiles.test", CaptureRectangle(490, 0, 509, 0))

        assert raster.size == (20, 1)
        assert raster.getpixel((9, 0))[3] == 255
        assert raster.getpixel((10, 0)) == (0, 0, 0, 0)

    @pytest.mark.asyncio
    async def test_progress_callback(self, fake_fetcher):
        seen = []
        await StitchService(fake_fetcher).stitch(
            "https://tiles.test",
            CaptureRectangle(995, 995, 1005, 1005),
            progress_callback=lambda done, total, tile: seen.append((done, total, tile)),
        )
        assert [s[0] for s in seen] == [1, 2, 3, 4]
        assert all(s[1] == 4 for s in seen)
        assert seen[-1][2] == TileIndex(1, 1)

    @pytest.mark.asyncio
    async def test_custom_tile_size(self, fetcher_factory, pixel_at):
        fetcher = fetcher_factory(size=16)
        rect = CaptureRectangle(10, 10, 40, 20)
        raster = await StitchService(fetcher, tile_size=16).stitch("https://tiles.test", rect)

        assert raster.size == (31, 11)
        assert len(fetcher.calls) == 3 * 2
        arr = np.array(raster)
        for oy in range(rect.height):
            for ox in range(rect.width):
                assert tuple(arr[oy, ox]) == pixel_at(rect.left + ox, rect.top + oy, 16)
