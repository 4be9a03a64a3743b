"""Tests for coordinate readout parsing."""

import pytest

from canvascap.models.coords import TileCoords
from canvascap.utils.readout import parse_coords, parse_readout


class TestParseReadout:
    """Test parsing of the 'last clicked pixel' text."""

    def test_standard_format(self):
        assert parse_readout("(Tl X: 1, Tl Y: 2, Px X: 3, Px Y: 4)") == TileCoords(1, 2, 3, 4)

    def test_case_and_spacing(self):
        assert parse_readout("tl x:1,tl y:  2, PX X: 30,   px y:40") == TileCoords(1, 2, 30, 40)

    def test_embedded_in_other_text(self):
        text = "Last clicked: (Tl X: 1052, Tl Y: 700, Px X: 999, Px Y: 0) copied"
        assert parse_readout(text) == TileCoords(1052, 700, 999, 0)

    @pytest.mark.parametrize(
        "text",
        [
            None,
            "",
            "No pixel selected",
            "(Tl X: -1, Tl Y: 2, Px X: 3, Px Y: 4)",
            "(Tl X: 1, Tl Y: 2, Px X: 3)",
            "(Tl X: a, Tl Y: 2, Px X: 3, Px Y: 4)",
        ],
    )
    def test_garbage_is_none(self, text):
        assert parse_readout(text) is None

    def test_offset_outside_tile_rejected(self):
        assert parse_readout("(Tl X: 1, Tl Y: 2, Px X: 1000, Px Y: 4)", tile_size=1000) is None
        assert parse_readout("(Tl X: 1, Tl Y: 2, Px X: 1000, Px Y: 4)") == TileCoords(1, 2, 1000, 4)


class TestParseCoords:
    """Test the CLI-friendly coordinate forms."""

    @pytest.mark.parametrize("text", ["1,2,10,20", " 1, 2, 10, 20 ", "1 2 10 20"])
    def test_plain_tuple(self, text):
        assert parse_coords(text) == TileCoords(1, 2, 10, 20)

    def test_readout_form_accepted(self):
        assert parse_coords("Tl X: 1, Tl Y: 2, Px X: 10, Px Y: 20") == TileCoords(1, 2, 10, 20)

    @pytest.mark.parametrize("text", ["1,2,10", "1,2,10,20,5", "x,y,z,w", ""])
    def test_invalid(self, text):
        assert parse_coords(text) is None
