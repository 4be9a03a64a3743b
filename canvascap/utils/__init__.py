"""Utility functions for canvas capture."""

from .image_utils import (
    decode_image,
    encode_png,
    new_raster,
)
from .readout import parse_coords, parse_readout
from .tile_math import (
    TILE_SIZE,
    clip_to_tile,
    coords_to_global,
    iter_tiles,
    normalize_rectangle,
    tile_range,
    tile_url,
    to_global,
    to_tile_local,
)

__all__ = [
    "decode_image",
    "encode_png",
    "new_raster",
    "parse_coords",
    "parse_readout",
    "TILE_SIZE",
    "clip_to_tile",
    "coords_to_global",
    "iter_tiles",
    "normalize_rectangle",
    "tile_range",
    "tile_url",
    "to_global",
    "to_tile_local",
]
