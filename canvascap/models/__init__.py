"""Data models for canvas capture."""

from .coords import (
    CaptureRectangle,
    GlobalPixel,
    LocalPixel,
    TileCoords,
    TileIndex,
    TilePlacement,
)
from .template import Template, TemplateCoords

__all__ = [
    "CaptureRectangle",
    "GlobalPixel",
    "LocalPixel",
    "TileCoords",
    "TileIndex",
    "TilePlacement",
    "Template",
    "TemplateCoords",
]
