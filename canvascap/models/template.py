"""Saved template records."""

import time
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .coords import TileCoords


class TemplateCoords(BaseModel):
    """Anchor of a template on the canvas (tile + in-tile pixel)."""

    tlx: int = Field(..., ge=0, description="Tile X")
    tly: int = Field(..., ge=0, description="Tile Y")
    px: int = Field(..., ge=0, description="Pixel X within tile")
    py: int = Field(..., ge=0, description="Pixel Y within tile")

    @classmethod
    def from_tile_coords(cls, coords: TileCoords) -> "TemplateCoords":
        return cls(tlx=coords.tile_x, tly=coords.tile_y, px=coords.px, py=coords.py)

    def to_tile_coords(self) -> TileCoords:
        return TileCoords(self.tlx, self.tly, self.px, self.py)


class Template(BaseModel):
    """A named image placed at fixed canvas coordinates."""

    name: str = Field(..., min_length=1, description="Display name (unique, case-insensitive)")
    filename: Optional[str] = Field(default=None, description="Original image filename")
    mime: str = Field(default="image/png", description="Image MIME type")
    data_url: str = Field(..., alias="dataUrl", description="Base64 data: URL of the image")
    coords: TemplateCoords
    created_at: int = Field(
        default_factory=lambda: int(time.time() * 1000),
        alias="createdAt",
        description="Creation time (epoch milliseconds)",
    )

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("data_url")
    @classmethod
    def require_data_url(cls, v: str) -> str:
        if not v.startswith("data:"):
            raise ValueError("data_url must be a data: URL")
        return v

    @property
    def key(self) -> str:
        """Normalized name used for uniqueness checks."""
        return normalize_name(self.name)

    @property
    def exact_key(self) -> str:
        """Identity used to drop exact duplicates on import."""
        c = self.coords
        return f"{c.tlx},{c.tly},{c.px},{c.py}::{self.filename or ''}::{len(self.data_url)}"

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()
