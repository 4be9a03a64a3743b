"""Exceptions raised by capture and template operations."""

from typing import Optional

from .models.coords import TileIndex


class CaptureError(Exception):
    """Base class for anything that aborts a capture."""


class CaptureCancelled(CaptureError):
    """The user aborted the pick session."""

    def __init__(self, message: str = "Capture cancelled"):
        super().__init__(message)


class ReadoutTimeout(CaptureError):
    """The coordinate readout never changed to a parseable value in time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Coordinate readout did not update within {timeout:g}s")


class InvalidRegion(CaptureError):
    """Capture rectangle has a non-positive dimension."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Invalid capture region {width}x{height}")


class RegionTooLarge(CaptureError):
    """Capture rectangle exceeds the configured size cap."""

    def __init__(self, width: int, height: int, limit: int):
        self.width = width
        self.height = height
        self.limit = limit
        super().__init__(f"Capture region {width}x{height} exceeds the {limit}px limit")


class TileFetchError(CaptureError):
    """A tile could not be turned into a bitmap."""

    def __init__(self, message: str, tile: TileIndex, url: str):
        self.tile = tile
        self.url = url
        super().__init__(message)


class TileNetworkError(TileFetchError):
    """Transport failure or non-2xx response for a tile."""

    def __init__(self, tile: TileIndex, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.status_code = status_code
        if status_code is not None:
            detail = f"HTTP {status_code}"
        else:
            detail = reason or "transport error"
        super().__init__(f"Failed to fetch tile ({tile.tile_x},{tile.tile_y}): {detail}", tile, url)


class TileDecodeError(TileFetchError):
    """Tile payload is not a decodable image."""

    def __init__(self, tile: TileIndex, url: str):
        super().__init__(f"Tile ({tile.tile_x},{tile.tile_y}) is not a valid image", tile, url)


class CaptureBusy(CaptureError):
    """A capture is already in progress."""

    def __init__(self):
        super().__init__("A capture is already in progress")


class SessionClosed(CaptureError):
    """A finished or cancelled pick session was reused."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Pick session already {state}")


class TemplateError(Exception):
    """Base class for template library failures."""


class DuplicateTemplateName(TemplateError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'A template named "{name}" already exists')


class TemplateNotFound(TemplateError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'No template named "{name}"')


class InvalidTemplateImport(TemplateError):
    """Import payload is malformed or holds no usable templates."""


class InvalidTemplateRecord(TemplateError):
    """A stored or newly built template record fails validation."""
