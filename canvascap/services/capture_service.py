"""Capture orchestration: corners in, downloadable PNG out."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from ..errors import (
    CaptureBusy,
    CaptureCancelled,
    CaptureError,
    InvalidRegion,
    ReadoutTimeout,
    RegionTooLarge,
    TileDecodeError,
    TileNetworkError,
)
from ..models.coords import CaptureRectangle, GlobalPixel
from ..utils.image_utils import encode_png
from ..utils.tile_math import normalize_rectangle, to_tile_local
from .pick_session import PickSession
from .stitch_service import ProgressCallback, StitchService

logger = logging.getLogger(__name__)


class ArtifactSink(Protocol):
    def save(self, data: bytes, filename: str) -> Union[Path, str]: ...


class DirectorySink:
    """Writes captured PNGs into a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def save(self, data: bytes, filename: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_bytes(data)
        return path


@dataclass
class CaptureArtifact:
    """Result of a successful capture."""

    rect: CaptureRectangle
    filename: str
    data: bytes = field(repr=False)
    location: Union[Path, str, None] = None

    @property
    def size(self) -> tuple[int, int]:
        return (self.rect.width, self.rect.height)


class CaptureLease:
    """Explicit ownership of the one capture allowed at a time."""

    def __init__(self):
        self.owner: Optional[str] = None

    @property
    def held(self) -> bool:
        return self.owner is not None

    def acquire(self, owner: str) -> None:
        if self.owner is not None:
            raise CaptureBusy()
        self.owner = owner

    def release(self, owner: str) -> None:
        if self.owner == owner:
            self.owner = None


def capture_filename(rect: CaptureRectangle, tile_size: int, when: Optional[datetime] = None) -> str:
    """Generate the artifact name from the top-left corner, size and time.

    Returns:
        Filename like 'capture_1-2_10-20_41x41_20240201_143052.png'
    """
    origin = rect.top_left
    corner = to_tile_local(origin.gx, origin.gy, tile_size)
    tile, local = corner.tile, corner.local
    timestamp = (when or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return (
        f"capture_{tile.tile_x}-{tile.tile_y}_{local.px}-{local.py}"
        f"_{rect.width}x{rect.height}_{timestamp}.png"
    )


def describe_failure(error: CaptureError) -> str:
    """Short user-facing description of a capture failure."""
    if isinstance(error, ReadoutTimeout):
        return (
            f"No pixel coordinates appeared within {error.timeout:g}s. "
            "Click a pixel on the canvas so the coordinates update, then try again."
        )
    if isinstance(error, RegionTooLarge):
        return f"Region {error.width}x{error.height} is too large (limit {error.limit}px)."
    if isinstance(error, InvalidRegion):
        return f"Region {error.width}x{error.height} is empty."
    if isinstance(error, TileNetworkError):
        detail = f"HTTP {error.status_code}" if error.status_code is not None else "network error"
        return f"Could not download tile {error.tile} ({detail})."
    if isinstance(error, TileDecodeError):
        return f"Tile {error.tile} is not a valid image."
    return str(error)


class CaptureService:
    """Drives one capture at a time from corner picks to a saved artifact."""

    def __init__(
        self,
        stitcher: StitchService,
        sink: ArtifactSink,
        notify: Optional[Callable[[str], None]] = None,
        lease: Optional[CaptureLease] = None,
    ):
        """
        Initialize capture service.

        Args:
            stitcher: Region stitcher (also provides tile size and limits)
            sink: Receives the encoded PNG and its filename
            notify: Called with a message when a capture fails
            lease: Shared ownership token; pass the same lease to several
                services to keep them from capturing concurrently
        """
        self.stitcher = stitcher
        self.sink = sink
        self.notify = notify
        self.lease = lease or CaptureLease()

    @property
    def busy(self) -> bool:
        return self.lease.held

    async def run(self, session: PickSession, base_url: str) -> Optional[CaptureArtifact]:
        """
        Capture trigger entry point.

        Cancellation is silent. Every other failure is passed to notify().

        Returns:
            The artifact, or None if the capture did not complete
        """
        try:
            return await self.capture(session, base_url)
        except CaptureCancelled:
            logger.info("Capture cancelled")
            return None
        except CaptureError as exc:
            logger.info("Capture failed: %s", exc)
            if self.notify:
                self.notify(describe_failure(exc))
            return None

    async def capture(
        self,
        session: PickSession,
        base_url: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> CaptureArtifact:
        """Pick two corners with the session, then stitch and save."""
        owner = f"session-{id(session):x}"
        self.lease.acquire(owner)
        try:
            first, second = await session.run("Select capture corners")
            return await self._capture_rect(normalize_rectangle(first, second), base_url, progress_callback)
        finally:
            self.lease.release(owner)

    async def capture_corners(
        self,
        first: GlobalPixel,
        second: GlobalPixel,
        base_url: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> CaptureArtifact:
        """Capture the rectangle between two known corners."""
        owner = "corners"
        self.lease.acquire(owner)
        try:
            return await self._capture_rect(normalize_rectangle(first, second), base_url, progress_callback)
        finally:
            self.lease.release(owner)

    async def _capture_rect(
        self,
        rect: CaptureRectangle,
        base_url: str,
        progress_callback: Optional[ProgressCallback],
    ) -> CaptureArtifact:
        self.stitcher.validate_region(rect)
        logger.info("Capturing %s from %s", rect, base_url)

        raster = await self.stitcher.stitch(base_url, rect, progress_callback)
        data = encode_png(raster)
        raster.close()

        filename = capture_filename(rect, self.stitcher.tile_size)
        location = self.sink.save(data, filename)
        logger.info("Saved capture %s", location)

        return CaptureArtifact(rect=rect, filename=filename, data=data, location=location)
