"""Canvas capture services."""

from .tile_service import TileService
from .stitch_service import StitchService
from .pick_session import PickSession, PointerGesture, SessionState, SurfaceRect
from .capture_service import CaptureArtifact, CaptureLease, CaptureService, DirectorySink
from .template_library import TemplateLibrary
from .style_service import apply_dark_style

__all__ = [
    "TileService",
    "StitchService",
    "PickSession",
    "PointerGesture",
    "SessionState",
    "SurfaceRect",
    "CaptureArtifact",
    "CaptureLease",
    "CaptureService",
    "DirectorySink",
    "TemplateLibrary",
    "apply_dark_style",
]
