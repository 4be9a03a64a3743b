"""Configuration management for canvas capture."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Application-level configuration."""

    # Tile source
    tile_base_url: str = Field(
        default="https://backend.wplace.live/files/s0/tiles",
        description="Base URL serving {base}/{tile_x}/{tile_y}.png",
    )
    tile_size: int = Field(default=1000, gt=0, description="Tile edge length in pixels")
    http_timeout: float = Field(default=30.0, gt=0, description="Per-request HTTP timeout (seconds)")

    # Capture limits
    max_dimension: int = Field(default=4096, gt=0, description="Maximum capture width or height")

    # Pick session
    readout_timeout: float = Field(
        default=6.0,
        gt=0,
        description="Seconds to wait for the coordinate readout to update after a click",
    )
    poll_interval: float = Field(default=0.1, gt=0, description="Readout polling interval (seconds)")

    # Directories
    output_dir: Path = Field(
        default=Path.cwd() / "captures",
        description="Directory captured images are written to",
    )
    library_path: Path = Field(
        default=Path.home() / ".config" / "canvascap" / "templates.json",
        description="JSON file holding the template library",
    )

    @property
    def max_pixels(self) -> int:
        """Pixel budget for a single capture."""
        return self.max_dimension * self.max_dimension

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from environment and defaults."""
        fields = cls.model_fields
        return cls(
            tile_base_url=os.environ.get("CANVASCAP_TILE_BASE_URL", fields["tile_base_url"].default),
            max_dimension=int(os.environ.get("CANVASCAP_MAX_DIMENSION", fields["max_dimension"].default)),
            readout_timeout=float(os.environ.get("CANVASCAP_READOUT_TIMEOUT", fields["readout_timeout"].default)),
            output_dir=Path(os.environ.get("CANVASCAP_OUTPUT_DIR", str(fields["output_dir"].default))),
            library_path=Path(os.environ.get("CANVASCAP_LIBRARY_PATH", str(fields["library_path"].default))),
        )

    def ensure_directories(self) -> None:
        """Create necessary directories."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.library_path.parent.mkdir(parents=True, exist_ok=True)


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config
