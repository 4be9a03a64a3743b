"""Image processing utilities."""

import base64
import mimetypes
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError


def new_raster(width: int, height: int) -> Image.Image:
    """Create a fully transparent RGBA raster."""
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def decode_image(data: bytes) -> Image.Image:
    """
    Decode an encoded image payload.

    Raises:
        ValueError: If the payload is not a readable image
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError(f"Not a valid image: {exc}") from exc


def encode_png(image: Image.Image) -> bytes:
    """Serialize an image to PNG bytes."""
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def file_to_data_url(path: Union[str, Path]) -> tuple[str, str]:
    """
    Read a file into a base64 data URL.

    Returns:
        (data_url, mime)
    """
    path = Path(path)
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}", mime


def data_url_to_bytes(data_url: str) -> bytes:
    """Decode the payload of a base64 data URL."""
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not payload:
        raise ValueError("Not a data URL")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return payload.encode("utf-8")
