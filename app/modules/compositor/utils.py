"""
Color and encoding helpers for the compositor.
"""
import re
from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from app.core.errors import CompositeFailure

RGB = Tuple[int, int, int]

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


def parse_hex_color(value: str) -> RGB:
    """
    Parse '#RRGGBB' (or 'RRGGBB') into an (r, g, b) triple.

    No alpha component is accepted: the fill is always fully opaque.
    """
    match = _HEX_COLOR.match(value.strip()) if value else None
    if not match:
        raise CompositeFailure(f"Invalid background color: {value!r}")
    r, g, b = (int(channel, 16) for channel in match.groups())
    return r, g, b


def to_hex(rgb: RGB) -> str:
    """Format an (r, g, b) triple as '#RRGGBB'."""
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def load_rgba(png_bytes: bytes) -> Image.Image:
    """Decode a cutout into an RGBA image, raising CompositeFailure if unreadable."""
    try:
        image = Image.open(BytesIO(png_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, EOFError, SyntaxError) as e:
        raise CompositeFailure(f"Could not read cutout image: {e}") from e
    return image.convert("RGBA") if image.mode != "RGBA" else image


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
