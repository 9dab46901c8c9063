"""
Helper functions for the background extractor.
"""
from io import BytesIO

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.errors import UnsupportedFormat

# Modes rembg handles directly; everything else is converted first
_PASSTHROUGH_MODES = {"RGB", "RGBA"}


def normalize_to_png(image_bytes: bytes) -> bytes:
    """
    Re-encode arbitrary JPEG/PNG/WebP bytes as PNG.

    EXIF orientation is applied so the cutout matches what the user sees.
    Raises UnsupportedFormat when the bytes cannot be decoded.
    """
    if not image_bytes:
        raise UnsupportedFormat("Image is empty")

    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, EOFError, SyntaxError) as e:
        raise UnsupportedFormat(f"Could not decode image: {e}") from e

    image = ImageOps.exif_transpose(image)
    if image.mode not in _PASSTHROUGH_MODES:
        has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
        image = image.convert("RGBA" if has_alpha else "RGB")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def alpha_coverage(png_bytes: bytes) -> float:
    """Share of pixels that are not fully transparent, in [0, 1]."""
    with Image.open(BytesIO(png_bytes)) as image:
        if image.mode != "RGBA":
            return 1.0
        alpha = np.asarray(image.getchannel("A"))
    return float(np.count_nonzero(alpha)) / alpha.size if alpha.size else 0.0
