# app/modules/compositor/process.py
"""
Flattens a cutout over a solid background color.
"""
from typing import TYPE_CHECKING

import structlog
from PIL import Image

from . import utils

if TYPE_CHECKING:
    from app.models.background import BackgroundSpec

log = structlog.get_logger(__name__)


def composite_image(cutout: Image.Image, background: "BackgroundSpec") -> Image.Image:
    """
    Draws the cutout over an opaque canvas of the background color.

    Uses source-over blending, so every output pixel has alpha 255 and
    the output size equals the cutout size. Transparent backgrounds
    return the cutout itself.
    """
    if background.is_transparent:
        return cutout

    rgba = cutout if cutout.mode == "RGBA" else cutout.convert("RGBA")
    canvas = Image.new("RGBA", rgba.size, background.rgba)
    return Image.alpha_composite(canvas, rgba)


def composite(cutout_png: bytes, background: "BackgroundSpec") -> bytes:
    """
    Applies a background color to an alpha-masked PNG.

    Args:
        cutout_png: PNG bytes with a per-pixel alpha channel
        background: Target color or the transparent sentinel

    Returns:
        PNG bytes; the input bytes unchanged when the background is transparent

    Raises:
        CompositeFailure: If the cutout cannot be decoded
    """
    if background.is_transparent:
        return cutout_png

    cutout = utils.load_rgba(cutout_png)
    log.info("Compositor: Applying background", color=background.to_hex(), size=cutout.size)
    result = composite_image(cutout, background)
    return utils.encode_png(result)
