"""
Geometry compositor for uploaded cover photos.

The whole photo is drawn onto a fixed 16:10 transparent canvas: scaled to
fit, then zoomed, centred on both axes. Nothing is cropped from the source;
whatever overflows the canvas is clipped at draw time. A night-time tint
(flat darkening plus a vertical gradient, both multiplied) is applied only
inside the drawn rectangle so uncovered margins stay fully transparent.
"""

import base64
import binascii
from io import BytesIO
from typing import Union

from PIL import Image, ImageChops, UnidentifiedImageError

from nightstory.config import IMAGE_CONSTANTS
from ..errors import ParseError
from ..types import CoverPlacement

# Flat darkening: black multiplied at this opacity
DARKEN_ALPHA = 0.15

# (offset, (r, g, b), alpha) from top to bottom of the drawn rectangle
NIGHT_GRADIENT = [
    (0.0, (26, 13, 46), 0.2),
    (0.3, (45, 27, 78), 0.15),
    (0.5, (74, 44, 95), 0.1),
    (0.85, (255, 140, 66), 0.1),
    (1.0, (255, 217, 61), 0.08),
]


def compute_placement(
    src_width: int,
    src_height: int,
    target_width: int = IMAGE_CONSTANTS["cover_width"],
    target_height: int = IMAGE_CONSTANTS["cover_height"],
    zoom: float = IMAGE_CONSTANTS["cover_zoom"],
) -> CoverPlacement:
    """
    Compute where the full source image lands on the canvas.

    Args:
        src_width, src_height: Natural size of the source image
        target_width, target_height: Canvas size
        zoom: Multiplier applied on top of the contain scale

    Returns:
        CoverPlacement with the drawn rectangle (may extend past the canvas)
        and the source rectangle, which is always the whole image

    Raises:
        ValueError: If any dimension is not positive
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Invalid source size {src_width}x{src_height}")
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Invalid canvas size {target_width}x{target_height}")

    contain_scale = min(target_width / src_width, target_height / src_height)
    scale = contain_scale * zoom
    draw_width = src_width * scale
    draw_height = src_height * scale

    return CoverPlacement(
        draw_x=(target_width - draw_width) / 2,
        draw_y=(target_height - draw_height) / 2,
        draw_width=draw_width,
        draw_height=draw_height,
        source_x=0,
        source_y=0,
        source_width=src_width,
        source_height=src_height,
        canvas_width=target_width,
        canvas_height=target_height,
    )


def decode_image_payload(payload: Union[bytes, str]) -> bytes:
    """
    Accept raw bytes, a base64 string or a data URL.

    Raises:
        ParseError: If a string payload is not valid base64
    """
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"Image payload is not valid base64: {e}") from e


def _gradient_color(t: float) -> tuple[tuple[int, int, int], float]:
    """Interpolate the night gradient at offset t in [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    for (t0, c0, a0), (t1, c1, a1) in zip(NIGHT_GRADIENT, NIGHT_GRADIENT[1:]):
        if t <= t1:
            f = (t - t0) / (t1 - t0) if t1 > t0 else 0.0
            color = tuple(round(c0[i] + (c1[i] - c0[i]) * f) for i in range(3))
            return color, a0 + (a1 - a0) * f
    _, color, alpha = NIGHT_GRADIENT[-1]
    return color, alpha


def _row_multiplier(t: float) -> tuple[int, int, int]:
    """Combined multiply factor (0-255 per channel) of darkening then gradient."""
    color, alpha = _gradient_color(t)
    dark = 1 - DARKEN_ALPHA
    return tuple(
        round(255 * dark * (1 - alpha + alpha * channel / 255))
        for channel in color
    )


def _tint_layer(placement: CoverPlacement) -> Image.Image:
    """White everywhere except the drawn rectangle, which carries the per-row tint."""
    width, height = placement.canvas_width, placement.canvas_height
    layer = Image.new("RGB", (width, height), (255, 255, 255))

    left = max(0, round(placement.draw_x))
    right = min(width, round(placement.draw_x + placement.draw_width))
    top = max(0, round(placement.draw_y))
    bottom = min(height, round(placement.draw_y + placement.draw_height))
    if right <= left or bottom <= top:
        return layer

    column = Image.new("RGB", (1, bottom - top))
    column.putdata([
        _row_multiplier((y + 0.5 - placement.draw_y) / placement.draw_height)
        for y in range(top, bottom)
    ])
    layer.paste(column.resize((right - left, bottom - top), Image.Resampling.NEAREST), (left, top))
    return layer


def compose_cover(
    image: Union[bytes, str],
    width: int = IMAGE_CONSTANTS["cover_width"],
    height: int = IMAGE_CONSTANTS["cover_height"],
    zoom: float = IMAGE_CONSTANTS["cover_zoom"],
) -> bytes:
    """
    Composite an uploaded photo onto the cover canvas.

    Args:
        image: Photo as bytes, base64 string or data URL
        width, height: Canvas size
        zoom: Multiplier on the contain scale

    Returns:
        PNG bytes of the composited cover

    Raises:
        ParseError: If the payload is not a decodable image
    """
    data = decode_image_payload(image)
    try:
        source = Image.open(BytesIO(data))
        source.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ParseError(f"Uploaded photo could not be decoded: {e}") from e

    source = source.convert("RGBA")
    placement = compute_placement(source.width, source.height, width, height, zoom)

    drawn = source.resize(
        (max(1, round(placement.draw_width)), max(1, round(placement.draw_height))),
        Image.Resampling.LANCZOS,
    )
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    # paste() clips negative offsets, which is how the overflow is dropped
    canvas.paste(drawn, (round(placement.draw_x), round(placement.draw_y)))

    r, g, b, a = canvas.split()
    tinted = ImageChops.multiply(Image.merge("RGB", (r, g, b)), _tint_layer(placement))
    canvas = Image.merge("RGBA", (*tinted.split(), a))

    buffer = BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()
