"""
ASCII Art Conversion Core
Turns Pillow images into character grids: one glyph per cell, picked by the
perceived brightness of the source pixel under it.

Grid format:
  - rows joined by "\\n", no trailing newline
  - every row is exactly target_width characters
  - glyphs come from a ramp ordered darkest -> lightest

Monospace glyphs are about twice as tall as they are wide, so the single-frame
converters halve the row count to keep the picture's proportions.

Usage:
  from ascii_art import canvas_to_ascii, image_to_ascii, frames_to_ascii

  text = canvas_to_ascii(img, 100)
  text = asyncio.run(image_to_ascii(img, 100))
  frames = frames_to_ascii(images, 100, on_progress=print)
"""

import asyncio
import logging
import math

from PIL import Image

from ascii_errors import DecodeError, InvalidArgumentError, ResourceUnavailableError

logger = logging.getLogger(__name__)

# Darkest -> lightest; bright areas end up as blank space
ASCII_CHARS = "@%#*+=-:. "

# Character columns offered by the quality presets
QUALITY_WIDTHS = {"s": 50, "m": 100, "l": 150}

# Glyph cells are roughly 1:2, so rows are halved
CHAR_ASPECT = 0.5

# Integer grayscale modes whose samples go up to 65535
HIGH_BIT_DEPTH_MODES = ("I", "I;16", "I;16L", "I;16B", "I;16N")


def round_half_up(value):
    return int(math.floor(value + 0.5))


def get_luminance(r, g, b):
    """Perceived brightness (Rec. 601 weights), 0-255."""
    return round_half_up(0.299 * r + 0.587 * g + 0.114 * b)


def pixel_to_char(luminance, ramp=ASCII_CHARS):
    index = round_half_up(luminance / 255 * (len(ramp) - 1))
    return ramp[min(index, len(ramp) - 1)]


def _composite_on_white(r, g, b, a):
    alpha = a / 255
    background = 255 * (1 - alpha)
    return r * alpha + background, g * alpha + background, b * alpha + background


def _to_8bit(image):
    """Scale 16-bit grayscale (how Pillow opens 16-bit PNGs) down to "L"."""
    if image.mode in HIGH_BIT_DEPTH_MODES:
        return image.convert("I").point(lambda v: v * (1 / 256)).convert("L")
    return image


def _read_rgba(image):
    try:
        rgba = _to_8bit(image).convert("RGBA")
        pixels = rgba.load()
    except (OSError, ValueError) as e:
        raise ResourceUnavailableError(f"Could not read pixel buffer: {e}") from e
    if rgba.width == 0 or rgba.height == 0:
        raise ResourceUnavailableError(
            f"Pixel buffer is empty ({rgba.width}x{rgba.height})"
        )
    return rgba, pixels


def canvas_to_ascii(image, target_width, ramp=ASCII_CHARS):
    """Sample an image down to a character grid target_width columns wide.

    Nearest-neighbor: cell (x, y) reads the source pixel at
    (floor(x * scale), floor(y * scale)) with scale = width / target_width.
    Transparent pixels are composited over white before the glyph lookup.
    """
    if target_width <= 0:
        raise InvalidArgumentError(f"Target width must be positive, got {target_width}")
    if not ramp:
        raise InvalidArgumentError("Glyph ramp must not be empty")

    rgba, pixels = _read_rgba(image)
    scale = rgba.width / target_width
    target_height = round_half_up(rgba.height / scale)

    lines = []
    for y in range(target_height):
        src_y = min(math.floor(y * scale), rgba.height - 1)
        chars = []
        for x in range(target_width):
            src_x = min(math.floor(x * scale), rgba.width - 1)
            r, g, b = _composite_on_white(*pixels[src_x, src_y])
            chars.append(pixel_to_char(get_luminance(r, g, b), ramp))
        lines.append("".join(chars))

    return "\n".join(lines)


def grid_height(width, height, target_width):
    """Rows needed for a width x height source at target_width columns."""
    return max(1, round_half_up(target_width * (height / width) * CHAR_ASPECT))


def fit_to_width(image, target_width):
    """Resize an image to the cell grid for target_width (aspect-corrected)."""
    if target_width <= 0:
        raise InvalidArgumentError(f"Target width must be positive, got {target_width}")
    rgba, _ = _read_rgba(image)
    rows = grid_height(rgba.width, rgba.height, target_width)
    return rgba.resize((target_width, rows), Image.NEAREST)


def image_to_ascii_sync(image, target_width, ramp=ASCII_CHARS):
    return canvas_to_ascii(fit_to_width(image, target_width), target_width, ramp)


def _decode(image):
    try:
        image.load()
    except OSError as e:
        raise DecodeError(f"Image could not be decoded: {e}") from e
    return image


async def load_image(source):
    """Open a path or binary stream with Pillow and fully decode it."""

    def _open():
        try:
            img = Image.open(source)
        except (OSError, ValueError) as e:
            raise DecodeError(f"Could not open image: {e}") from e
        return _decode(img)

    return await asyncio.to_thread(_open)


async def image_to_ascii(image, target_width, ramp=ASCII_CHARS):
    """Convert a still image to a character grid target_width columns wide."""
    image = await asyncio.to_thread(_decode, image)
    logger.debug("Converting %dx%d image at width %d", image.width, image.height, target_width)
    return image_to_ascii_sync(image, target_width, ramp)


def frames_to_ascii(frames, target_width, on_progress=None, ramp=ASCII_CHARS):
    """Convert frames to character grids one after another, in order.

    on_progress(done, total) is called after every frame. The first failure
    aborts the batch.
    """
    total = len(frames)
    results = []
    for i, frame in enumerate(frames):
        results.append(image_to_ascii_sync(frame, target_width, ramp))
        if on_progress is not None:
            on_progress(i + 1, total)

    logger.debug("Converted %d frames at width %d", total, target_width)
    return results
