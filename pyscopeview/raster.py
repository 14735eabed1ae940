# raster.py
"""
Decoder for the GDS-820C screen dump.

The scope sends its LCD in vertical rasters: 320 strips of 128 bytes each,
two pixels per byte (high nibble first), 4 bits per pixel. A strip holds 256
pixels, but the visible screen is only 240 rows high, so the last 8 bytes of
every strip are padding. The strips arrive right-to-left, so the image has to
be rotated by 90 degrees while unpacking.
"""

from __future__ import annotations

from typing import Union

from PIL import Image

from pyscopeview.palettes import ColorTheme, THEME_SIZE

WIDTH = 320
HEIGHT = 240
STRIP_PITCH = 128              # bytes per vertical strip
VISIBLE_BYTES = HEIGHT // 2    # 120; bytes 120..127 of a strip are padding
SCREEN_DUMP_SIZE = WIDTH * STRIP_PITCH  # 40960
OUTPUT_SIZE = WIDTH * HEIGHT * 3

Buffer = Union[bytes, bytearray, memoryview]


def new_output_image() -> bytearray:
    """Return a zeroed 320x240 RGB frame buffer."""
    return bytearray(OUTPUT_SIZE)


def decode(buffer: Buffer, theme: ColorTheme, out: bytearray) -> bytearray:
    """Unpack a complete screen dump into ``out`` (row-major RGB, top to bottom).

    Padding bytes write nothing, so those output rows keep whatever ``out``
    held before. Raises ValueError when the buffer, theme or output buffer
    does not have the expected size.
    """
    if len(buffer) != SCREEN_DUMP_SIZE:
        raise ValueError(f"screen dump must be {SCREEN_DUMP_SIZE} bytes, got {len(buffer)}")
    if len(theme) != THEME_SIZE:
        raise ValueError(f"theme must have {THEME_SIZE} colors, got {len(theme)}")
    if len(out) != OUTPUT_SIZE:
        raise ValueError(f"output buffer must be {OUTPUT_SIZE} bytes, got {len(out)}")

    colors = [bytes(rgb) for rgb in theme.colors]
    line = WIDTH * 3

    for i, in_byte in enumerate(buffer):
        row = i % STRIP_PITCH
        if row >= VISIBLE_BYTES:
            continue
        col = (WIDTH - 1) - i // STRIP_PITCH

        # pixel 1: high nibble, even output row
        pos = line * (row * 2) + 3 * col
        out[pos:pos + 3] = colors[(in_byte >> 4) & 0x0f]
        # pixel 2: low nibble, the row below
        pos += line
        out[pos:pos + 3] = colors[in_byte & 0x0f]

    return out


def decode_image(buffer: Buffer, theme: ColorTheme) -> Image.Image:
    """Decode into a fresh Pillow image (320x240 RGB)."""
    out = decode(buffer, theme, new_output_image())
    return frame_to_image(out)


def frame_to_image(out: Buffer) -> Image.Image:
    return Image.frombytes("RGB", (WIDTH, HEIGHT), bytes(out))
