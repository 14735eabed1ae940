import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from pyscopeview.palettes import ColorTheme, ORIGINAL
from pyscopeview.raster import (HEIGHT, OUTPUT_SIZE, SCREEN_DUMP_SIZE, WIDTH,
                                decode, decode_image, new_output_image)

# every index gets its own color so mix-ups show
DISTINCT = ColorTheme("distinct", tuple((i * 16, i, 255 - i) for i in range(16)))


def pixel(out, row, col):
    pos = WIDTH * 3 * row + 3 * col
    return tuple(out[pos:pos + 3])


def frame(fill=0x00, patches=None):
    buf = bytearray([fill]) * SCREEN_DUMP_SIZE
    for offset, value in (patches or {}).items():
        buf[offset] = value
    return bytes(buf)


class DecodeTests(unittest.TestCase):
    def test_all_zero_frame_is_index_0(self):
        out = decode(frame(0x00), DISTINCT, new_output_image())
        self.assertEqual(bytes(out), bytes(DISTINCT[0]) * (WIDTH * HEIGHT))

    def test_all_ff_frame_is_index_15(self):
        out = decode(frame(0xFF), DISTINCT, new_output_image())
        self.assertEqual(bytes(out), bytes(DISTINCT[15]) * (WIDTH * HEIGHT))

    def test_first_byte_lands_in_last_column(self):
        out = decode(frame(0x00, {0: 0x2F}), DISTINCT, new_output_image())
        self.assertEqual(pixel(out, 0, WIDTH - 1), DISTINCT[2])
        self.assertEqual(pixel(out, 1, WIDTH - 1), DISTINCT[15])
        self.assertEqual(pixel(out, 2, WIDTH - 1), DISTINCT[0])
        self.assertEqual(pixel(out, 0, WIDTH - 2), DISTINCT[0])

    def test_byte_colors_do_not_depend_on_neighbours(self):
        offset = 77 * 128 + 33  # strip 77, rows 66/67
        row, col = 2 * 33, WIDTH - 1 - 77
        for b in range(256):
            with self.subTest(byte=b):
                buf = bytearray([(~b) & 0xFF]) * SCREEN_DUMP_SIZE
                buf[offset] = b
                out = decode(buf, DISTINCT, new_output_image())
                self.assertEqual(pixel(out, row, col), DISTINCT[b >> 4])
                self.assertEqual(pixel(out, row + 1, col), DISTINCT[b & 0x0F])

    def test_padding_bytes_write_nothing(self):
        reference = decode(frame(0x00), DISTINCT, new_output_image())
        for strip in (0, 1, 160, 319):
            for r in range(120, 128):
                offset = strip * 128 + r
                with self.subTest(offset=offset):
                    buf = bytearray(SCREEN_DUMP_SIZE)
                    buf[offset] = 0xFF
                    out = decode(buf, DISTINCT, new_output_image())
                    self.assertEqual(out, reference)

    def test_padding_boundary_is_exclusive_at_120(self):
        buf = bytearray(SCREEN_DUMP_SIZE)
        buf[119] = 0xFF   # last visible byte of strip 0
        buf[120] = 0xEE   # first padding byte
        out = decode(buf, DISTINCT, new_output_image())
        self.assertEqual(pixel(out, 238, WIDTH - 1), DISTINCT[15])
        self.assertEqual(pixel(out, 239, WIDTH - 1), DISTINCT[15])
        self.assertNotIn(bytes(DISTINCT[14]), [bytes(pixel(out, r, c)) for r in range(HEIGHT) for c in (WIDTH - 1, WIDTH - 2)])

    def test_every_output_pixel_is_written(self):
        out = bytearray([0xAB]) * OUTPUT_SIZE
        decode(frame(0x00), ORIGINAL, out)
        self.assertEqual(bytes(out), bytes(ORIGINAL[0]) * (WIDTH * HEIGHT))

    def test_strips_map_to_reversed_columns(self):
        buf = bytearray(SCREEN_DUMP_SIZE)
        for strip in range(WIDTH):
            buf[strip * 128] = (strip % 16) << 4
        out = decode(buf, DISTINCT, new_output_image())
        for strip in range(WIDTH):
            self.assertEqual(pixel(out, 0, WIDTH - 1 - strip), DISTINCT[strip % 16])

        cols = [(WIDTH - 1) - i // 128 for i in range(0, SCREEN_DUMP_SIZE, 128)]
        self.assertTrue(all(a > b for a, b in zip(cols, cols[1:])))
        self.assertEqual(sorted(cols), list(range(WIDTH)))

    def test_decode_returns_out_buffer(self):
        out = new_output_image()
        self.assertIs(decode(frame(0x12), DISTINCT, out), out)

    def test_rejects_wrong_sizes(self):
        with self.assertRaises(ValueError):
            decode(bytes(SCREEN_DUMP_SIZE - 1), DISTINCT, new_output_image())
        with self.assertRaises(ValueError):
            decode(bytes(SCREEN_DUMP_SIZE + 64), DISTINCT, new_output_image())
        with self.assertRaises(ValueError):
            decode(bytes(SCREEN_DUMP_SIZE), DISTINCT, bytearray(OUTPUT_SIZE - 3))

    def test_decode_image(self):
        img = decode_image(frame(0x00, {0: 0x2F}), ORIGINAL)
        self.assertEqual(img.size, (WIDTH, HEIGHT))
        self.assertEqual(img.mode, "RGB")
        self.assertEqual(img.getpixel((WIDTH - 1, 0)), ORIGINAL[2])
        self.assertEqual(img.getpixel((WIDTH - 1, 1)), ORIGINAL[15])
        self.assertEqual(img.getpixel((0, 0)), ORIGINAL[0])


if __name__ == "__main__":
    unittest.main()
