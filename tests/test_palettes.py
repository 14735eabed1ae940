import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from pyscopeview.palettes import (DEFAULT_THEMES, ColorTheme, PaletteRegistry,
                                  ORIGINAL, MONO, hex2rgb)


class Hex2RgbTests(unittest.TestCase):
    def test_formats(self):
        self.assertEqual(hex2rgb("#1d1c1a"), (0x1d, 0x1c, 0x1a))
        self.assertEqual(hex2rgb("0xFF2222"), (0xff, 0x22, 0x22))
        self.assertEqual(hex2rgb("abc"), (0xa0, 0xb0, 0xc0))


class ColorThemeTests(unittest.TestCase):
    def test_builtin_themes_have_16_colors(self):
        for theme in DEFAULT_THEMES:
            with self.subTest(theme=theme.name):
                self.assertEqual(len(theme), 16)
                for rgb in theme.colors:
                    self.assertTrue(all(0 <= v <= 255 for v in rgb))

    def test_original_lcd_colors(self):
        self.assertEqual(ORIGINAL[2], (0xff, 0xff, 0x00))   # channel 1
        self.assertEqual(ORIGINAL[4], (0x00, 0xff, 0xff))   # channel 2
        self.assertEqual(ORIGINAL[10], (0x00, 0x00, 0x55))  # GUI background
        self.assertEqual(MONO[1], (0xff, 0xff, 0xff))

    def test_wrong_size_rejected(self):
        with self.assertRaises(ValueError):
            ColorTheme("short", ((0, 0, 0),) * 15)

    def test_out_of_range_color_rejected(self):
        colors = [(0, 0, 0)] * 15 + [(256, 0, 0)]
        with self.assertRaises(ValueError):
            ColorTheme("hot", tuple(colors))

    def test_non_triple_rejected(self):
        colors = [(0, 0, 0)] * 15 + [(0, 0)]
        with self.assertRaises(ValueError):
            ColorTheme("flat", tuple(colors))

    def test_immutable(self):
        with self.assertRaises(AttributeError):
            ORIGINAL.name = "other"


class PaletteRegistryTests(unittest.TestCase):
    def test_starts_with_dark(self):
        self.assertEqual(PaletteRegistry().current().name, "dark")

    def test_advance_wraps_around(self):
        reg = PaletteRegistry()
        start = reg.current()
        seen = [reg.advance().name for _ in range(len(reg))]
        self.assertIs(reg.current(), start)
        self.assertEqual(seen, ["light", "mono", "original", "dark"])

    def test_select_by_name(self):
        reg = PaletteRegistry()
        self.assertEqual(reg.select("mono").name, "mono")
        self.assertEqual(reg.advance().name, "original")
        with self.assertRaises(KeyError):
            reg.select("sepia")

    def test_names(self):
        self.assertEqual(PaletteRegistry().names(), ["dark", "light", "mono", "original"])


if __name__ == "__main__":
    unittest.main()
