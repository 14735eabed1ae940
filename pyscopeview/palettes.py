# palettes.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

RGB = Tuple[int, int, int]

THEME_SIZE = 16  # one color per 4-bit pixel index


def hex2rgb(hexColor: str) -> RGB:
    """Convert '#rrggbb' or '0xRRGGBB' to an (R, G, B) tuple.
    Short input (length < 6) is zero-padded per nibble, e.g., 'abc' -> 'a0b0c0'.
    Returns values in range 0..255.
    """
    if hexColor[0] == '#':
        hexColor = hexColor[1:]
    elif hexColor[0:2].lower() == '0x':
        hexColor = hexColor[2:]
    if len(hexColor) < 6:
        hexColor = hexColor[0] + '0' + hexColor[1] + '0' + hexColor[2] + '0'
    return int(hexColor[0:2], 16), int(hexColor[2:4], 16), int(hexColor[4:6], 16)


@dataclass(frozen=True)
class ColorTheme:
    """16-entry lookup table, indexed by the nibble value of a scope pixel.

    Entry order (same for every theme):
      0 menu text            8 trace reticle, menu shadow
      1 trace background     9 unknown
      2 channel-1 trace     10 GUI background
      3 unknown             11 menu background
      4 channel-2 trace     12 unknown
      5 unknown             13 unknown
      6 horiz./trigger info 14 math trace, logo background
      7 GUI text, borders   15 menu highlight
    """
    name: str
    colors: Tuple[RGB, ...]

    def __post_init__(self):
        if len(self.colors) != THEME_SIZE:
            raise ValueError(f"theme {self.name!r} needs {THEME_SIZE} colors, got {len(self.colors)}")
        for index, rgb in enumerate(self.colors):
            if len(rgb) != 3 or not all(isinstance(v, int) and 0 <= v <= 255 for v in rgb):
                raise ValueError(f"theme {self.name!r}: color {index} is not an (r, g, b) triple of 0..255: {rgb!r}")

    @classmethod
    def from_hex(cls, name: str, hex_colors: Sequence[str]) -> "ColorTheme":
        return cls(name, tuple(hex2rgb(h) for h in hex_colors))

    def __getitem__(self, index: int) -> RGB:
        return self.colors[index]

    def __len__(self) -> int:
        return len(self.colors)


# Colors as shown on the GDS-820C LCD
ORIGINAL = ColorTheme.from_hex("original", [
    "#000000", "#000000", "#ffff00", "#808080",
    "#00ffff", "#808080", "#66ff66", "#ffffff",
    "#888888", "#808080", "#000055", "#bbbbbb",
    "#808080", "#808080", "#ff2222", "#ffffff",
])

# White background
LIGHT = ColorTheme.from_hex("light", [
    "#555650", "#f9f8f5", "#f92672", "#800080",
    "#46a9df", "#800080", "#86d21e", "#555650",
    "#a5a1ae", "#800080", "#f8f8f2", "#f8f8f2",
    "#800080", "#800080", "#f4bf35", "#f9f8f5",
])

# Gruvbox-like
DARK = ColorTheme.from_hex("dark", [
    "#1d1c1a", "#1d1c1a", "#d79921", "#800080",
    "#458588", "#800080", "#b8bb26", "#a89984",
    "#928374", "#800080", "#32302f", "#a89984",
    "#800080", "#800080", "#fb4934", "#ebdbb2",
])

# Black on white, for printing
MONO = ColorTheme.from_hex("mono", [
    "#000000", "#ffffff", "#000000", "#ffffff",
    "#000000", "#ffffff", "#000000", "#000000",
    "#000000", "#ffffff", "#ffffff", "#ffffff",
    "#ffffff", "#ffffff", "#000000", "#ffffff",
])

DEFAULT_THEMES: Tuple[ColorTheme, ...] = (DARK, LIGHT, MONO, ORIGINAL)


class PaletteRegistry:
    """Fixed rotation of color themes plus the currently selected one.

    Only user input (space key, Theme button, --theme) changes the selection;
    the grab and decode paths just call current().
    """

    def __init__(self, themes: Sequence[ColorTheme] = DEFAULT_THEMES, start: int = 0):
        if not themes:
            raise ValueError("at least one theme is required")
        self._themes: Tuple[ColorTheme, ...] = tuple(themes)
        self._by_name: Dict[str, int] = {t.name: i for i, t in enumerate(self._themes)}
        self._index = start % len(self._themes)

    def current(self) -> ColorTheme:
        return self._themes[self._index]

    def advance(self) -> ColorTheme:
        self._index = (self._index + 1) % len(self._themes)
        return self.current()

    def select(self, name: str) -> ColorTheme:
        self._index = self._by_name[name]  # KeyError on unknown names
        return self.current()

    def names(self) -> List[str]:
        return [t.name for t in self._themes]

    def __len__(self) -> int:
        return len(self._themes)
