"""
Color space conversion utilities for branding schemes.

RGB channels are integers in [0, 255]. HSL uses degrees for hue and the
0.0-1.0 scale for saturation and lightness; percentages only appear at
display boundaries via ``HSLValue.as_percentages``.
"""

import colorsys
import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass(frozen=True)
class HSLValue:
    """Hue in degrees [0, 360), saturation and lightness in [0.0, 1.0]."""
    h: float
    s: float
    l: float

    def as_percentages(self) -> Tuple[float, float, float]:
        """Return (h, s%, l%) for display."""
        return self.h, self.s * 100.0, self.l * 100.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def clamp_channel(value: int) -> int:
    """Clamp a channel value to [0, 255]."""
    return max(0, min(255, int(value)))


def is_valid_hex(hex_color: object) -> bool:
    """Check for a ``#rrggbb`` string."""
    return isinstance(hex_color, str) and HEX_COLOR_RE.match(hex_color) is not None


def normalize_hex(hex_color: str) -> Optional[str]:
    """Lowercase a valid ``#rrggbb`` string, or return None."""
    if not is_valid_hex(hex_color):
        return None
    return hex_color.lower()


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB channels to a lowercase hex color string."""
    return f"#{clamp_channel(r):02x}{clamp_channel(g):02x}{clamp_channel(b):02x}"


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert hex color string to RGB tuple."""
    hex_color = hex_color.lstrip("#")
    return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))


def rgb_to_hsl(r: int, g: int, b: int) -> HSLValue:
    """
    Convert RGB channels to HSL.

    Args:
        r, g, b: Channels in [0, 255]

    Returns:
        HSLValue with hue in degrees and s/l on the 0-1 scale
    """
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return HSLValue(h * 360.0, s, l)


def hsl_to_rgb(hsl: HSLValue) -> Tuple[int, int, int]:
    """Convert HSL back to integer RGB channels, rounding halves up."""
    rf, gf, bf = colorsys.hls_to_rgb((hsl.h % 360.0) / 360.0, hsl.l, hsl.s)
    return (
        clamp_channel(round_half_up(rf * 255)),
        clamp_channel(round_half_up(gf * 255)),
        clamp_channel(round_half_up(bf * 255)),
    )


def hex_to_hsl(hex_color: str) -> HSLValue:
    """Convert hex color string to HSL."""
    return rgb_to_hsl(*hex_to_rgb(hex_color))


def hsl_to_hex(hsl: HSLValue) -> str:
    """Convert HSL to hex color string."""
    return rgb_to_hex(*hsl_to_rgb(hsl))


def adjust_brightness(hex_color: str, amount: int) -> str:
    """Shift every RGB channel by ``amount``, clamped to [0, 255]."""
    r, g, b = hex_to_rgb(hex_color)
    return rgb_to_hex(clamp_channel(r + amount), clamp_channel(g + amount), clamp_channel(b + amount))


def rotate_hue(hex_color: str, degrees: float) -> str:
    """Rotate the hue of a color, keeping saturation and lightness."""
    hsl = hex_to_hsl(hex_color)
    return hsl_to_hex(HSLValue((hsl.h + degrees) % 360.0, hsl.s, hsl.l))
