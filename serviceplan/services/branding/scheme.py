"""
Branding Color Scheme

Builds the five-color scheme the branding form binds to its color pickers,
filling gaps left by the extraction step with derived colors.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

from .color_space import adjust_brightness, hex_to_hsl, normalize_hex, rotate_hue

DEFAULT_PRIMARY = "#2563eb"
DEFAULT_SECONDARY = "#64748b"
DEFAULT_ACCENT = "#f59e0b"

SECONDARY_BRIGHTNESS_DELTA = -20
ACCENT_HUE_SHIFT = 60.0
LIGHT_PRIMARY_THRESHOLD = 0.5

# (text, background) pairs chosen by the primary color's lightness
LIGHT_PRIMARY_TEXT = "#1f2937"
LIGHT_PRIMARY_BACKGROUND = "#ffffff"
DARK_PRIMARY_TEXT = "#f9fafb"
DARK_PRIMARY_BACKGROUND = "#f8fafc"

SCHEME_FIELDS = ("primary", "secondary", "accent", "text", "background")


@dataclass(frozen=True)
class ColorScheme:
    """Five named ``#rrggbb`` colors."""
    primary: str
    secondary: str
    accent: str
    text: str
    background: str

    def __post_init__(self):
        for field_name in SCHEME_FIELDS:
            value = getattr(self, field_name)
            normalized = normalize_hex(value)
            if normalized is None:
                raise ValueError(f"Invalid hex color for {field_name}: {value!r}")
            object.__setattr__(self, field_name, normalized)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColorScheme":
        """Build a scheme from a stored mapping, validating every field."""
        missing = [name for name in SCHEME_FIELDS if name not in data]
        if missing:
            raise ValueError(f"Color scheme missing fields: {', '.join(missing)}")
        return cls(**{name: data[name] for name in SCHEME_FIELDS})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def to_css_variables(self) -> Dict[str, str]:
        """CSS custom properties for the widget stylesheet."""
        return {f"--{name}-color": value for name, value in self.to_dict().items()}

    def to_branding_form(self) -> Dict[str, str]:
        """Field names used by the branding form and customer record."""
        return {
            "primaryColor": self.primary,
            "secondaryColor": self.secondary,
            "accentColor": self.accent,
            "textColor": self.text,
            "backgroundColor": self.background,
        }


def get_default_color_scheme() -> ColorScheme:
    """Designer-chosen scheme used when extraction is skipped or fails."""
    return ColorScheme(
        primary=DEFAULT_PRIMARY,
        secondary=DEFAULT_SECONDARY,
        accent=DEFAULT_ACCENT,
        text=LIGHT_PRIMARY_TEXT,
        background=LIGHT_PRIMARY_BACKGROUND,
    )


def _valid_colors(colors: Optional[Sequence[Any]]) -> List[str]:
    valid = []
    for color in colors or ():
        normalized = normalize_hex(color)
        if normalized is not None:
            valid.append(normalized)
    return valid


def generate_color_scheme(colors: Optional[Sequence[str]]) -> ColorScheme:
    """
    Derive a complete scheme from ranked candidate colors.

    Missing entries are filled in order: primary falls back to the default
    blue, secondary darkens primary by 20 per channel, accent rotates
    primary's hue by 60 degrees. Text and background follow primary's
    lightness, not the background's.

    Args:
        colors: Ranked hex colors, most dominant first; may be empty

    Returns:
        ColorScheme, never raises
    """
    valid = _valid_colors(colors)

    primary = valid[0] if len(valid) > 0 else DEFAULT_PRIMARY
    secondary = valid[1] if len(valid) > 1 else adjust_brightness(primary, SECONDARY_BRIGHTNESS_DELTA)
    accent = valid[2] if len(valid) > 2 else rotate_hue(primary, ACCENT_HUE_SHIFT)

    if hex_to_hsl(primary).l > LIGHT_PRIMARY_THRESHOLD:
        text, background = LIGHT_PRIMARY_TEXT, LIGHT_PRIMARY_BACKGROUND
    else:
        text, background = DARK_PRIMARY_TEXT, DARK_PRIMARY_BACKGROUND

    return ColorScheme(
        primary=primary,
        secondary=secondary,
        accent=accent,
        text=text,
        background=background,
    )
