# a11y_audit/colors.py
"""
CSS color parsing and normalization.

Every color the engine does arithmetic on is first normalized to a lowercase
``#rrggbb`` triplet. Parsing accepts hex (3, 4, 6 and 8 digits), ``rgb()`` /
``rgba()`` in comma or space syntax, a table of named colors and
``transparent``. Anything else parses to ``None`` and callers treat it as
unknown.
"""

import colorsys
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple


NAMED_COLORS = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
    "maroon": (128, 0, 0),
    "olive": (128, 128, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "darkgray": (169, 169, 169),
    "darkgrey": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "lightgrey": (211, 211, 211),
    "dimgray": (105, 105, 105),
    "gainsboro": (220, 220, 220),
    "whitesmoke": (245, 245, 245),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "crimson": (220, 20, 60),
    "darkred": (139, 0, 0),
    "darkgreen": (0, 100, 0),
    "darkblue": (0, 0, 139),
    "tomato": (255, 99, 71),
    "gold": (255, 215, 0),
    "pink": (255, 192, 203),
    "brown": (165, 42, 42),
    "coral": (255, 127, 80),
    "indigo": (75, 0, 130),
    "royalblue": (65, 105, 225),
    "steelblue": (70, 130, 180),
    "forestgreen": (34, 139, 34),
}

_FUNCTIONAL_PATTERN = re.compile(r"rgba?\(\s*([^)]*)\)", re.IGNORECASE)
_COLOR_TOKEN_PATTERN = re.compile(
    r"rgba?\([^)]*\)|#(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{6}|[0-9a-fA-F]{3,4})\b|\b[a-zA-Z]+\b"
)


@dataclass(frozen=True)
class RGBA:
    r: int
    g: int
    b: int
    a: float = 1.0

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @property
    def is_transparent(self) -> bool:
        return self.a <= 0.0

    @property
    def is_opaque(self) -> bool:
        return self.a >= 1.0

    def over(self, background_hex: str) -> str:
        """Composite this color over an opaque background, returning hex."""
        if self.is_opaque:
            return self.hex
        br, bg, bb = hex_to_rgb(background_hex)
        alpha = max(0.0, min(1.0, self.a))
        mixed = (
            round(self.r * alpha + br * (1 - alpha)),
            round(self.g * alpha + bg * (1 - alpha)),
            round(self.b * alpha + bb * (1 - alpha)),
        )
        return rgb_to_hex(*mixed)


def _clamp_channel(value: float) -> int:
    return int(max(0, min(255, round(value))))


def _parse_channel(token: str) -> float:
    token = token.strip()
    if token.endswith("%"):
        return float(token[:-1]) * 255 / 100
    return float(token)


def _parse_alpha(token: str) -> float:
    token = token.strip()
    if token.endswith("%"):
        return max(0.0, min(1.0, float(token[:-1]) / 100))
    return max(0.0, min(1.0, float(token)))


def _parse_functional(body: str) -> Optional[RGBA]:
    body = body.strip()
    if "," in body:
        parts = [p for p in body.split(",")]
    else:
        # rgb(0 0 0 / 50%)
        main, _, alpha = body.partition("/")
        parts = main.split()
        if alpha.strip():
            parts.append(alpha)
    if len(parts) not in (3, 4):
        return None
    try:
        r, g, b = (_clamp_channel(_parse_channel(p)) for p in parts[:3])
        a = _parse_alpha(parts[3]) if len(parts) == 4 else 1.0
    except ValueError:
        return None
    return RGBA(r, g, b, a)


def _parse_hex(value: str) -> Optional[RGBA]:
    digits = value.lstrip("#")
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) not in (6, 8):
        return None
    try:
        r, g, b = int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)
        a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
    except ValueError:
        return None
    return RGBA(r, g, b, a)


def parse_color(value: Optional[str]) -> Optional[RGBA]:
    """
    Parse a CSS color value.

    Args:
        value: Raw computed or authored color string

    Returns:
        RGBA, or None when the value is empty or not understood
    """
    if not value:
        return None
    value = value.strip().lower()
    if not value:
        return None
    if value == "transparent":
        return RGBA(0, 0, 0, 0.0)
    if value.startswith("#"):
        return _parse_hex(value)
    match = _FUNCTIONAL_PATTERN.fullmatch(value)
    if match:
        return _parse_functional(match.group(1))
    if value in NAMED_COLORS:
        return RGBA(*NAMED_COLORS[value])
    return None


def normalize_color(value: Optional[str]) -> Optional[str]:
    """Normalize an opaque or translucent color to hex; transparent and unknown give None."""
    color = parse_color(value)
    if color is None or color.is_transparent:
        return None
    return color.hex


def extract_colors(text: Optional[str]) -> List[RGBA]:
    """All parseable colors in a compound value such as ``box-shadow``, in order."""
    if not text:
        return []
    colors = []
    for token in _COLOR_TOKEN_PATTERN.findall(text):
        color = parse_color(token)
        if color is not None:
            colors.append(color)
    return colors


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    color = _parse_hex(value)
    if color is None:
        raise ValueError(f"Not a hex color: {value!r}")
    return color.r, color.g, color.b


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{_clamp_channel(r):02x}{_clamp_channel(g):02x}{_clamp_channel(b):02x}"


def signal_hue(value: Optional[str], min_saturation: float = 0.5, min_value: float = 0.3) -> Optional[str]:
    """
    Classify a color as a red or green "signal" color.

    Used by the color-only heuristic to spot validation states conveyed by
    a red or green border/background alone.

    Returns:
        ``"red"``, ``"green"`` or None
    """
    color = parse_color(value)
    if color is None or color.is_transparent:
        return None
    h, s, v = colorsys.rgb_to_hsv(color.r / 255, color.g / 255, color.b / 255)
    if s < min_saturation or v < min_value:
        return None
    degrees = h * 360
    if degrees <= 20 or degrees >= 340:
        return "red"
    if 80 <= degrees <= 160:
        return "green"
    return None
