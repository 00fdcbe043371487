import math
import colorsys
from typing import NamedTuple, Optional

import numpy as np

from utilities import fmod_floor

_COLOR_NAME_MAP = {
    "black":   "000000",
    "white":   "FFFFFF",
    "gray":    "808080",
    "grey":    "808080",
    "red":     "FF0000",
    "green":   "00FF00",
    "blue":    "0000FF",
    "yellow":  "FFFF00",
    "cyan":    "00FFFF",
    "magenta": "FF00FF",
    "orange":  "FF8000",
    "purple":  "800080",
    "navy":    "000080",
    "teal":    "008080",
    "olive":   "808000",
    "maroon":  "800000",
}

def parse_color_spec(spec: str, default: tuple[float, float, float]) -> tuple[float, float, float]:
    """
    Parse a color spec into (R,G,B) in 0..255.

    Accepts:
        - "RRGGBB" hex
        - "#RRGGBB" hex
        - simple names: red, blue, yellow, ...
    """
    if not isinstance(spec, str):
        return default

    s = spec.strip()
    if not s:
        return default

    if s.startswith("#"):
        s = s[1:]

    # Name → hex mapping
    lower = s.lower()
    if lower in _COLOR_NAME_MAP:
        s = _COLOR_NAME_MAP[lower]

    if len(s) != 6:
        return default

    try:
        r = int(s[0:2], 16)
        g = int(s[2:4], 16)
        b = int(s[4:6], 16)
    except ValueError:
        return default
    return float(r), float(g), float(b)


# ---------------------------------------------------------------------------
# HSV helpers
# ---------------------------------------------------------------------------

def rgb_to_hsv(r: float, g: float, b: float) -> tuple[float, float, float]:
    """
    RGB -> HSV, hue in [0,1) as a full turn, s and v in [0,1] for unit inputs.
    Achromatic inputs (r == g == b) give h = s = 0. A color whose largest
    channel is not positive has no defined hue or saturation: (0, 0, max).
    """
    m = max(r, g, b)
    if m <= 0.0:
        return 0.0, 0.0, m
    return colorsys.rgb_to_hsv(r, g, b)

def hsv_to_rgb(h: float, s: float, v: float) -> tuple[float, float, float]:
    return colorsys.hsv_to_rgb(fmod_floor(h, 1.0), s, v)


# ---------------------------------------------------------------------------
# Color value type
# ---------------------------------------------------------------------------

class Color(NamedTuple):
    """
    Three unclamped linear-space channels. Immutable; == is exact.
    """
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    # -- arithmetic ---------------------------------------------------------

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __sub__(self, other: "Color") -> "Color":
        return Color(self.r - other.r, self.g - other.g, self.b - other.b)

    def __mul__(self, other) -> "Color":
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b)
        return Color(self.r * other, self.g * other, self.b * other)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> "Color":
        return Color(self.r / s, self.g / s, self.b / s)

    def __neg__(self) -> "Color":
        return Color(-self.r, -self.g, -self.b)

    def within_epsilon(self, other: "Color", epsilon: float) -> bool:
        return (abs(self.r - other.r) <= epsilon and
                abs(self.g - other.g) <= epsilon and
                abs(self.b - other.b) <= epsilon)

    # -- measures -----------------------------------------------------------

    def luminance(self) -> float:
        # ITU-R BT.709
        return 0.2126 * self.r + 0.7152 * self.g + 0.0722 * self.b

    def length(self) -> float:
        return math.sqrt(self.r * self.r + self.g * self.g + self.b * self.b)

    def normalize(self) -> "Color":
        n = self.length()
        if n == 0.0:
            return Color()
        return self / n

    # -- gamut --------------------------------------------------------------

    def clip_to_unit_rgb(self) -> "Color":
        """
        Project into [0,1]^3. Negative channels go to zero, then the whole
        color is scaled down by its largest channel if that exceeds 1, so an
        all-positive color keeps its direction and only loses magnitude.
        """
        r = max(self.r, 0.0)
        g = max(self.g, 0.0)
        b = max(self.b, 0.0)
        m = max(r, g, b)
        if m > 1.0:
            r, g, b = r / m, g / m, b / m
        return Color(r, g, b)

    def gamma(self, g: float) -> "Color":
        # fractional powers of negatives are undefined, treat them as black
        return Color(max(self.r, 0.0) ** g,
                     max(self.g, 0.0) ** g,
                     max(self.b, 0.0) ** g)

    # -- HSV ----------------------------------------------------------------

    def get_hsv(self) -> tuple[float, float, float]:
        return rgb_to_hsv(self.r, self.g, self.b)

    def get_h(self) -> float:
        return self.get_hsv()[0]

    def get_s(self) -> float:
        return self.get_hsv()[1]

    def get_v(self) -> float:
        return self.get_hsv()[2]

    @staticmethod
    def from_hsv(h: float, s: float, v: float) -> "Color":
        return Color(*hsv_to_rgb(h, s, v))

    # -- constructors -------------------------------------------------------

    @staticmethod
    def gray(value: float) -> "Color":
        return Color(value, value, value)

    @staticmethod
    def random_unit_rgb(rng: Optional[np.random.Generator] = None) -> "Color":
        rng = rng or np.random.default_rng()
        r, g, b = rng.random(3)
        return Color(float(r), float(g), float(b))

    @staticmethod
    def from_spec(spec, default: Optional["Color"] = None) -> "Color":
        """
        Accept a Color, an (r,g,b) triple of unit floats, or a hex/name
        spec string ("#FF8000", "orange").
        """
        if isinstance(spec, Color):
            return spec
        if isinstance(spec, (tuple, list)) and len(spec) == 3:
            return Color(float(spec[0]), float(spec[1]), float(spec[2]))
        d = default if default is not None else Color()
        r, g, b = parse_color_spec(spec, (d.r * 255.0, d.g * 255.0, d.b * 255.0))
        return Color(r / 255.0, g / 255.0, b / 255.0)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def __repr__(self) -> str:
        return f"Color({self.r:g}, {self.g:g}, {self.b:g})"
