# operators.py
"""
Interior texture nodes. Each one either combines the colors of its child
textures at the query position, or maps the query position to a new one
and delegates to its child.

Numeric edge cases are clamped here, at evaluation time, never raised:
  - Mobius pole: denominators smaller than MOBIUS_EPSILON are replaced by
    MOBIUS_EPSILON (same phase), sending the pole to a large finite point.
  - BrightnessWrap of a (near) black color returns gray of the wrapped level.
  - fractional powers (Gamma) treat negative channels as 0.
  - HSV adjustments of colors with no positive channel leave hue at 0.
"""
import cmath
import math

import numpy as np

from colors import Color
from texture import Texture, as_texture, require
from utilities import clip01, fmod_floor, interpolate, remap_interval_clip, sinusoid
from vec2 import Vec2, as_vec2

MOBIUS_EPSILON = 1e-9
_LUMINANCE_EPSILON = 1e-6


def _unit(v, what: str) -> tuple[Vec2, float]:
    v = as_vec2(v)
    n = v.length()
    require(n > 0.0, f"{what} must be a nonzero vector")
    return v / n, n

# ========================================
# color combinators
# ========================================

class _Binary(Texture):
    def __init__(self, texture0, texture1):
        self.texture0 = as_texture(texture0)
        self.texture1 = as_texture(texture1)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.texture0!r}, {self.texture1!r})"


class Add(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        return self.texture0.evaluate(position) + self.texture1.evaluate(position)

class Subtract(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        return self.texture0.evaluate(position) - self.texture1.evaluate(position)

class Multiply(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        return self.texture0.evaluate(position) * self.texture1.evaluate(position)

class Max(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        a = self.texture0.evaluate(position)
        b = self.texture1.evaluate(position)
        return Color(max(a.r, b.r), max(a.g, b.g), max(a.b, b.b))

class Min(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        a = self.texture0.evaluate(position)
        b = self.texture1.evaluate(position)
        return Color(min(a.r, b.r), min(a.g, b.g), min(a.b, b.b))

class AbsDiff(_Binary):
    def evaluate(self, position: Vec2) -> Color:
        a = self.texture0.evaluate(position)
        b = self.texture1.evaluate(position)
        return Color(abs(a.r - b.r), abs(a.g - b.g), abs(a.b - b.b))


class SoftMatte(Texture):
    """texture0 where the matte is dark, texture1 where it is bright."""

    def __init__(self, matte, texture0, texture1):
        self.matte = as_texture(matte)
        self.texture0 = as_texture(texture0)
        self.texture1 = as_texture(texture1)

    def evaluate(self, position: Vec2) -> Color:
        alpha = clip01(self.matte.evaluate(position).luminance())
        return interpolate(alpha,
                           self.texture0.evaluate(position),
                           self.texture1.evaluate(position))

# ========================================
# affine warps
# ========================================

class Scale(Texture):
    def __init__(self, scale: float, texture):
        require(scale != 0.0, "Scale: scale must be nonzero")
        self.scale = float(scale)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position / self.scale)


class Rotate(Texture):
    def __init__(self, angle: float, texture):
        self.angle = float(angle)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position.rotate(-self.angle))


class Translate(Texture):
    def __init__(self, translation, texture):
        self.translation = as_vec2(translation)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position - self.translation)


class Stretch(Texture):
    """Stretch by |scale| along the direction of `scale`, fixed at center."""

    def __init__(self, scale, center, texture):
        self.direction, self.factor = _unit(scale, "Stretch: scale")
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        d = position - self.center
        along = d.dot(self.direction)
        across = d - self.direction * along
        return self.texture.evaluate(self.center + across + self.direction * (along / self.factor))

# ========================================
# nonlinear warps
# ========================================

class StretchSpot(Texture):
    """
    Radial magnification inside a disk: by `dilation` at the center, easing
    back to identity at the rim.
    """

    def __init__(self, dilation: float, radius: float, center, texture):
        require(dilation > 0.0, f"StretchSpot: dilation must be > 0, got {dilation}")
        require(radius > 0.0, f"StretchSpot: radius must be > 0, got {radius}")
        self.dilation = float(dilation)
        self.radius = float(radius)
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        d = position - self.center
        r = d.length()
        if r >= self.radius:
            return self.texture.evaluate(position)
        k = interpolate(sinusoid(r / self.radius), self.dilation, 1.0)
        return self.texture.evaluate(self.center + d / k)


class Twist(Texture):
    """Rotation about center by angle_scale / (1 + radius_scale * r)."""

    def __init__(self, angle_scale: float, radius_scale: float, center, texture):
        require(radius_scale >= 0.0, f"Twist: radius_scale must be >= 0, got {radius_scale}")
        self.angle_scale = float(angle_scale)
        self.radius_scale = float(radius_scale)
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        d = position - self.center
        angle = self.angle_scale / (1.0 + self.radius_scale * d.length())
        return self.texture.evaluate(self.center + d.rotate(angle))


class Wrap(Texture):
    """
    Wrap a straight strip of the child, `width` wide and centered on
    fixed_ray, around center: distance from center reads along the ray,
    angle reads across it.
    """

    def __init__(self, width: float, center, fixed_ray, texture):
        require(width > 0.0, f"Wrap: width must be > 0, got {width}")
        self.width = float(width)
        self.center = as_vec2(center)
        self.x_axis, _ = _unit(fixed_ray, "Wrap: fixed_ray")
        self.y_axis = self.x_axis.rotate90()
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        d = position - self.center
        r = d.length()
        a = math.atan2(d.dot(self.y_axis), d.dot(self.x_axis))
        across = (a / math.pi) * (self.width / 2.0)
        return self.texture.evaluate(self.center + self.x_axis * r + self.y_axis * across)


class Mirror(Texture):
    """Reflect the half plane to the right of the line onto its left side."""

    def __init__(self, line_tangent, center, texture):
        tangent, _ = _unit(line_tangent, "Mirror: line_tangent")
        self.normal = tangent.rotate90()
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        s = (position - self.center).dot(self.normal)
        if s < 0.0:
            position = position - self.normal * (2.0 * s)
        return self.texture.evaluate(position)


class Ring(Texture):
    """`copies` rotated copies of the wedge centered on fixed_ray."""

    def __init__(self, copies: int, center, fixed_ray, texture):
        copies = int(round(copies))
        require(copies >= 1, f"Ring: copies must be >= 1, got {copies}")
        self.copies = copies
        self.wedge = 2.0 * math.pi / copies
        self.center = as_vec2(center)
        self.x_axis, _ = _unit(fixed_ray, "Ring: fixed_ray")
        self.y_axis = self.x_axis.rotate90()
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        d = position - self.center
        r = d.length()
        a = math.atan2(d.dot(self.y_axis), d.dot(self.x_axis))
        a = fmod_floor(a + self.wedge / 2.0, self.wedge) - self.wedge / 2.0
        local = self.x_axis * (r * math.cos(a)) + self.y_axis * (r * math.sin(a))
        return self.texture.evaluate(self.center + local)


class Row(Texture):
    """Repeat the strip between center and center + basis along basis."""

    def __init__(self, basis, center, texture):
        self.direction, self.spacing = _unit(basis, "Row: basis")
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        along = (position - self.center).dot(self.direction)
        shift = along - fmod_floor(along, self.spacing)
        return self.texture.evaluate(position - self.direction * shift)


class MobiusTransform(Texture):
    """
    Conformal warp z -> (a z + b) / (c z + d), with the four control points
    read as complex numbers.
    """

    def __init__(self, a, b, c, d, texture):
        self.a, self.b, self.c, self.d = (complex(*as_vec2(p)) for p in (a, b, c, d))
        require(abs(self.a * self.d - self.b * self.c) > MOBIUS_EPSILON,
                "MobiusTransform: degenerate control points (a*d - b*c == 0)")
        self.texture = as_texture(texture)

    def transform(self, position: Vec2) -> Vec2:
        z = complex(position.x, position.y)
        den = self.c * z + self.d
        if abs(den) < MOBIUS_EPSILON:
            den = cmath.rect(MOBIUS_EPSILON, cmath.phase(den))
        w = (self.a * z + self.b) / den
        return Vec2(w.real, w.imag)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(self.transform(position))

# ========================================
# slices
# ========================================

class SliceGrating(Texture):
    """
    The child's colors along the line through center in the direction of
    slice_tangent, swept across that line. |slice_tangent| scales the slice.
    """

    def __init__(self, slice_tangent, center, texture):
        self.direction, self.scale = _unit(slice_tangent, "SliceGrating: slice_tangent")
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        along = (position - self.center).dot(self.direction)
        return self.texture.evaluate(self.center + self.direction * (along * self.scale))


class SliceToRadial(Texture):
    """The same slice as SliceGrating, swept around center instead of across."""

    def __init__(self, slice_tangent, center, texture):
        self.direction, self.scale = _unit(slice_tangent, "SliceToRadial: slice_tangent")
        self.center = as_vec2(center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        r = (position - self.center).length()
        return self.texture.evaluate(self.center + self.direction * (r * self.scale))


class SliceShear(Texture):
    """
    Shear `texture` across the shear axis by the luminance of a slice of
    `slice_texture`, read at the query's position along the shear axis.
    """

    def __init__(self, slice_tangent, slice_center, slice_texture, shear_tangent, shear_center, texture):
        self.slice_direction, self.slice_scale = _unit(slice_tangent, "SliceShear: slice_tangent")
        self.slice_center = as_vec2(slice_center)
        self.slice_texture = as_texture(slice_texture)
        self.shear_direction, self.shear_scale = _unit(shear_tangent, "SliceShear: shear_tangent")
        self.shear_normal = self.shear_direction.rotate90()
        self.shear_center = as_vec2(shear_center)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        along = (position - self.shear_center).dot(self.shear_direction)
        sample = self.slice_center + self.slice_direction * (along * self.slice_scale)
        offset = self.slice_texture.evaluate(sample).luminance() * self.shear_scale
        return self.texture.evaluate(position + self.shear_normal * offset)


class Colorize(Texture):
    """
    Recolor `texture` by its luminance: brightness b in [0,1] reads
    color_texture at slice_center + slice_tangent * b.
    """

    def __init__(self, slice_tangent, slice_center, color_texture, texture):
        self.slice_tangent = as_vec2(slice_tangent)
        require(self.slice_tangent.length() > 0.0, "Colorize: slice_tangent must be a nonzero vector")
        self.slice_center = as_vec2(slice_center)
        self.color_texture = as_texture(color_texture)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        b = clip01(self.texture.evaluate(position).luminance())
        return self.color_texture.evaluate(self.slice_center + self.slice_tangent * b)

# ========================================
# neighborhood operators
# ========================================

class Blur(Texture):
    """
    Weighted average of the child over a disk of diameter `width`, sampled
    on a samples x samples grid jittered per query. The jitter RNG is seeded
    from the query position, so results are reproducible.
    """

    def __init__(self, width: float, texture, samples: int = 5):
        require(width > 0.0, f"Blur: width must be > 0, got {width}")
        require(int(samples) >= 1, f"Blur: samples must be >= 1, got {samples}")
        self.width = float(width)
        self.samples = int(samples)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        k = self.samples
        radius = self.width / 2.0
        jitter = np.random.default_rng(position.hash()).random((k, k, 2))
        total = Color()
        weight = 0.0
        for i in range(k):
            for j in range(k):
                ox = ((i + jitter[i, j, 0]) / k - 0.5) * self.width
                oy = ((j + jitter[i, j, 1]) / k - 0.5) * self.width
                r = math.sqrt(ox * ox + oy * oy)
                if r >= radius:
                    continue
                w = 1.0 - sinusoid(r / radius)
                total = total + self.texture.evaluate(Vec2(position.x + ox, position.y + oy)) * w
                weight += w
        if weight <= 0.0:
            return self.texture.evaluate(position)
        return total / weight


class EdgeDetect(Texture):
    """High pass: the child minus its blur."""

    def __init__(self, width: float, texture):
        self.texture = as_texture(texture)
        self.blur = Blur(width, self.texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position) - self.blur.evaluate(position)


class EdgeEnhance(Texture):
    def __init__(self, width: float, strength: float, texture):
        self.texture = as_texture(texture)
        self.blur = Blur(width, self.texture)
        self.strength = float(strength)

    def evaluate(self, position: Vec2) -> Color:
        c = self.texture.evaluate(position)
        return c + (c - self.blur.evaluate(position)) * self.strength

# ========================================
# color adjustments
# ========================================

class SoftThreshold(Texture):
    """Gray level: luminance remapped from [intensity0, intensity1] to [0, 1], clipped."""

    def __init__(self, intensity0: float, intensity1: float, texture):
        self.intensity0 = float(intensity0)
        self.intensity1 = float(intensity1)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        lum = self.texture.evaluate(position).luminance()
        return Color.gray(remap_interval_clip(lum, self.intensity0, self.intensity1, 0.0, 1.0))


class AdjustHue(Texture):
    def __init__(self, offset: float, texture):
        self.offset = float(offset)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        h, s, v = self.texture.evaluate(position).get_hsv()
        return Color.from_hsv(h + self.offset, s, v)


class AdjustSaturation(Texture):
    def __init__(self, factor: float, texture):
        self.factor = float(factor)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        h, s, v = self.texture.evaluate(position).get_hsv()
        return Color.from_hsv(h, clip01(s * self.factor), v)


class AdjustBrightness(Texture):
    def __init__(self, factor: float, texture):
        self.factor = float(factor)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position) * self.factor


class Gamma(Texture):
    def __init__(self, gamma: float, texture):
        require(gamma > 0.0, f"Gamma: gamma must be > 0, got {gamma}")
        self.gamma = float(gamma)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        return self.texture.evaluate(position).gamma(self.gamma)


class BrightnessToHue(Texture):
    """Fully saturated color whose hue is the child's luminance plus hue_phase."""

    def __init__(self, hue_phase: float, texture):
        self.hue_phase = float(hue_phase)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        lum = self.texture.evaluate(position).luminance()
        return Color.from_hsv(lum + self.hue_phase, 1.0, 1.0)


class BrightnessWrap(Texture):
    """Luminance wrapped into [lo, hi), keeping the child's chromaticity."""

    def __init__(self, lo: float, hi: float, texture):
        require(lo < hi, f"BrightnessWrap: need lo < hi, got {lo}, {hi}")
        self.lo = float(lo)
        self.hi = float(hi)
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        c = self.texture.evaluate(position)
        lum = c.luminance()
        wrapped = self.lo + fmod_floor(lum - self.lo, self.hi - self.lo)
        if lum < _LUMINANCE_EPSILON:
            return Color.gray(wrapped)
        return c * (wrapped / lum)


class RgbBox(Texture):
    """Map the unit RGB cube onto the box [r0,r1] x [g0,g1] x [b0,b1]."""

    def __init__(self, r0: float, r1: float, g0: float, g1: float, b0: float, b1: float, texture):
        self.box = tuple(float(v) for v in (r0, r1, g0, g1, b0, b1))
        self.texture = as_texture(texture)

    def evaluate(self, position: Vec2) -> Color:
        c = self.texture.evaluate(position)
        r0, r1, g0, g1, b0, b1 = self.box
        return Color(interpolate(c.r, r0, r1),
                     interpolate(c.g, g0, g1),
                     interpolate(c.b, b0, b1))
