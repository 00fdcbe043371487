# generators.py
"""
Leaf textures: color from position and fixed parameters.

Where a generator takes "textures" for its colors, a plain Color (or a gray
level, or a color spec string) is accepted too and wrapped in Uniform.
"""
import perlin
from colors import Color
from texture import Texture, TwoPointTransform, as_texture, require
from utilities import clip01, fmod_floor, interpolate, remap_interval, remap_interval_clip, sinusoid
from vec2 import Vec2, as_vec2

# ========================================
# constant
# ========================================

class Uniform(Texture):
    def __init__(self, color=Color()):
        if isinstance(color, (int, float)):
            color = Color.gray(float(color))
        self.color = Color.from_spec(color)

    def evaluate(self, position: Vec2) -> Color:
        return self.color

    def __repr__(self) -> str:
        return f"Uniform({self.color!r})"

# ========================================
# geometric generators
# ========================================

class Spot(Texture):
    """
    Inner texture inside inner_radius, outer texture beyond outer_radius,
    sinusoidal blend on the radial distance in between.
    """

    def __init__(self, center, inner_radius: float, inner_texture, outer_radius: float, outer_texture):
        require(inner_radius >= 0.0, f"Spot: inner_radius must be >= 0, got {inner_radius}")
        require(outer_radius > 0.0, f"Spot: outer_radius must be > 0, got {outer_radius}")
        require(inner_radius <= outer_radius,
                f"Spot: inner_radius {inner_radius} exceeds outer_radius {outer_radius}")
        self.center = as_vec2(center)
        self.inner_radius = float(inner_radius)
        self.outer_radius = float(outer_radius)
        self.inner_texture = as_texture(inner_texture)
        self.outer_texture = as_texture(outer_texture)

    def evaluate(self, position: Vec2) -> Color:
        d = (position - self.center).length()
        if d <= self.inner_radius:
            return self.inner_texture.evaluate(position)
        if d >= self.outer_radius:
            return self.outer_texture.evaluate(position)
        f = sinusoid(remap_interval(d, self.inner_radius, self.outer_radius, 0.0, 1.0))
        return interpolate(f,
                           self.inner_texture.evaluate(position),
                           self.outer_texture.evaluate(position))


class Gradation(Texture):
    """
    texture0 on the far side of point0, texture1 beyond point1, sinusoidal
    ramp along the axis between them. Constant across the axis.
    """

    def __init__(self, point0, texture0, point1, texture1):
        self.point0 = as_vec2(point0)
        axis = as_vec2(point1) - self.point0
        self.length = axis.length()
        require(self.length > 0.0, "Gradation: point0 and point1 must differ")
        self.direction = axis / self.length
        self.texture0 = as_texture(texture0)
        self.texture1 = as_texture(texture1)

    def evaluate(self, position: Vec2) -> Color:
        projection = (position - self.point0).dot(self.direction)
        if projection <= 0.0:
            return self.texture0.evaluate(position)
        if projection >= self.length:
            return self.texture1.evaluate(position)
        f = sinusoid(projection / self.length)
        return interpolate(f,
                           self.texture0.evaluate(position),
                           self.texture1.evaluate(position))


class Grating(Texture):
    """
    Periodic stripes along point1 - point0 (one full period). texture0 at
    point0 and every whole period from it, texture1 centered half a period
    away. duty_cycle is the texture1 fraction of each period; softness in
    [0,1] goes from hard edges to a full sinusoidal profile.
    """

    def __init__(self, point0, texture0, point1, texture1, softness: float = 1.0, duty_cycle: float = 0.5):
        self.point0 = as_vec2(point0)
        axis = as_vec2(point1) - self.point0
        self.period = axis.length()
        require(self.period > 0.0, "Grating: point0 and point1 must differ")
        self.direction = axis / self.period
        self.texture0 = as_texture(texture0)
        self.texture1 = as_texture(texture1)
        self.softness = clip01(float(softness))
        self.duty_cycle = clip01(float(duty_cycle))
        self._half_width = self.softness * min(self.duty_cycle, 1.0 - self.duty_cycle)

    def profile(self, position: Vec2) -> float:
        """0 where texture1 shows fully, 1 where texture0 does."""
        phase = fmod_floor((position - self.point0).dot(self.direction), self.period) / self.period
        # 0 at the texture1 band center, 1 at point0
        c = abs(phase - 0.5) * 2.0
        s = remap_interval_clip(c,
                                self.duty_cycle - self._half_width,
                                self.duty_cycle + self._half_width,
                                0.0, 1.0)
        return sinusoid(s)

    def evaluate(self, position: Vec2) -> Color:
        return interpolate(self.profile(position),
                           self.texture1.evaluate(position),
                           self.texture0.evaluate(position))

# ========================================
# noise generators
# ========================================

class _NoiseTexture(Texture):
    """
    Blend of texture0 and texture1 by a unit-range scalar noise field, laid
    out in the frame of point0/point1 (origin, scale and orientation).
    """
    field = staticmethod(perlin.unit_noise2d)

    def __init__(self, point0, point1, texture0, texture1, seed: int = 0):
        self.transform = TwoPointTransform(point0, point1)
        self.texture0 = as_texture(texture0)
        self.texture1 = as_texture(texture1)
        self.seed = int(seed)

    def noise_value(self, position: Vec2) -> float:
        return self.field(self.transform.local(position), self.seed)

    def evaluate(self, position: Vec2) -> Color:
        return interpolate(self.noise_value(position),
                           self.texture0.evaluate(position),
                           self.texture1.evaluate(position))


class Noise(_NoiseTexture):
    field = staticmethod(perlin.unit_noise2d)

class Brownian(_NoiseTexture):
    field = staticmethod(perlin.brownian2d)

class Turbulence(_NoiseTexture):
    field = staticmethod(perlin.turbulence2d)

class Furbulence(_NoiseTexture):
    field = staticmethod(perlin.furbulence2d)

class Wrapulence(_NoiseTexture):
    field = staticmethod(perlin.wrapulence2d)


class MultiNoise(_NoiseTexture):
    """`which` in [0,1] picks noise, brownian, turbulence, furbulence or wrapulence."""

    def __init__(self, point0, point1, texture0, texture1, which: float, seed: int = 0):
        super().__init__(point0, point1, texture0, texture1, seed)
        self.which = clip01(float(which))

    def noise_value(self, position: Vec2) -> float:
        return perlin.multi_noise2d(self.transform.local(position), self.which, self.seed)


# offsets that decorrelate the three channels of ColorNoise
_CHANNEL_OFFSETS = (Vec2(0.0, 0.0), Vec2(37.17, -91.43), Vec2(-53.71, 64.29))

class ColorNoise(Texture):
    def __init__(self, point0, point1, which: float, seed: int = 0):
        self.transform = TwoPointTransform(point0, point1)
        self.which = clip01(float(which))
        self.seed = int(seed)

    def evaluate(self, position: Vec2) -> Color:
        p = self.transform.local(position)
        r, g, b = (perlin.multi_noise2d(p + o, self.which, self.seed) for o in _CHANNEL_OFFSETS)
        return Color(r, g, b)
