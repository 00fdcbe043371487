import math
import struct
from typing import NamedTuple, Optional

import numpy as np

_MASK64 = 0xFFFFFFFFFFFFFFFF


def _mix64(h: int) -> int:
    # splitmix64 finalizer
    h = ((h ^ (h >> 30)) * 0xBF58476D1CE4E5B9) & _MASK64
    h = ((h ^ (h >> 27)) * 0x94D049BB133111EB) & _MASK64
    return h ^ (h >> 31)


class Vec2(NamedTuple):
    """
    2D point / vector in texture space. Immutable.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, s: float) -> "Vec2":
        return Vec2(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __truediv__(self, s: float) -> "Vec2":
        return Vec2(self.x / s, self.y / s)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def __lt__(self, other: "Vec2") -> bool:
        return self.length_squared() < other.length_squared()

    def dot(self, other: "Vec2") -> float:
        return self.x * other.x + self.y * other.y

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalize(self) -> "Vec2":
        n = self.length()
        if n == 0.0:
            raise ValueError("cannot normalize a zero-length Vec2")
        return Vec2(self.x / n, self.y / n)

    def rotate(self, angle: float) -> "Vec2":
        """
        Rotate by angle (radians). Positive angles turn clockwise:
        Vec2(1, 0).rotate(a) == Vec2(cos(a), -sin(a)).
        """
        s = math.sin(angle)
        c = math.cos(angle)
        return Vec2(self.x * c + self.y * s, self.y * c - self.x * s)

    def rotate90(self) -> "Vec2":
        # counterclockwise quarter turn
        return Vec2(-self.y, self.x)

    def perpendicular(self) -> "Vec2":
        return self.rotate90()

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def within_epsilon(self, other: "Vec2", epsilon: float) -> bool:
        return abs(self.x - other.x) <= epsilon and abs(self.y - other.y) <= epsilon

    def hash(self) -> int:
        """
        Deterministic 64-bit hash of both components, stable across runs and
        processes. Used only to seed reproducible randomness.
        """
        hx, hy = struct.unpack("<QQ", struct.pack("<dd", self.x + 0.0, self.y + 0.0))
        return _mix64(_mix64(hx) ^ ((hy * 0x9E3779B97F4A7C15) & _MASK64))

    @staticmethod
    def random_point_in_unit_diameter_circle(rng: Optional[np.random.Generator] = None) -> "Vec2":
        """Uniform over the disk of radius 0.5 centered at the origin."""
        rng = rng or np.random.default_rng()
        while True:
            x, y = rng.random(2) - 0.5
            if x * x + y * y <= 0.25:
                return Vec2(float(x), float(y))

    @staticmethod
    def random_unit_vector(rng: Optional[np.random.Generator] = None) -> "Vec2":
        rng = rng or np.random.default_rng()
        a = float(rng.random()) * 2.0 * math.pi
        return Vec2(math.cos(a), math.sin(a))

    def __repr__(self) -> str:
        return f"Vec2({self.x:g}, {self.y:g})"


def as_vec2(p) -> Vec2:
    if isinstance(p, Vec2):
        return p
    return Vec2(float(p[0]), float(p[1]))
