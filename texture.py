# texture.py
from abc import ABC, abstractmethod

from colors import Color
from vec2 import Vec2, as_vec2

# ========================================
# node contract
# ========================================

class Texture(ABC):
    """
    A node of a texture expression: maps a texture-space position to a Color.

    evaluate() must be a pure function of (node, position). Nodes capture
    their parameters and child textures in __init__ and never change them,
    so a node can only reference nodes built before it (no cycles) and the
    same subtree can be shared by any number of parents and threads.
    """

    @abstractmethod
    def evaluate(self, position: Vec2) -> Color:
        ...

    def __call__(self, position: Vec2) -> Color:
        return self.evaluate(position)

    def evaluate_clipped(self, position: Vec2) -> Color:
        return self.evaluate(position).clip_to_unit_rgb()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def as_texture(source) -> Texture:
    """
    Accept a Texture, a Color, a color spec string or a gray level and
    return a Texture; plain colors become Uniform.
    """
    if isinstance(source, Texture):
        return source
    from generators import Uniform
    if isinstance(source, (int, float)):
        return Uniform(Color.gray(float(source)))
    return Uniform(Color.from_spec(source))


def require(condition: bool, message: str) -> None:
    # construction-time precondition
    if not condition:
        raise ValueError(message)

# ========================================
# two point frame
# ========================================

class TwoPointTransform:
    """
    Local frame defined by two points: origin at p0, x axis along p1 - p0,
    unit length |p1 - p0|. local() maps texture space into the frame,
    world() maps back.
    """

    def __init__(self, p0: Vec2, p1: Vec2):
        offset = as_vec2(p1) - as_vec2(p0)
        self.scale = offset.length()
        require(self.scale > 0.0, "TwoPointTransform: p0 and p1 must differ")
        self.origin = as_vec2(p0)
        self.x_axis = offset / self.scale
        self.y_axis = self.x_axis.rotate90()

    def local(self, position: Vec2) -> Vec2:
        d = position - self.origin
        return Vec2(d.dot(self.x_axis), d.dot(self.y_axis)) / self.scale

    def world(self, position: Vec2) -> Vec2:
        return (self.origin
                + self.x_axis * (position.x * self.scale)
                + self.y_axis * (position.y * self.scale))
