# spots.py
"""
Random fields of non-overlapping round spots on a background, repeated over
a periodic tile. Spots are placed once at construction from a seeded RNG;
evaluation looks up the spot under the query through a periodic cKDTree.
"""
import logging
import math
from abc import abstractmethod
from typing import Optional

import numpy as np
from scipy.spatial import cKDTree

from colors import Color
from texture import Texture, as_texture, require
from utilities import fmod_floor, interpolate, remap_interval_clip, sinusoid
from vec2 import Vec2, as_vec2

log = logging.getLogger(__name__)

TILE_SIZE = 10.0
PLACEMENT_ATTEMPTS = 200
MAX_SPOTS = 20000

# ========================================
# placement
# ========================================

def _periodic_distances(points: np.ndarray, p: np.ndarray, tile: float) -> np.ndarray:
    d = np.abs(points - p)
    d = np.minimum(d, tile - d)
    return np.sqrt((d * d).sum(axis=1))


def place_spots(density: float,
                min_radius: float,
                max_radius: float,
                margin: float,
                rng: np.random.Generator,
                tile: float = TILE_SIZE) -> tuple[np.ndarray, np.ndarray]:
    """
    Random sequential placement of disks in a periodic square tile.

    Radii are drawn uniformly from [min_radius, max_radius] until their total
    area reaches density * tile**2, then placed largest first. A disk that
    cannot find a spot at least `margin` away from every placed disk within
    PLACEMENT_ATTEMPTS tries is dropped. At most MAX_SPOTS radii are drawn.

    Returns (centers[n, 2] in [0, tile), radii[n]).
    """
    target = density * tile * tile
    radii = []
    area = 0.0
    while area < target and len(radii) < MAX_SPOTS:
        r = float(rng.uniform(min_radius, max_radius))
        radii.append(r)
        area += math.pi * r * r
    if area < target:
        log.warning("spot placement capped at %d spots, density %.3f of %.3f",
                    MAX_SPOTS, area / (tile * tile), density)
    radii.sort(reverse=True)

    centers = np.empty((len(radii), 2), dtype=np.float64)
    kept = np.empty(len(radii), dtype=np.float64)
    n = 0
    for r in radii:
        for _ in range(PLACEMENT_ATTEMPTS):
            c = rng.random(2) * tile
            if n == 0:
                break
            gaps = _periodic_distances(centers[:n], c, tile) - kept[:n] - r
            if gaps.min() >= margin:
                break
        else:
            continue
        centers[n] = c
        kept[n] = r
        n += 1

    dropped = len(radii) - n
    if dropped:
        placed = float(np.sum(np.pi * kept[:n] ** 2)) / (tile * tile)
        log.warning("spot placement dropped %d of %d spots, density %.3f of %.3f",
                    dropped, len(radii), placed, density)
    log.debug("placed %d spots in a %g tile", n, tile)
    return centers[:n].copy(), kept[:n].copy()

# ========================================
# spot field base
# ========================================

class _SpotField(Texture):
    def __init__(self, density: float, min_radius: float, max_radius: float,
                 soft_edge_width: float, margin: float, background_texture,
                 seed: Optional[int] = 0):
        require(0.0 <= density <= 1.0, f"{type(self).__name__}: density must be in [0, 1], got {density}")
        require(min_radius > 0.0, f"{type(self).__name__}: min_radius must be > 0, got {min_radius}")
        require(min_radius <= max_radius,
                f"{type(self).__name__}: min_radius {min_radius} exceeds max_radius {max_radius}")
        require(2.0 * max_radius + margin < TILE_SIZE,
                f"{type(self).__name__}: max_radius {max_radius} too large for the tile")
        require(soft_edge_width >= 0.0,
                f"{type(self).__name__}: soft_edge_width must be >= 0, got {soft_edge_width}")
        require(margin >= 0.0, f"{type(self).__name__}: margin must be >= 0, got {margin}")
        self.density = float(density)
        self.min_radius = float(min_radius)
        self.max_radius = float(max_radius)
        self.soft_edge_width = float(soft_edge_width)
        self.margin = float(margin)
        self.background_texture = as_texture(background_texture)
        self.rng = np.random.default_rng(seed)

        self.centers, self.radii = place_spots(self.density, self.min_radius, self.max_radius,
                                               self.margin, self.rng)
        self.tree = cKDTree(self.centers, boxsize=TILE_SIZE) if len(self.radii) else None

    def find_spot(self, position: Vec2) -> tuple[int, float]:
        """(index, distance) of the spot covering position, or (-1, inf)."""
        if self.tree is None:
            return -1, math.inf
        q = np.array([fmod_floor(position.x + TILE_SIZE / 2.0, TILE_SIZE),
                      fmod_floor(position.y + TILE_SIZE / 2.0, TILE_SIZE)])
        # fmod_floor can round up to the tile size itself
        q[q >= TILE_SIZE] = 0.0
        for i in self.tree.query_ball_point(q, self.max_radius):
            d = float(_periodic_distances(self.centers[i:i + 1], q, TILE_SIZE)[0])
            if d <= self.radii[i]:
                return i, d
        return -1, math.inf

    def spot_center(self, index: int, position: Vec2) -> Vec2:
        """Center of spot `index` in the tile copy nearest to position."""
        cx, cy = self.centers[index] - TILE_SIZE / 2.0
        dx = position.x - cx
        dy = position.y - cy
        return Vec2(cx + TILE_SIZE * round(dx / TILE_SIZE), cy + TILE_SIZE * round(dy / TILE_SIZE))

    def matte(self, index: int, distance: float) -> float:
        r = self.radii[index]
        if self.soft_edge_width <= 0.0:
            return 1.0
        return 1.0 - sinusoid(remap_interval_clip(distance, r - self.soft_edge_width, r, 0.0, 1.0))

    @abstractmethod
    def spot_color(self, index: int, position: Vec2) -> Color:
        """Color of spot `index` at position, before the soft edge blend."""
        ...

    def evaluate(self, position: Vec2) -> Color:
        background = self.background_texture.evaluate(position)
        index, distance = self.find_spot(position)
        if index < 0:
            return background
        return interpolate(self.matte(index, distance), background, self.spot_color(index, position))

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(density={self.density:g}, "
                f"radii=[{self.min_radius:g}, {self.max_radius:g}], spots={len(self.radii)})")

# ========================================
# spot fields
# ========================================

class LotsOfSpots(_SpotField):
    """Every spot shows spot_texture at the query position."""

    def __init__(self, density: float, min_radius: float, max_radius: float,
                 soft_edge_width: float, margin: float, spot_texture, background_texture,
                 seed: Optional[int] = 0):
        self.spot_texture = as_texture(spot_texture)
        super().__init__(density, min_radius, max_radius, soft_edge_width, margin,
                         background_texture, seed)

    def spot_color(self, index: int, position: Vec2) -> Color:
        return self.spot_texture.evaluate(position)


class ColoredSpots(_SpotField):
    """Each spot is one flat color: spot_texture sampled at that spot's center."""

    def __init__(self, density: float, min_radius: float, max_radius: float,
                 soft_edge_width: float, margin: float, spot_texture, background_texture,
                 seed: Optional[int] = 0):
        self.spot_texture = as_texture(spot_texture)
        super().__init__(density, min_radius, max_radius, soft_edge_width, margin,
                         background_texture, seed)
        self.colors = [self.spot_texture.evaluate(Vec2(*(c - TILE_SIZE / 2.0)))
                       for c in self.centers]

    def spot_color(self, index: int, position: Vec2) -> Color:
        return self.colors[index]


class LotsOfButtons(_SpotField):
    """
    Each spot shows a copy of button_texture: the disk of radius max_radius
    around button_center is scaled to the spot and, when
    button_random_rotate is set, given a random turn per spot.
    """

    def __init__(self, density: float, min_radius: float, max_radius: float,
                 soft_edge_width: float, margin: float, button_center, button_texture,
                 button_random_rotate: bool, background_texture,
                 seed: Optional[int] = 0):
        self.button_center = as_vec2(button_center)
        self.button_texture = as_texture(button_texture)
        self.button_random_rotate = bool(button_random_rotate)
        super().__init__(density, min_radius, max_radius, soft_edge_width, margin,
                         background_texture, seed)
        n = len(self.radii)
        if self.button_random_rotate:
            self.angles = self.rng.random(n) * 2.0 * math.pi
        else:
            self.angles = np.zeros(n)

    def spot_color(self, index: int, position: Vec2) -> Color:
        center = self.spot_center(index, position)
        local = (position - center) * (self.max_radius / self.radii[index])
        local = local.rotate(float(self.angles[index]))
        return self.button_texture.evaluate(self.button_center + local)
