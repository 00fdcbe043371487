# perlin.py
import logging
import math
from functools import lru_cache
from typing import Callable, Optional

import numpy as np
from numba import njit

from vec2 import Vec2

log = logging.getLogger(__name__)

OCTAVES = 10
# raw 2d gradient noise with unit gradients peaks near +/-0.707;
# the gains below push every field into its clip at both ends
NOISE_GAIN = 2.0
TURBULENCE_OFFSET = 0.05
TURBULENCE_GAIN = 2.5
BROWNIAN_GAIN = 3.0
FURBULENCE_GAIN = 2.0
WRAPULENCE_SCALE = 3.0
# widens each wrapped band slightly so 0 and 1 are both attained
WRAPULENCE_STRETCH = 1.1

_GRADIENTS = np.array(
    [(math.cos(k * math.pi / 4.0), math.sin(k * math.pi / 4.0)) for k in range(8)],
    dtype=np.float64,
)

# ========================================
# lattice
# ========================================

@lru_cache(maxsize=64)
def _lattice(seed: int) -> np.ndarray:
    """
    Permutation table for one seed, doubled to 512 entries so that
    perm[perm[X] + Y] never needs a wrap.
    """
    p = np.random.default_rng(int(seed)).permutation(256).astype(np.int64)
    out = np.concatenate([p, p])
    return out

# ========================================
# kernels
# ========================================

@njit(cache=True, nogil=True)
def _fade(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)

@njit(cache=True, nogil=True)
def _lerp(t, a, b):
    return a + t * (b - a)

@njit(cache=True, nogil=True)
def _gradient_noise(x, y, perm, grads):
    xf = math.floor(x)
    yf = math.floor(y)
    fx = x - xf
    fy = y - yf
    # lattice repeats every 256 cells; reduce before the int cast
    X = int(xf - 256.0 * math.floor(xf / 256.0)) & 255
    Y = int(yf - 256.0 * math.floor(yf / 256.0)) & 255
    X1 = (X + 1) & 255
    Y1 = (Y + 1) & 255
    g00 = perm[perm[X] + Y] & 7
    g10 = perm[perm[X1] + Y] & 7
    g01 = perm[perm[X] + Y1] & 7
    g11 = perm[perm[X1] + Y1] & 7
    n00 = grads[g00, 0] * fx + grads[g00, 1] * fy
    n10 = grads[g10, 0] * (fx - 1.0) + grads[g10, 1] * fy
    n01 = grads[g01, 0] * fx + grads[g01, 1] * (fy - 1.0)
    n11 = grads[g11, 0] * (fx - 1.0) + grads[g11, 1] * (fy - 1.0)
    u = _fade(fx)
    v = _fade(fy)
    return _lerp(v, _lerp(u, n00, n10), _lerp(u, n01, n11))

@njit(cache=True, nogil=True)
def _noise(x, y, perm, grads):
    n = _gradient_noise(x, y, perm, grads) * NOISE_GAIN
    if n < -1.0:
        return -1.0
    if n > 1.0:
        return 1.0
    return n

@njit(cache=True, nogil=True)
def _fractal(x, y, perm, grads, mode):
    """
    Octave sum, frequency doubling and amplitude halving per octave,
    normalized by the total amplitude.
      mode 0: n           (brownian)
      mode 1: |n|         (turbulence)
      mode 2: |2|n| - 1|  (furbulence)
    """
    value = 0.0
    total = 0.0
    freq = 1.0
    amp = 1.0
    for _ in range(OCTAVES):
        n = _noise(x * freq, y * freq, perm, grads)
        if mode == 1:
            n = abs(n)
        elif mode == 2:
            n = abs(2.0 * abs(n) - 1.0)
        value += n * amp
        total += amp
        freq *= 2.0
        amp *= 0.5
    return value / total

@njit(cache=True, nogil=True)
def _clip01(v):
    if v < 0.0:
        return 0.0
    if v > 1.0:
        return 1.0
    return v

@njit(cache=True, nogil=True)
def _turbulence(x, y, perm, grads):
    return _clip01((_fractal(x, y, perm, grads, 1) - TURBULENCE_OFFSET) * TURBULENCE_GAIN)

@njit(cache=True, nogil=True)
def _brownian(x, y, perm, grads):
    return _clip01((_fractal(x, y, perm, grads, 0) * BROWNIAN_GAIN + 1.0) * 0.5)

@njit(cache=True, nogil=True)
def _furbulence(x, y, perm, grads):
    return _clip01((_fractal(x, y, perm, grads, 2) - 0.5) * FURBULENCE_GAIN + 0.5)

@njit(cache=True, nogil=True)
def _wrapulence(x, y, perm, grads):
    v = _fractal(x, y, perm, grads, 0) * WRAPULENCE_SCALE
    w = v - math.floor(v)
    return _clip01((w - 0.5) * WRAPULENCE_STRETCH + 0.5)

# ========================================
# public scalar fields
# ========================================

def noise2d(position: Vec2, seed: int = 0) -> float:
    """Gradient noise in [-1, 1]."""
    return float(_noise(position.x, position.y, _lattice(seed), _GRADIENTS))

def unit_noise2d(position: Vec2, seed: int = 0) -> float:
    """Gradient noise remapped to [0, 1]."""
    return (noise2d(position, seed) + 1.0) * 0.5

def turbulence2d(position: Vec2, seed: int = 0) -> float:
    return float(_turbulence(position.x, position.y, _lattice(seed), _GRADIENTS))

def brownian2d(position: Vec2, seed: int = 0) -> float:
    return float(_brownian(position.x, position.y, _lattice(seed), _GRADIENTS))

def furbulence2d(position: Vec2, seed: int = 0) -> float:
    return float(_furbulence(position.x, position.y, _lattice(seed), _GRADIENTS))

def wrapulence2d(position: Vec2, seed: int = 0) -> float:
    return float(_wrapulence(position.x, position.y, _lattice(seed), _GRADIENTS))

_MULTI = (unit_noise2d, brownian2d, turbulence2d, furbulence2d, wrapulence2d)

def multi_noise2d(position: Vec2, which: float, seed: int = 0) -> float:
    """
    One of the five unit-range fields chosen by `which` in [0,1]:
    noise, brownian, turbulence, furbulence, wrapulence.
    """
    i = min(max(int(which * len(_MULTI)), 0), len(_MULTI) - 1)
    return _MULTI[i](position, seed)

# ========================================
# validation
# ========================================

def measure_range(
    fn: Callable[[Vec2], float],
    samples: int = 10000,
    radius: float = 100.0,
    rng: Optional[np.random.Generator] = None,
) -> tuple[float, float]:
    """
    Sample `fn` at random points of a disk and return the observed (min, max).
    Used to validate output bounds, never during synthesis.
    """
    rng = rng or np.random.default_rng()
    lo = math.inf
    hi = -math.inf
    for _ in range(int(samples)):
        p = Vec2.random_point_in_unit_diameter_circle(rng) * (2.0 * radius)
        v = fn(p)
        lo = min(lo, v)
        hi = max(hi, v)
    return lo, hi

# ---------- warmup ----------

def warmup_noise_kernels():
    try:
        perm = _lattice(0)
        _noise(0.5, 0.5, perm, _GRADIENTS)
        _turbulence(0.5, 0.5, perm, _GRADIENTS)
        _brownian(0.5, 0.5, perm, _GRADIENTS)
        _furbulence(0.5, 0.5, perm, _GRADIENTS)
        _wrapulence(0.5, 0.5, perm, _GRADIENTS)
    except Exception as e:
        log.warning("[jit] noise warmup skipped: %s", e)
