# raster.py
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numba import njit

from colors import Color
from diagnostics import SampleBounds, default_collector
from operators import AbsDiff
from texture import Texture, as_texture
from vec2 import Vec2

log = logging.getLogger(__name__)

DEFAULT_GAMMA = 2.2
DEFAULT_BACKGROUND = Color(0.5, 0.5, 0.5)

_default_threads: Optional[int] = None


def set_raster_threads(threads: Optional[int]) -> None:
    """
    Default number of row workers for rasterize() in this process.
    None restores the default (one per CPU).
    """
    global _default_threads
    if threads is not None and int(threads) < 1:
        raise ValueError(f"threads must be >= 1, got {threads}")
    _default_threads = None if threads is None else int(threads)


def _resolve_threads(threads: Optional[int]) -> int:
    if threads is None:
        threads = _default_threads
    if threads is None:
        threads = os.cpu_count() or 1
    return max(1, int(threads))


def setup_logging(verbosity: int = 0) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

# ========================================
# config
# ========================================

@dataclass
class RasterConfig:
    size: int = 511
    disk: bool = False
    supersample: int = 1
    gamma: float = DEFAULT_GAMMA
    background: Color = field(default_factory=lambda: DEFAULT_BACKGROUND)
    threads: Optional[int] = None

    def validate(self) -> "RasterConfig":
        if int(self.size) < 2:
            raise ValueError(f"size must be >= 2, got {self.size}")
        if self.disk and int(self.size) % 2 == 0:
            raise ValueError(f"disk rasterization needs an odd size, got {self.size}")
        if int(self.supersample) < 1:
            raise ValueError(f"supersample must be >= 1, got {self.supersample}")
        if not self.gamma > 0.0:
            raise ValueError(f"gamma must be > 0, got {self.gamma}")
        if self.threads is not None and int(self.threads) < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")
        self.background = Color.from_spec(self.background)
        return self

# ========================================
# pixel footprint
# ========================================

def disk_mask(size: int) -> np.ndarray:
    """
    [row, col] boolean mask of the pixels inside the disk inscribed in a
    size x size raster (pixel centers within size // 2 of the center pixel).
    """
    half = size // 2
    yy, xx = np.mgrid[0:size, 0:size]
    return ((xx - half) ** 2 + (yy - half) ** 2) <= half * half


def pixel_samples(center: Vec2, pixel_size: float, k: int) -> np.ndarray:
    """
    (k*k, 2) texture-space sample positions inside the pixel centered at
    `center`: a k x k grid, each cell jittered by an RNG seeded from the
    hash of the pixel center. k == 1 is just the center, no jitter.
    """
    if k <= 1:
        return np.array([[center.x, center.y]], dtype=np.float64)
    rng = np.random.default_rng(center.hash())
    jitter = rng.random((k, k, 2))
    ii, jj = np.meshgrid(np.arange(k), np.arange(k), indexing="ij")
    ox = ((ii + jitter[:, :, 0]) / k - 0.5) * pixel_size
    oy = ((jj + jitter[:, :, 1]) / k - 0.5) * pixel_size
    return np.stack([center.x + ox.ravel(), center.y + oy.ravel()], axis=1)

# ========================================
# pixel encoding
# ========================================

@njit(cache=True, nogil=True)
def _encode_row(row, inside, inv_gamma, bg_r, bg_g, bg_b):
    """
    In place on a (W, 3) row of averaged linear colors: gamma encode, then
    clip into the unit cube keeping direction. Pixels outside the footprint
    get the background color as is.
    """
    for i in range(row.shape[0]):
        if not inside[i]:
            row[i, 0] = bg_r
            row[i, 1] = bg_g
            row[i, 2] = bg_b
            continue
        r = max(row[i, 0], 0.0) ** inv_gamma
        g = max(row[i, 1], 0.0) ** inv_gamma
        b = max(row[i, 2], 0.0) ** inv_gamma
        m = max(r, max(g, b))
        if m > 1.0:
            r /= m
            g /= m
            b /= m
        row[i, 0] = r
        row[i, 1] = g
        row[i, 2] = b

# ========================================
# rasterizer
# ========================================

def _render_row(texture: Texture,
                row: int,
                size: int,
                k: int,
                inside: np.ndarray,
                inv_gamma: float,
                background: Color,
                collector: Optional[SampleBounds],
                image: np.ndarray,
                image_lock: threading.Lock) -> None:
    half = size // 2
    pixel_size = 1.0 / half
    y = (row - half) / half
    scratch = np.zeros((size, 3), dtype=np.float64)
    xs = []
    ys = []
    for col in range(size):
        if not inside[col]:
            continue
        center = Vec2((col - half) / half, y)
        samples = pixel_samples(center, pixel_size, k)
        r = g = b = 0.0
        for sx, sy in samples:
            c = texture.evaluate(Vec2(float(sx), float(sy)))
            r += c.r
            g += c.g
            b += c.b
        n = len(samples)
        scratch[col, 0] = r / n
        scratch[col, 1] = g / n
        scratch[col, 2] = b / n
        if collector is not None:
            xs.append(samples[:, 0])
            ys.append(samples[:, 1])

    _encode_row(scratch, inside, inv_gamma, background.r, background.g, background.b)

    if collector is not None and xs:
        collector.record_many(np.concatenate(xs), np.concatenate(ys))
    with image_lock:
        image[row, :, :] = scratch


def rasterize(texture,
              size: int,
              *,
              disk: bool = False,
              supersample: int = 1,
              gamma: float = DEFAULT_GAMMA,
              background=DEFAULT_BACKGROUND,
              threads: Optional[int] = None,
              diagnostics: Optional[SampleBounds] = None) -> np.ndarray:
    """
    Sample `texture` into a (size, size, 3) float64 buffer indexed [row, col].

    Pixel (col, row) is centered on texture-space
    ((col - size//2) / (size//2), (row - size//2) / (size//2)). Each pixel
    averages supersample**2 jittered samples in linear space, then is gamma
    encoded (c ** (1 / gamma)) and clipped into the unit RGB cube. In disk
    mode, which needs an odd size, pixels outside the inscribed disk are
    left at `background`.

    One task per row on a thread pool; the jitter of every pixel depends
    only on its center, so output does not depend on scheduling.
    """
    cfg = RasterConfig(size=size, disk=disk, supersample=supersample, gamma=gamma,
                       background=background, threads=threads).validate()
    return rasterize_config(texture, cfg, diagnostics=diagnostics)


def rasterize_config(texture, cfg: RasterConfig, *, diagnostics: Optional[SampleBounds] = None) -> np.ndarray:
    cfg.validate()
    texture = as_texture(texture)
    size = int(cfg.size)
    k = int(cfg.supersample)
    collector = diagnostics if diagnostics is not None else default_collector
    workers = _resolve_threads(cfg.threads)

    if cfg.disk:
        mask = disk_mask(size)
    else:
        mask = np.ones((size, size), dtype=np.bool_)

    image = np.empty((size, size, 3), dtype=np.float64)
    image_lock = threading.Lock()
    inv_gamma = 1.0 / float(cfg.gamma)

    log.debug("rasterize %r size=%d disk=%s supersample=%d threads=%d",
              texture, size, cfg.disk, k, workers)
    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futs = [ex.submit(_render_row, texture, row, size, k, mask[row], inv_gamma,
                          cfg.background, collector, image, image_lock)
                for row in range(size)]
        # re-raise the first worker failure once all rows are joined
        for f in futs:
            f.result()
    elapsed = time.perf_counter() - t0
    log.info("rasterized %dx%d%s, %d samples/pixel in %.3fs",
             size, size, " disk" if cfg.disk else "", k * k, elapsed)
    return image


def diff(texture0, texture1, size: int = 255, **kwargs) -> np.ndarray:
    """
    Rasterize |texture0 - texture1| per channel, with no gamma encoding,
    and log the mean and max difference.
    """
    kwargs.setdefault("gamma", 1.0)
    image = rasterize(AbsDiff(texture0, texture1), size, **kwargs)
    log.info("diff %dx%d: mean %.6f max %.6f", size, size, float(image.mean()), float(image.max()))
    return image


def average_color(image: np.ndarray, disk: bool = False) -> Color:
    if disk:
        pixels = image[disk_mask(image.shape[0])]
    else:
        pixels = image.reshape(-1, 3)
    r, g, b = pixels.mean(axis=0)
    return Color(float(r), float(g), float(b))

# ---------- warmup ----------

def warmup_raster_kernels():
    try:
        row = np.full((4, 3), 0.5, np.float64)
        inside = np.array([True, True, False, True])
        _encode_row(row, inside, 1.0 / DEFAULT_GAMMA, 0.5, 0.5, 0.5)
    except Exception as e:
        log.warning("raster warmup skipped: %s", e)
