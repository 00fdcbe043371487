# export.py
"""
Hand rasterized buffers to libvips for encoding.

Buffers are float (H, W, 3) arrays in [0, 1] as produced by raster.rasterize;
they are converted to 8-bit samples (x * 255, rounded) and written in the
format named by the file extension.
"""
import argparse
import logging
import math
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pyvips as vips

from colors import Color
from generators import Brownian, ColorNoise, Grating, Spot, Turbulence
from operators import SoftMatte, Twist
from raster import DEFAULT_BACKGROUND, DEFAULT_GAMMA, RasterConfig, rasterize_config, setup_logging
from vec2 import Vec2

log = logging.getLogger(__name__)

JPEG_SUFFIXES = (".jpg", ".jpeg")


def set_vips_threads(threads: Optional[int]) -> None:
    """
    Set libvips concurrency (threads used per operation) for this process.
    """
    if threads is None:
        return
    vips.concurrency_set(int(threads))

# ========================================
# buffer conversion
# ========================================

def float01_to_u8(buffer: np.ndarray) -> np.ndarray:
    """
    Float [0,1] to uint8 [0,255] with rounding; out of range values clip.
    """
    return np.rint(np.clip(buffer, 0.0, 1.0) * 255.0).astype(np.uint8)


def color_to_u8(color) -> list[int]:
    c = Color.from_spec(color).clip_to_unit_rgb()
    return [int(round(v * 255.0)) for v in c]


def np_to_vips_rgb_u8(buffer: np.ndarray) -> vips.Image:
    arr = buffer if buffer.dtype == np.uint8 else float01_to_u8(buffer)
    arr = np.ascontiguousarray(arr)
    H, W, bands = arr.shape
    if bands != 3:
        raise ValueError(f"expected an (H, W, 3) buffer, got shape {arr.shape}")
    return vips.Image.new_from_memory(arr.data, W, H, 3, "uchar")


def add_margin(img: vips.Image, margin: int, background=DEFAULT_BACKGROUND) -> vips.Image:
    """Uniform border of `margin` pixels in the background color."""
    margin = int(margin)
    if margin < 0:
        raise ValueError(f"margin must be >= 0, got {margin}")
    if margin == 0:
        return img
    return img.embed(margin, margin,
                     img.width + 2 * margin, img.height + 2 * margin,
                     extend="background", background=color_to_u8(background))


def _prepare(buffer: np.ndarray, margin: int, background) -> vips.Image:
    return add_margin(np_to_vips_rgb_u8(buffer), margin, background)

# ========================================
# encoding
# ========================================

def save_image(path: Union[str, Path],
               buffer: np.ndarray,
               *,
               margin: int = 0,
               background=DEFAULT_BACKGROUND,
               quality: int = 95,
               strip: bool = True) -> None:
    """
    Save a float RGB [0,1] buffer to path; the extension picks the format.
    """
    out_path = str(path)
    ext = Path(out_path).suffix.lower()
    img = _prepare(buffer, margin, background)
    if ext in JPEG_SUFFIXES:
        img.write_to_file(out_path, Q=int(quality), strip=strip)
    else:
        img.write_to_file(out_path, strip=strip)
    log.info("wrote %s (%dx%d)", out_path, img.width, img.height)


def encode_image(buffer: np.ndarray,
                 suffix: str,
                 *,
                 margin: int = 0,
                 background=DEFAULT_BACKGROUND,
                 quality: int = 95,
                 strip: bool = True) -> bytes:
    """
    Encode a float RGB [0,1] buffer to bytes without touching disk.

    Example:
        png_bytes = encode_image(rasterize(texture, 255), ".png")
    """
    ext = suffix.lower()
    img = _prepare(buffer, margin, background)
    if ext in JPEG_SUFFIXES:
        return img.write_to_buffer(ext, Q=int(quality), strip=strip)
    return img.write_to_buffer(ext, strip=strip)


def pad_to_square(im: vips.Image, px: int, background=DEFAULT_BACKGROUND) -> vips.Image:
    dx = max(0, (px - im.width) // 2)
    dy = max(0, (px - im.height) // 2)
    canvas = vips.Image.black(px, px, bands=3).new_from_image(color_to_u8(background))
    return canvas.insert(im, dx, dy)


def save_mosaic(buffers: Sequence[np.ndarray],
                path: Union[str, Path],
                *,
                cols: int,
                gap: int = 0,
                margin: int = 0,
                background=DEFAULT_BACKGROUND,
                quality: int = 95) -> None:
    """
    Lay out several rendered buffers row-major in a grid, `gap` pixels
    apart on the background color, and save the result. Smaller tiles are
    centered in a cell the size of the largest.
    """
    if not buffers:
        raise ValueError("No tiles provided")
    if cols < 1:
        raise ValueError(f"cols must be >= 1, got {cols}")

    tiles = [np_to_vips_rgb_u8(b) for b in buffers]
    cell = max(max(t.width, t.height) for t in tiles)
    tiles = [t if t.width == cell and t.height == cell else pad_to_square(t, cell, background)
             for t in tiles]

    n = len(tiles)
    cols = min(cols, n)
    rows = math.ceil(n / cols)
    W = cols * cell + (cols - 1) * gap
    H = rows * cell + (rows - 1) * gap
    base = vips.Image.black(W, H, bands=3).new_from_image(color_to_u8(background))
    for i, tile in enumerate(tiles):
        r, c = divmod(i, cols)
        base = base.insert(tile, c * (cell + gap), r * (cell + gap))

    base = add_margin(base, margin, background)
    out_path = str(path)
    if Path(out_path).suffix.lower() in JPEG_SUFFIXES:
        base.write_to_file(out_path, Q=int(quality), strip=True)
    else:
        base.write_to_file(out_path, strip=True)
    log.info("wrote mosaic %s (%d tiles, %dx%d)", out_path, n, base.width, base.height)


def render_to_file(texture,
                   path: Union[str, Path],
                   size: int = 511,
                   *,
                   disk: bool = False,
                   supersample: int = 1,
                   gamma: float = DEFAULT_GAMMA,
                   background=DEFAULT_BACKGROUND,
                   margin: int = 0,
                   threads: Optional[int] = None,
                   quality: int = 95) -> np.ndarray:
    """Rasterize `texture` and save it; returns the rendered buffer."""
    cfg = RasterConfig(size=size, disk=disk, supersample=supersample, gamma=gamma,
                       background=background, threads=threads)
    image = rasterize_config(texture, cfg)
    save_image(path, image, margin=margin, background=cfg.background, quality=quality)
    return image

# ========================================
# CLI
# ========================================

def demo_textures() -> dict:
    """A few small trees, by name, for trying out the renderer."""
    spot = Spot(Vec2(0, 0), 0.2, Color(1, 1, 1), 0.6, Color(0, 0, 0))
    stripes = Grating(Vec2(-0.2, 0), Color(0, 0, 0), Vec2(0.2, 0), Color(1, 1, 1), 1.0)
    bands = Grating(Vec2(0, -0.1), Color(1, 0, 1), Vec2(0, 0.1), Color(0, 0, 1), 0.2)
    return {
        "spot": spot,
        "grating": Grating(Vec2(0.1, 0.1), Color(0, 0.8, 0), Vec2(0.5, 0.3), Color(0.85, 0.85, 0), 0.3),
        "softmatte": SoftMatte(spot, stripes, bands),
        "brownian": Brownian(Vec2(0, 0), Vec2(0.2, 0), Color(0, 1, 0), Color(0.3, 0.3, 0.3)),
        "turbulence": Turbulence(Vec2(0, 0), Vec2(0.3, 0.1), Color(0.1, 0.1, 0.3), Color(1, 0.8, 0.2)),
        "twist": Twist(3.0, 2.0, Vec2(0, 0), stripes),
        "colornoise": ColorNoise(Vec2(0, 0), Vec2(0.3, 0), 0.6),
    }


def main() -> None:
    demos = demo_textures()
    ap = argparse.ArgumentParser(description="Render a demo texture to an image file (pyvips).")
    ap.add_argument("texture", choices=sorted(demos), help="Demo texture to render.")
    ap.add_argument("output", help="Output file; the extension picks the format.")
    ap.add_argument("--size", type=int, default=511, help="Pixels per side.")
    ap.add_argument("--disk", action="store_true", help="Render the inscribed disk only (odd size).")
    ap.add_argument("--supersample", "-k", type=int, default=1, help="k: k*k jittered samples per pixel.")
    ap.add_argument("--gamma", type=float, default=DEFAULT_GAMMA)
    ap.add_argument("--background", type=str, default="808080", help="Background color, RRGGBB or a name.")
    ap.add_argument("--margin", type=int, default=0, help="Border in pixels.")
    ap.add_argument("--quality", type=int, default=95, help="JPEG quality (if saving .jpg).")
    ap.add_argument("--threads", type=int, default=None, help="Row workers.")
    ap.add_argument("--vips-threads", type=int, default=None, help="libvips threads per operation.")
    ap.add_argument("-v", "--verbose", action="count", default=0)
    args = ap.parse_args()

    setup_logging(args.verbose)
    set_vips_threads(args.vips_threads)
    background = Color.from_spec(args.background, DEFAULT_BACKGROUND)
    try:
        render_to_file(demos[args.texture], args.output, args.size,
                       disk=args.disk, supersample=args.supersample, gamma=args.gamma,
                       background=background, margin=args.margin,
                       threads=args.threads, quality=args.quality)
    except ValueError as e:
        raise SystemExit(f"error: {e}")


if __name__ == "__main__":
    main()
