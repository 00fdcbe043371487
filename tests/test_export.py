import numpy as np
import pytest

try:
    import pyvips
    import export
except Exception as e:  # libvips missing or not loadable
    pytest.skip(f"libvips not available: {e}", allow_module_level=True)

from colors import Color
from generators import Spot, Uniform
from vec2 import Vec2


def _buffer():
    img = np.zeros((6, 6, 3))
    img[..., 0] = 1.0
    img[2:4, 2:4] = [0.0, 0.5, 1.0]
    return img


def test_float01_to_u8():
    u8 = export.float01_to_u8(np.array([-0.5, 0.0, 0.5, 1.0, 2.0]))
    assert u8.dtype == np.uint8
    assert list(u8) == [0, 0, 128, 255, 255]


def test_np_to_vips_rgb_u8():
    img = export.np_to_vips_rgb_u8(_buffer())
    assert (img.width, img.height, img.bands, img.format) == (6, 6, 3, "uchar")
    assert img(0, 0) == [255.0, 0.0, 0.0]
    assert img(2, 3) == [0.0, 128.0, 255.0]


def test_np_to_vips_rejects_wrong_shape():
    with pytest.raises(ValueError):
        export.np_to_vips_rgb_u8(np.zeros((4, 4, 4)))


def test_add_margin():
    img = export.np_to_vips_rgb_u8(_buffer())
    out = export.add_margin(img, 3, Color(0, 0, 1))
    assert (out.width, out.height) == (12, 12)
    assert out(0, 0) == [0.0, 0.0, 255.0]
    assert out(3, 3) == [255.0, 0.0, 0.0]
    assert export.add_margin(img, 0) is img
    with pytest.raises(ValueError):
        export.add_margin(img, -1)


def test_save_and_reload_png(tmp_path):
    path = tmp_path / "t.png"
    export.save_image(path, _buffer(), margin=2, background=Color(0, 1, 0))
    back = pyvips.Image.new_from_file(str(path))
    assert (back.width, back.height, back.bands) == (10, 10, 3)
    assert back(0, 0) == [0.0, 255.0, 0.0]
    assert back(4, 4) == [0.0, 128.0, 255.0]


def test_encode_image_png_and_jpeg():
    png = export.encode_image(_buffer(), ".png")
    assert png[:8] == b"\x89PNG\r\n\x1a\n"
    jpg = export.encode_image(_buffer(), ".jpg", quality=80)
    assert jpg[:2] == b"\xff\xd8"


def test_save_mosaic(tmp_path):
    path = tmp_path / "m.png"
    small = np.ones((4, 4, 3))
    export.save_mosaic([_buffer(), _buffer(), small], path, cols=2, gap=1, background=Color(0, 0, 0))
    back = pyvips.Image.new_from_file(str(path))
    assert (back.width, back.height) == (2 * 6 + 1, 2 * 6 + 1)
    # the 4x4 tile is centered in its 6x6 cell
    assert back(1 + 1, 7 + 1) == [255.0, 255.0, 255.0]
    assert back(7, 7) == [0.0, 0.0, 0.0]
    with pytest.raises(ValueError):
        export.save_mosaic([], path, cols=2)


def test_render_to_file(tmp_path):
    path = tmp_path / "spot.png"
    tex = Spot(Vec2(0, 0), 0.2, Color(1, 1, 1), 0.6, Color(0, 0, 0))
    img = export.render_to_file(tex, path, 15, disk=True, margin=1, background=Color(1, 0, 0))
    assert img.shape == (15, 15, 3)
    back = pyvips.Image.new_from_file(str(path))
    assert (back.width, back.height) == (17, 17)
    assert back(0, 0) == [255.0, 0.0, 0.0]
    assert back(8, 8) == [255.0, 255.0, 255.0]


def test_demo_textures_render():
    from raster import rasterize
    for name, tex in export.demo_textures().items():
        img = rasterize(tex, 8)
        assert img.shape == (8, 8, 3), name
