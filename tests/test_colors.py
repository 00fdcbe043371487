import math
import typing
from typing import Optional

import numpy as np
import pytest

from colors import Color, hsv_to_rgb, parse_color_spec, rgb_to_hsv


def test_arithmetic_and_equality():
    a = Color(0.1, 0.2, 0.3)
    b = Color(0.5, 0.5, 0.5)
    assert a + b == Color(0.1 + 0.5, 0.2 + 0.5, 0.3 + 0.5)
    assert b - b == Color(0, 0, 0)
    assert a * 2 == Color(0.2, 0.4, 0.6)
    assert 2 * a == a * 2
    assert a * b == Color(0.05, 0.1, 0.15)
    assert b / 2 == Color(0.25, 0.25, 0.25)
    assert -a == Color(-0.1, -0.2, -0.3)
    assert Color() == Color(0, 0, 0)
    assert Color(0.1, 0.2, 0.3) != Color(0.1, 0.2, 0.3000001)


def test_within_epsilon():
    assert Color(0.5, 0.5, 0.5).within_epsilon(Color(0.51, 0.49, 0.5), 0.02)
    assert not Color(0.5, 0.5, 0.5).within_epsilon(Color(0.53, 0.5, 0.5), 0.02)


def test_luminance_weights():
    assert Color(1, 1, 1).luminance() == pytest.approx(1.0)
    assert Color(1, 0, 0).luminance() == pytest.approx(0.2126)
    assert Color(0, 1, 0).luminance() == pytest.approx(0.7152)
    assert Color(0, 0, 1).luminance() == pytest.approx(0.0722)


def test_clip_to_unit_rgb_is_identity_inside_cube():
    c = Color(0.2, 0.7, 1.0)
    assert c.clip_to_unit_rgb() == c


def test_clip_to_unit_rgb_preserves_direction():
    for c in [Color(2, 1, 0.5), Color(10, 0.1, 3), Color(1.5, 1.5, 1.5)]:
        clipped = c.clip_to_unit_rgb()
        assert max(clipped) == pytest.approx(1.0)
        assert min(clipped) >= 0.0
        assert clipped.normalize().within_epsilon(c.normalize(), 1e-12)


def test_clip_to_unit_rgb_negative_channels():
    assert Color(-1, -2, -3).clip_to_unit_rgb() == Color(0, 0, 0)
    assert Color(-1, 0.5, 2).clip_to_unit_rgb() == Color(0, 0.25, 1)


def test_hsv_primaries():
    assert rgb_to_hsv(1, 0, 0) == pytest.approx((0.0, 1.0, 1.0))
    assert rgb_to_hsv(0, 1, 0) == pytest.approx((1.0 / 3.0, 1.0, 1.0))
    assert Color.from_hsv(2.0 / 3.0, 1, 1).within_epsilon(Color(0, 0, 1), 1e-12)


def test_hsv_achromatic():
    for v in (0.0, 0.3, 1.0):
        h, s, vv = Color.gray(v).get_hsv()
        assert h == 0.0
        assert s == 0.0
        assert vv == pytest.approx(v)


def test_hsv_nonpositive_is_safe():
    assert rgb_to_hsv(0.0, -0.5, -0.2) == (0.0, 0.0, 0.0)


def test_hsv_hue_wraps():
    assert hsv_to_rgb(1.25, 1, 1) == pytest.approx(hsv_to_rgb(0.25, 1, 1))
    assert hsv_to_rgb(-0.75, 1, 1) == pytest.approx(hsv_to_rgb(0.25, 1, 1))


def test_hsv_round_trip_random():
    rng = np.random.default_rng(20200101)
    for _ in range(10000):
        c = Color.random_unit_rgb(rng)
        back = Color.from_hsv(*c.get_hsv())
        assert back.within_epsilon(c, 1e-6)
    for v in np.linspace(0, 1, 11):
        g = Color.gray(float(v))
        assert Color.from_hsv(*g.get_hsv()).within_epsilon(g, 1e-12)


def test_hsv_accessors():
    c = Color(0.2, 0.4, 0.8)
    assert (c.get_h(), c.get_s(), c.get_v()) == c.get_hsv()
    assert c.get_v() == pytest.approx(0.8)


def test_gamma():
    assert Color(0.25, 1, 0).gamma(0.5) == Color(0.5, 1, 0)
    # negative channels treated as black
    assert Color(-0.25, 0.25, 0.25).gamma(0.5) == Color(0, 0.5, 0.5)


def test_length_and_normalize():
    assert Color(3, 4, 0).length() == pytest.approx(5)
    assert Color(3, 4, 0).normalize().length() == pytest.approx(1)
    assert Color().normalize() == Color()


def test_parse_color_spec():
    assert parse_color_spec("#FF8000", (0, 0, 0)) == (255.0, 128.0, 0.0)
    assert parse_color_spec("orange", (0, 0, 0)) == (255.0, 128.0, 0.0)
    assert parse_color_spec("nonsense", (1.0, 2.0, 3.0)) == (1.0, 2.0, 3.0)
    assert parse_color_spec(None, (1.0, 2.0, 3.0)) == (1.0, 2.0, 3.0)


def test_from_spec():
    assert Color.from_spec("white") == Color(1, 1, 1)
    assert Color.from_spec((0.1, 0.2, 0.3)) == Color(0.1, 0.2, 0.3)
    c = Color(0.4, 0.5, 0.6)
    assert Color.from_spec(c) is c
    assert Color.from_spec("zzz", Color(0.2, 0.2, 0.2)).within_epsilon(Color.gray(0.2), 1e-12)


def test_from_spec_default_is_optional():
    hints = typing.get_type_hints(Color.from_spec)
    assert hints["default"] == Optional[Color]
    assert Color.from_spec("zzz") == Color(0, 0, 0)


def test_random_unit_rgb_in_cube():
    rng = np.random.default_rng(7)
    for _ in range(100):
        c = Color.random_unit_rgb(rng)
        assert all(0.0 <= v < 1.0 for v in c)


def test_clip_to_unit_rgb_random_channels():
    rng = np.random.default_rng(11)
    for _ in range(10000):
        c = Color(*rng.uniform(-1.0, 10.0, size=3))
        clipped = c.clip_to_unit_rgb()
        assert all(0.0 <= v <= 1.0 for v in clipped)
        if min(c) > 0.0:
            assert clipped.normalize().within_epsilon(c.normalize(), 1e-6)


def test_hsv_round_trip_corners():
    for r in (0.0, 1.0):
        for g in (0.0, 1.0):
            for b in (0.0, 1.0):
                c = Color(r, g, b)
                assert Color.from_hsv(*c.get_hsv()).within_epsilon(c, 1e-6)
