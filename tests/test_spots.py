import logging
import math

import numpy as np
import pytest
from scipy.spatial import cKDTree

from colors import Color
from generators import Gradation, Uniform
from spots import MAX_SPOTS, TILE_SIZE, ColoredSpots, LotsOfButtons, LotsOfSpots, _SpotField, place_spots
from vec2 import Vec2

BLACK = Color(0, 0, 0)
WHITE = Color(1, 1, 1)


def _periodic_gap(c0, c1):
    d = np.abs(c0 - c1)
    d = np.minimum(d, TILE_SIZE - d)
    return math.hypot(*d)


def test_place_spots_no_overlap():
    rng = np.random.default_rng(1)
    centers, radii = place_spots(0.3, 0.1, 0.4, 0.05, rng)
    assert len(radii) > 10
    assert np.all((radii >= 0.1) & (radii <= 0.4))
    assert np.all((centers >= 0.0) & (centers < TILE_SIZE))
    for i in range(len(radii)):
        for j in range(i + 1, len(radii)):
            assert _periodic_gap(centers[i], centers[j]) - radii[i] - radii[j] >= 0.05 - 1e-12


def test_place_spots_reaches_moderate_density():
    rng = np.random.default_rng(2)
    _, radii = place_spots(0.3, 0.1, 0.3, 0.01, rng)
    assert np.sum(np.pi * radii ** 2) / TILE_SIZE ** 2 >= 0.29


def test_place_spots_caps_tiny_radii(caplog):
    rng = np.random.default_rng(7)
    with caplog.at_level(logging.WARNING, logger="spots"):
        centers, radii = place_spots(1.0, 0.001, 0.001, 0.0, rng)
    assert len(radii) == MAX_SPOTS
    assert centers.shape == (MAX_SPOTS, 2)
    assert "capped" in caplog.text
    tree = cKDTree(centers, boxsize=TILE_SIZE)
    assert len(tree.query_pairs(2 * 0.001 - 1e-12)) == 0


def test_lots_of_spots_inside_and_outside():
    spots = LotsOfSpots(0.3, 0.1, 0.3, 0.02, 0.02, WHITE, BLACK, seed=3)
    center = Vec2(*(spots.centers[0] - TILE_SIZE / 2))
    assert spots.evaluate(center) == WHITE
    # periodic tile
    assert spots.evaluate(center + Vec2(TILE_SIZE, -TILE_SIZE)) == WHITE
    r = spots.radii[0]
    # just inside the rim the soft edge blends toward the background
    rim = spots.evaluate(center + Vec2(r - 0.001, 0))
    assert 0.0 < rim.r < 1.0
    # the margin around each spot is background
    assert spots.evaluate(center + Vec2(r + 0.01, 0)) == BLACK


def test_lots_of_spots_is_seeded():
    a = LotsOfSpots(0.2, 0.1, 0.3, 0.02, 0.02, WHITE, BLACK, seed=4)
    b = LotsOfSpots(0.2, 0.1, 0.3, 0.02, 0.02, WHITE, BLACK, seed=4)
    assert np.array_equal(a.centers, b.centers)
    assert np.array_equal(a.radii, b.radii)


def test_colored_spots_sample_spot_texture_at_centers():
    ramp = Gradation(Vec2(-TILE_SIZE / 2, 0), BLACK, Vec2(TILE_SIZE / 2, 0), WHITE)
    spots = ColoredSpots(0.3, 0.1, 0.3, 0.0, 0.02, ramp, Color(1, 0, 0), seed=5)
    for i in range(len(spots.radii)):
        center = Vec2(*(spots.centers[i] - TILE_SIZE / 2))
        assert spots.colors[i] == ramp.evaluate(center)
        assert spots.evaluate(center) == spots.colors[i]
        # flat across the spot, not the ramp at the query point
        assert spots.evaluate(center + Vec2(0.5 * spots.radii[i], 0)) == spots.colors[i]


def test_colored_spots_follow_spot_texture():
    red = ColoredSpots(0.3, 0.1, 0.3, 0.0, 0.02, Color(1, 0, 0), BLACK, seed=5)
    blue = ColoredSpots(0.3, 0.1, 0.3, 0.0, 0.02, Color(0, 0, 1), BLACK, seed=5)
    center = Vec2(*(red.centers[0] - TILE_SIZE / 2))
    assert red.evaluate(center) == Color(1, 0, 0)
    assert blue.evaluate(center) == Color(0, 0, 1)


def test_lots_of_buttons_scale_button_to_spot():
    button = Uniform(Color(0.2, 0.4, 0.6))
    spots = LotsOfButtons(0.3, 0.1, 0.3, 0.0, 0.02, Vec2(0, 0), button, True, BLACK, seed=6)
    center = Vec2(*(spots.centers[0] - TILE_SIZE / 2))
    assert spots.evaluate(center) == Color(0.2, 0.4, 0.6)
    assert spots.spot_center(0, center + Vec2(TILE_SIZE, 0)).within_epsilon(center + Vec2(TILE_SIZE, 0), 1e-9)


def test_spot_field_preconditions():
    with pytest.raises(ValueError):
        LotsOfSpots(0.3, 0.4, 0.1, 0.0, 0.0, WHITE, BLACK)
    with pytest.raises(ValueError):
        LotsOfSpots(1.5, 0.1, 0.2, 0.0, 0.0, WHITE, BLACK)
    with pytest.raises(ValueError):
        LotsOfSpots(0.3, 0.0, 0.2, 0.0, 0.0, WHITE, BLACK)


def test_spot_field_needs_spot_color():
    class NoColor(_SpotField):
        pass

    with pytest.raises(TypeError):
        NoColor(0.2, 0.1, 0.3, 0.0, 0.02, BLACK)
