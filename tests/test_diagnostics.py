import math
import threading

import numpy as np

from diagnostics import SampleBounds, default_collector
from vec2 import Vec2


def test_empty_bounds_are_sentinels():
    sb = SampleBounds()
    assert sb.bounds() == (math.inf, -math.inf, math.inf, -math.inf)
    assert sb.count == 0


def test_record_and_reset():
    sb = SampleBounds()
    sb.record(Vec2(0.5, -1.0))
    sb.record(Vec2(-2.0, 3.0))
    assert sb.bounds() == (-2.0, 0.5, -1.0, 3.0)
    assert sb.count == 2
    sb.reset()
    assert sb.bounds() == (math.inf, -math.inf, math.inf, -math.inf)
    assert sb.count == 0


def test_record_many():
    sb = SampleBounds()
    sb.record(Vec2(0, 0))
    sb.record_many(np.array([1.0, -1.0]), np.array([2.0, 0.5]))
    sb.record_many(np.array([]), np.array([]))
    assert sb.bounds() == (-1.0, 1.0, 0.0, 2.0)
    assert sb.count == 3


def test_concurrent_records():
    sb = SampleBounds()
    rng = np.random.default_rng(0)
    points = rng.uniform(-1, 1, size=(8, 500, 2))

    def worker(i):
        for x, y in points[i]:
            sb.record(Vec2(float(x), float(y)))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sb.count == 8 * 500
    flat = points.reshape(-1, 2)
    assert sb.bounds() == (flat[:, 0].min(), flat[:, 0].max(), flat[:, 1].min(), flat[:, 1].max())


def test_default_collector_exists():
    assert isinstance(default_collector, SampleBounds)
