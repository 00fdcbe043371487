# diagnostics.py
import math
import threading

import numpy as np

from vec2 import Vec2


class SampleBounds:
    """
    Running bounding box of texture-space sample positions. Rasterizer
    workers record into it concurrently, so every access holds the lock.
    Before the first record the bounds are (+inf, -inf, +inf, -inf).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._min_x = math.inf
            self._max_x = -math.inf
            self._min_y = math.inf
            self._max_y = -math.inf
            self._count = 0

    def record(self, position: Vec2) -> None:
        x, y = position
        with self._lock:
            if x < self._min_x:
                self._min_x = x
            if x > self._max_x:
                self._max_x = x
            if y < self._min_y:
                self._min_y = y
            if y > self._max_y:
                self._max_y = y
            self._count += 1

    def record_many(self, xs: np.ndarray, ys: np.ndarray) -> None:
        """Merge a batch of sample positions under a single lock acquisition."""
        if len(xs) == 0:
            return
        x0, x1 = float(np.min(xs)), float(np.max(xs))
        y0, y1 = float(np.min(ys)), float(np.max(ys))
        with self._lock:
            self._min_x = min(self._min_x, x0)
            self._max_x = max(self._max_x, x1)
            self._min_y = min(self._min_y, y0)
            self._max_y = max(self._max_y, y1)
            self._count += len(xs)

    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, max_x, min_y, max_y)"""
        with self._lock:
            return self._min_x, self._max_x, self._min_y, self._max_y

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def __repr__(self) -> str:
        x0, x1, y0, y1 = self.bounds()
        return f"SampleBounds(x=[{x0:g}, {x1:g}], y=[{y0:g}, {y1:g}], count={self.count})"


default_collector = SampleBounds()
