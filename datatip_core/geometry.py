"""
Geometry utilities for drawn-line intersections and sample snapping.
"""
import numpy as np
from math import isnan, nan
from typing import List, Optional, Sequence, Tuple

# Drawing constraint modes
MODE_FREE = 'free'
MODE_HORIZONTAL = 'horizontal'
MODE_VERTICAL = 'vertical'
MODE_X_AXIS = 'x-axis'

CONSTRAINT_MODES = (MODE_FREE, MODE_HORIZONTAL, MODE_VERTICAL, MODE_X_AXIS)

PARALLEL_TOLERANCE = 1e-12


class GeometryEngine:
    """Handles segment intersections, zero crossings and nearest-sample lookups."""

    def __init__(self):
        self.A = 0  # X axis index
        self.B = 1  # Y axis index

    def constrain(self, mode: str, p0: Sequence[float],
                  p1: Sequence[float]) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Apply a drawing constraint to the gesture endpoints."""
        if mode not in CONSTRAINT_MODES:
            raise ValueError(f"Unknown constraint mode: {mode!r}")

        x0, y0 = float(p0[self.A]), float(p0[self.B])
        x1, y1 = float(p1[self.A]), float(p1[self.B])
        if mode == MODE_HORIZONTAL:
            y1 = y0
        elif mode == MODE_VERTICAL:
            x1 = x0
        elif mode == MODE_X_AXIS:
            y0 = 0.0
            y1 = 0.0
        return (x0, y0), (x1, y1)

    def segment_intersection(self, p1: Sequence[float], p2: Sequence[float],
                             p3: Sequence[float], p4: Sequence[float]) -> Tuple[bool, Tuple[float, float]]:
        """
        Intersect segment p1-p2 with segment p3-p4.
        Returns (hit, point); endpoints count as hits, parallel segments never do.
        """
        x1, y1 = p1[self.A], p1[self.B]
        x2, y2 = p2[self.A], p2[self.B]
        x3, y3 = p3[self.A], p3[self.B]
        x4, y4 = p4[self.A], p4[self.B]

        denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
        if isnan(denom) or abs(denom) < PARALLEL_TOLERANCE:
            return False, (nan, nan)

        t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
        u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
        if 0 <= t <= 1 and 0 <= u <= 1:
            return True, (float(x1 + t * (x2 - x1)), float(y1 + t * (y2 - y1)))
        return False, (nan, nan)

    def curve_crossings(self, xs, ys, p0: Sequence[float],
                        p1: Sequence[float]) -> List[Tuple[float, float]]:
        """Return every point where the drawn segment crosses the sampled curve."""
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        hits = []
        for i in range(min(len(xs), len(ys)) - 1):
            hit, pt = self.segment_intersection(
                p0, p1, (xs[i], ys[i]), (xs[i + 1], ys[i + 1]))
            if hit:
                hits.append(pt)
        return hits

    def zero_crossings(self, xs, ys, x_min: float, x_max: float) -> List[float]:
        """
        Return the interpolated X of every place the curve crosses y=0
        inside [x_min, x_max]. Segments lying flat on the axis are skipped.
        """
        lo, hi = sorted((float(x_min), float(x_max)))
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        crossings = []
        for i in range(min(len(xs), len(ys)) - 1):
            x1, y1, x2, y2 = xs[i], ys[i], xs[i + 1], ys[i + 1]
            if (y1 <= 0 <= y2) or (y1 >= 0 >= y2):
                if y2 != y1:
                    x_c = x1 + (0 - y1) * (x2 - x1) / (y2 - y1)
                    if lo <= x_c <= hi:
                        crossings.append(float(x_c))
        return crossings

    def nearest_vertex(self, xs, ys, point: Sequence[float]) -> Optional[int]:
        """Index of the sample closest to point (first on ties), or None."""
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        n = min(xs.size, ys.size)
        if n == 0:
            return None
        d2 = (xs[:n] - point[self.A]) ** 2 + (ys[:n] - point[self.B]) ** 2
        if np.all(np.isnan(d2)):
            return None
        return int(np.nanargmin(d2))
