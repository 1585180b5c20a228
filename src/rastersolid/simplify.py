"""Polygon simplification.

``simplify_polygon`` is a Douglas-Peucker reduction: it never adds points,
always keeps the first and last point, and no removed point lies farther
than the tolerance from the simplified path.  Re-running it at the same
tolerance removes nothing further.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from rastersolid.classify import ShapeWithHoles
from rastersolid.errors import ConfigurationError
from rastersolid.geometry import Point2D, Polygon, as_polygon, distinct_count, is_closed, open_ring

logger = logging.getLogger(__name__)

MAX_LEVEL = 10


def tolerance_for_level(level: int) -> float:
    """Map a 0-10 simplification level to a distance tolerance in pixels.

    Level 0 disables simplification; higher levels never yield a smaller
    tolerance.
    """

    if not 0 <= level <= MAX_LEVEL:
        raise ConfigurationError(f"simplification level must be in 0..{MAX_LEVEL}, got {level}")
    if level == 0:
        return 0.0
    return max(0.5, level / 5.0)


def _segment_distance(p: Point2D, a: Point2D, b: Point2D) -> float:
    dx, dy = b.x - a.x, b.y - a.y
    length2 = dx * dx + dy * dy
    if length2 == 0.0:
        return math.hypot(p.x - a.x, p.y - a.y)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / length2
    t = max(0.0, min(1.0, t))
    return math.hypot(p.x - (a.x + t * dx), p.y - (a.y + t * dy))


def simplify_polygon(points: Sequence[Sequence[float]], tolerance: float) -> Polygon:
    """Douglas-Peucker simplification of ``points`` with distance ``tolerance``."""

    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")
    pts = as_polygon(points)
    n = len(pts)
    if n < 3:
        return pts

    keep = [False] * n
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        max_dist = -1.0
        index = None
        for i in range(first + 1, last):
            d = _segment_distance(pts[i], pts[first], pts[last])
            if d > max_dist:
                max_dist, index = d, i
        if index is not None and max_dist > tolerance:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))
    return tuple(p for p, k in zip(pts, keep) if k)


def smooth_corners(points: Sequence[Sequence[float]], factor: float) -> Polygon:
    """One pass of Chaikin corner cutting with cut ratio ``factor``.

    Each edge contributes the points at ``factor`` and ``1 - factor`` along
    it.  An explicitly closed input stays closed.
    """

    if not 0 <= factor <= 0.5:
        raise ValueError(f"corner smoothing factor must be in 0..0.5, got {factor}")
    pts = as_polygon(points)
    if factor == 0 or len(pts) < 3:
        return pts
    closed = is_closed(pts)
    ring = open_ring(pts)
    if len(ring) < 3:
        return pts
    out: List[Point2D] = []
    for i, a in enumerate(ring):
        b = ring[(i + 1) % len(ring)]
        out.append(Point2D(a.x + factor * (b.x - a.x), a.y + factor * (b.y - a.y)))
        out.append(Point2D(b.x - factor * (b.x - a.x), b.y - factor * (b.y - a.y)))
    result = open_ring(out)
    if closed:
        result.append(result[0])
    return tuple(result)


def _reduce(points: Polygon, tolerance: float, corner_smoothing: float) -> Optional[Polygon]:
    if distinct_count(points) < 3:
        return None
    reduced = simplify_polygon(points, tolerance)
    if corner_smoothing:
        reduced = smooth_corners(reduced, corner_smoothing)
    if distinct_count(reduced) < 3:
        return None
    return reduced


def simplify_shape(shape: ShapeWithHoles, tolerance: float, *,
                   corner_smoothing: float = 0.0) -> Optional[ShapeWithHoles]:
    """Simplify the outer polygon and every hole independently.

    Holes that collapse below three points are dropped; ``None`` is returned
    when the outer polygon collapses.
    """

    outer = _reduce(shape.outer, tolerance, corner_smoothing)
    if outer is None:
        return None
    holes = []
    for hole in shape.holes:
        reduced = _reduce(hole, tolerance, corner_smoothing)
        if reduced is not None:
            holes.append(reduced)
    return ShapeWithHoles(outer, tuple(holes))


def simplify_shapes(shapes: Sequence[ShapeWithHoles], tolerance: float, *,
                    corner_smoothing: float = 0.0) -> List[ShapeWithHoles]:
    result = []
    before = after = 0
    for shape in shapes:
        simplified = simplify_shape(shape, tolerance, corner_smoothing=corner_smoothing)
        if simplified is None:
            continue
        before += sum(len(p) for p in shape.polygons())
        after += sum(len(p) for p in simplified.polygons())
        result.append(simplified)
    logger.debug("simplified %d shape(s) at tolerance %.3f: %d -> %d points",
                 len(result), tolerance, before, after)
    return result


__all__ = [
    "MAX_LEVEL",
    "tolerance_for_level",
    "simplify_polygon",
    "smooth_corners",
    "simplify_shape",
    "simplify_shapes",
]
