"""Planar polygon helpers shared by the classifier, simplifier and builder.

Polygons are tuples of ``(x, y)`` points in image pixel space (origin top
left, y down) and are implicitly closed: the last point may or may not repeat
the first.  Every helper here tolerates both forms.
"""

from __future__ import annotations

import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple

epsilon = 1e-9


class Point2D(NamedTuple):
    x: float
    y: float


Polygon = Tuple[Point2D, ...]
BBox = Tuple[float, float, float, float]


def as_polygon(points: Iterable[Sequence[float]]) -> Polygon:
    """Return ``points`` as an immutable polygon of :class:`Point2D`."""

    return tuple(Point2D(float(p[0]), float(p[1])) for p in points)


def is_closed(points: Sequence[Sequence[float]], tol: float = epsilon) -> bool:
    """Return ``True`` if the last point repeats the first within ``tol``."""

    if len(points) < 2:
        return False
    first, last = points[0], points[-1]
    return abs(first[0] - last[0]) <= tol and abs(first[1] - last[1]) <= tol


def open_ring(points: Sequence[Sequence[float]]) -> List[Point2D]:
    """Drop consecutive duplicates and the explicit closing point."""

    ring: List[Point2D] = []
    for pt in points:
        p = Point2D(float(pt[0]), float(pt[1]))
        if ring and abs(ring[-1].x - p.x) <= epsilon and abs(ring[-1].y - p.y) <= epsilon:
            continue
        ring.append(p)
    if len(ring) > 1 and is_closed(ring):
        ring.pop()
    return ring


def distinct_count(points: Sequence[Sequence[float]]) -> int:
    return len({(float(p[0]), float(p[1])) for p in points})


def signed_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace area ``sum(x_i*y_{i+1} - x_{i+1}*y_i) / 2``.

    In image coordinates (y down) a positive result means the ring runs
    clockwise on screen.  An explicit closing point contributes nothing.
    """

    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x0, y0 = points[i][0], points[i][1]
        x1, y1 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        total += x0 * y1 - x1 * y0
    return total / 2.0


def is_degenerate(points: Sequence[Sequence[float]], tol: float = epsilon) -> bool:
    """Fewer than three distinct points, or no enclosed area."""

    return distinct_count(points) < 3 or abs(signed_area(points)) <= tol


def point_in_polygon(pt: Sequence[float], poly: Sequence[Sequence[float]]) -> bool:
    """Crossing-number test: parity of edges crossed by a ray towards +x."""

    x, y = pt[0], pt[1]
    inside = False
    if not poly:
        return False
    j = len(poly) - 1
    for i in range(len(poly)):
        xi, yi = poly[i][0], poly[i][1]
        xj, yj = poly[j][0], poly[j][1]
        if (yi > y) != (yj > y):
            if x < (xj - xi) * (y - yi) / (yj - yi) + xi:
                inside = not inside
        j = i
    return inside


def point_on_boundary(pt: Sequence[float], poly: Sequence[Sequence[float]],
                      tol: float = epsilon) -> bool:
    """Return ``True`` if ``pt`` lies within ``tol`` of any edge of ``poly``."""

    x, y = float(pt[0]), float(pt[1])
    n = len(poly)
    for i in range(n):
        ax, ay = poly[i][0], poly[i][1]
        bx, by = poly[(i + 1) % n][0], poly[(i + 1) % n][1]
        dx, dy = bx - ax, by - ay
        length2 = dx * dx + dy * dy
        t = 0.0
        if length2 > 0:
            t = max(0.0, min(1.0, ((x - ax) * dx + (y - ay) * dy) / length2))
        if math.hypot(x - (ax + t * dx), y - (ay + t * dy)) <= tol:
            return True
    return False


def bbox(points: Sequence[Sequence[float]]) -> BBox:
    """Return ``(min_x, min_y, max_x, max_y)``."""

    if not points:
        raise ValueError("bbox of an empty polygon")
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def reverse(points: Sequence[Point2D]) -> Polygon:
    """Reverse orientation, keeping the first point first."""

    if not points:
        return ()
    pts = tuple(points)
    if is_closed(pts) and len(pts) > 1:
        core = pts[:-1]
        rev = (core[0],) + tuple(reversed(core[1:]))
        return rev + (rev[0],)
    return (pts[0],) + tuple(reversed(pts[1:]))


__all__ = [
    "epsilon",
    "Point2D",
    "Polygon",
    "BBox",
    "as_polygon",
    "is_closed",
    "open_ring",
    "distinct_count",
    "signed_area",
    "is_degenerate",
    "point_in_polygon",
    "point_on_boundary",
    "bbox",
    "reverse",
]
