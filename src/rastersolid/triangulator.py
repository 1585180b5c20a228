"""Cap triangulation for extruded shapes.

Faces are ear-clipped by ``mapbox-earcut``.  Loops are first normalised into
the ring layout earcut expects (outer ring counter-clockwise, holes
clockwise, no repeated points) and the returned indices are mapped back to
coordinates.  Coordinates are treated as a y-up plane throughout.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

try:
    import mapbox_earcut as _earcut
except ImportError as exc:  # pragma: no cover - import guard
    raise ImportError(
        "mapbox-earcut must be installed to triangulate polygons with holes"
    ) from exc

from rastersolid.geometry import epsilon, open_ring, signed_area

Point2D = Tuple[float, float]
Triangle2D = Tuple[Point2D, Point2D, Point2D]


def prepare_loop(points: Sequence[Sequence[float]], *, want_ccw: bool) -> List[Point2D]:
    """Return ``points`` as an open ring wound the requested way.

    Consecutive duplicates and the explicit closing point are removed.
    Rings with fewer than three points are returned unoriented.
    """

    ring = [(p.x, p.y) for p in open_ring(points)]
    if len(ring) >= 3 and (signed_area(ring) > 0) != want_ccw:
        ring.reverse()
    return ring


def _cross(a: Point2D, b: Point2D, c: Point2D) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])


def triangulate_polygon(outer: Sequence[Sequence[float]],
                        holes: Optional[Iterable[Sequence[Sequence[float]]]] = None
                        ) -> List[Triangle2D]:
    """Counter-clockwise triangles covering ``outer`` minus ``holes``.

    Holes with fewer than three distinct points are ignored; an outer loop
    that degenerate yields no triangles.  Zero-area triangles are dropped.
    """

    rings = [prepare_loop(outer, want_ccw=True)]
    if len(rings[0]) < 3:
        return []
    for hole in holes or ():
        ring = prepare_loop(hole, want_ccw=False)
        if len(ring) >= 3:
            rings.append(ring)

    coords = [pt for ring in rings for pt in ring]
    ends = np.cumsum([len(ring) for ring in rings]).astype(np.uint32)
    indices = _earcut.triangulate_float64(np.asarray(coords, dtype=np.float64), ends)

    triangles: List[Triangle2D] = []
    for a, b, c in np.asarray(indices).reshape(-1, 3).tolist():
        pa, pb, pc = coords[a], coords[b], coords[c]
        area = _cross(pa, pb, pc)
        if abs(area) <= epsilon:
            continue
        triangles.append((pa, pb, pc) if area > 0 else (pa, pc, pb))
    return triangles


__all__ = ["triangulate_polygon", "prepare_loop"]
