"""Extrusion of shapes with holes into a closed triangle mesh.

Shapes arrive in image pixel space.  Points are mapped into centered model
space in millimeters with the Y axis flipped (image Y grows downward, model
Y grows upward), each face is triangulated with its holes removed, and the
face is swept from ``z = 0`` to ``z = depth``:

* the bottom cap faces ``-z`` and the top cap ``+z``;
* every boundary edge of the outer loop and of each hole gets two side-wall
  triangles whose right-hand-rule normals point out of the solid.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from rastersolid.classify import ShapeWithHoles
from rastersolid.errors import ConfigurationError, EmptyVectorData
from rastersolid.geometry import is_degenerate, point_on_boundary, signed_area
from rastersolid.geometry_utils import Triangle3D, make_triangle
from rastersolid.mesh import Mesh
from rastersolid.triangulator import prepare_loop, triangulate_polygon

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]


def to_model_space(point: Sequence[float], width: float, height: float,
                   scale: float = 1.0) -> Point2D:
    """Map an image pixel coordinate to centered model millimeters."""

    return (float(point[0]) - width / 2.0) * scale, (height / 2.0 - float(point[1])) * scale


def _wall(ring: Sequence[Point2D], depth: float) -> List[Triangle3D]:
    triangles = []
    count = len(ring)
    for i in range(count):
        ax, ay = ring[i]
        bx, by = ring[(i + 1) % count]
        a0, b0 = (ax, ay, 0.0), (bx, by, 0.0)
        a1, b1 = (ax, ay, depth), (bx, by, depth)
        for tri in (make_triangle(a0, b0, b1), make_triangle(a0, b1, a1)):
            if tri is not None:
                triangles.append(tri)
    return triangles


def _touches(hole: Sequence[Sequence[float]], outer: Sequence[Sequence[float]]) -> bool:
    return (any(point_on_boundary(p, outer) for p in hole)
            or any(point_on_boundary(p, hole) for p in outer))


def extrude_shape(shape: ShapeWithHoles, *, width: float, height: float,
                  depth: float, scale: float = 1.0) -> List[Triangle3D]:
    """Return the triangles of one extruded shape (empty if it is degenerate).

    Holes whose boundary touches the outer polygon are not cut out.
    """

    kept = []
    for hole in shape.holes:
        if is_degenerate(hole):
            continue
        if _touches(hole, shape.outer):
            # the hole and outer walls would coincide
            logger.debug("dropping a %d point hole that touches its outer boundary", len(hole))
            continue
        kept.append(hole)

    outer = [to_model_space(p, width, height, scale) for p in shape.outer]
    holes = [[to_model_space(p, width, height, scale) for p in hole] for hole in kept]

    faces = triangulate_polygon(outer, holes)
    if not faces:
        return []

    triangles: List[Triangle3D] = []
    for a, b, c in faces:
        top = make_triangle((a[0], a[1], depth), (b[0], b[1], depth), (c[0], c[1], depth))
        bottom = make_triangle((a[0], a[1], 0.0), (c[0], c[1], 0.0), (b[0], b[1], 0.0))
        triangles.extend(t for t in (top, bottom) if t is not None)

    triangles.extend(_wall(prepare_loop(outer, want_ccw=True), depth))
    for hole in holes:
        ring = prepare_loop(hole, want_ccw=False)
        if len(ring) >= 3:
            triangles.extend(_wall(ring, depth))
    return triangles


def extrude_shapes(shapes: Sequence[ShapeWithHoles], *, width: float, height: float,
                   depth: float, scale: float = 1.0, min_area: float = 10.0) -> Mesh:
    """Extrude every shape into one mesh.

    Parameters
    ----------
    shapes : sequence of ShapeWithHoles
        Shapes in image pixel coordinates.
    width, height : float
        Dimensions of the source image, used to center the model.
    depth : float
        Extrusion depth in millimeters.
    scale : float
        Millimeters per pixel.
    min_area : float
        Shapes whose outer polygon encloses fewer px² are skipped.

    Raises
    ------
    EmptyVectorData
        If ``shapes`` is empty or no triangle could be produced.
    """

    if depth <= 0:
        raise ConfigurationError(f"extrusion depth must be positive, got {depth}")
    if scale <= 0:
        raise ConfigurationError(f"scale must be positive, got {scale}")
    if not shapes:
        raise EmptyVectorData("no shapes to extrude", stage="extrude")

    triangles: List[Triangle3D] = []
    skipped = 0
    for shape in shapes:
        if is_degenerate(shape.outer) or abs(signed_area(shape.outer)) < min_area:
            skipped += 1
            continue
        tris = extrude_shape(shape, width=width, height=height, depth=depth, scale=scale)
        if not tris:
            skipped += 1
            continue
        triangles.extend(tris)

    if not triangles:
        raise EmptyVectorData("extrusion produced no triangles", stage="extrude")
    logger.debug("extruded %d shape(s) into %d triangles (%d skipped)",
                 len(shapes) - skipped, len(triangles), skipped)
    return Mesh.from_triangles(triangles)


__all__ = ["to_model_space", "extrude_shape", "extrude_shapes"]
