"""Polygon classification and shape assembly.

Traced polygons are sorted by absolute area, scan-frame artifacts are
rejected, and holes are attached to the outer polygon that contains them.
The orientation convention is fixed: a negative shoelace area in image
coordinates marks a hole.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from rastersolid.config import PipelineOptions
from rastersolid.geometry import (
    Polygon,
    as_polygon,
    bbox,
    epsilon,
    is_degenerate,
    point_in_polygon,
    point_on_boundary,
    reverse,
    signed_area,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedPolygon:
    """A polygon with its signed area and hole/parent classification."""

    points: Polygon
    signed_area: float
    parent_index: Optional[int] = None

    @property
    def is_hole(self) -> bool:
        return self.signed_area < 0

    @property
    def area(self) -> float:
        return abs(self.signed_area)


@dataclass(frozen=True)
class ShapeWithHoles:
    """One outer polygon plus the holes cut out of it."""

    outer: Polygon
    holes: Tuple[Polygon, ...] = field(default_factory=tuple)

    @property
    def area(self) -> float:
        return abs(signed_area(self.outer)) - sum(abs(signed_area(h)) for h in self.holes)

    def polygons(self) -> Tuple[Polygon, ...]:
        """The outer polygon followed by every hole."""

        return (self.outer,) + tuple(self.holes)


def is_frame_polygon(points: Sequence[Sequence[float]], width: float, height: float,
                     *, area_ratio: float = 0.9, margin: float = 5.0) -> bool:
    """Return ``True`` for a polygon that outlines the image frame.

    The bounding box must cover at least ``area_ratio`` of the image and all
    four of its edges must lie within ``margin`` pixels of the image border.
    """

    if not points or width <= 0 or height <= 0:
        return False
    min_x, min_y, max_x, max_y = bbox(points)
    box_area = (max_x - min_x) * (max_y - min_y)
    if box_area < area_ratio * width * height:
        return False
    return (min_x <= margin and min_y <= margin
            and max_x >= width - margin and max_y >= height - margin)


def classify_polygons(polygons: Iterable[Sequence[Sequence[float]]],
                      width: float, height: float,
                      options: Optional[PipelineOptions] = None) -> List[ClassifiedPolygon]:
    """Compute signed areas, drop degenerate and frame polygons.

    The result is sorted by absolute area, largest first.
    """

    options = options or PipelineOptions()
    result: List[ClassifiedPolygon] = []
    degenerate = frames = 0
    for raw in polygons:
        pts = as_polygon(raw)
        if is_degenerate(pts):
            degenerate += 1
            continue
        if is_frame_polygon(pts, width, height,
                            area_ratio=options.frame_area_ratio,
                            margin=options.frame_margin):
            frames += 1
            continue
        result.append(ClassifiedPolygon(pts, signed_area(pts)))
    result.sort(key=lambda c: c.area, reverse=True)
    logger.debug("classified %d polygon(s); dropped %d degenerate, %d frame",
                 len(result), degenerate, frames)
    return result


def associate_holes(classified: Sequence[ClassifiedPolygon]) -> List[ClassifiedPolygon]:
    """Set ``parent_index`` on every hole whose first point lies in or on an outer.

    Among the outer polygons larger than the hole, the smallest one
    containing the hole's first point wins, so holes inside islands attach to
    the island rather than to the surrounding shape.
    """

    outers = [i for i, c in enumerate(classified) if not c.is_hole]
    result = list(classified)
    for idx, cand in enumerate(classified):
        if not cand.is_hole:
            continue
        anchor = cand.points[0]
        parent = None
        for jdx in reversed(outers):
            outer = classified[jdx]
            if outer.area <= cand.area + epsilon:
                continue
            if point_in_polygon(anchor, outer.points) or point_on_boundary(anchor, outer.points):
                parent = jdx
                break
        if parent is not None:
            result[idx] = replace(cand, parent_index=parent)
    return result


def build_shapes(polygons: Iterable[Sequence[Sequence[float]]],
                 width: float, height: float,
                 options: Optional[PipelineOptions] = None) -> List[ShapeWithHoles]:
    """Assemble :class:`ShapeWithHoles` from raw traced polygons.

    Holes without a parent are kept as independent shapes with their
    orientation reversed.  Shapes and holes below ``options.min_area`` are
    discarded as noise.
    """

    options = options or PipelineOptions()
    classified = associate_holes(classify_polygons(polygons, width, height, options))

    holes_by_parent = {}
    orphans: List[ClassifiedPolygon] = []
    for cand in classified:
        if not cand.is_hole:
            continue
        if cand.parent_index is None:
            orphans.append(cand)
        elif options.preserve_holes and cand.area >= options.min_area:
            holes_by_parent.setdefault(cand.parent_index, []).append(cand.points)

    entries: List[Tuple[float, ShapeWithHoles]] = []
    for idx, cand in enumerate(classified):
        if cand.is_hole:
            continue
        holes = tuple(holes_by_parent.get(idx, ()))
        entries.append((cand.area, ShapeWithHoles(cand.points, holes)))
    for cand in orphans:
        entries.append((cand.area, ShapeWithHoles(reverse(cand.points))))

    entries.sort(key=lambda item: item[0], reverse=True)
    shapes = [shape for area, shape in entries if area >= options.min_area]
    logger.debug("assembled %d shape(s) (%d orphan hole(s) inverted, %d below min area)",
                 len(shapes), len(orphans), len(entries) - len(shapes))
    return shapes


__all__ = [
    "ClassifiedPolygon",
    "ShapeWithHoles",
    "is_frame_polygon",
    "classify_polygons",
    "associate_holes",
    "build_shapes",
]
