"""End-to-end image to solid pipeline.

Each function takes its inputs by value and returns a fresh result; the
"current model" is whatever the caller keeps.  Failures that leave nothing
to work with raise a :class:`~rastersolid.errors.RasterSolidError` naming
the stage.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from rastersolid.classify import ShapeWithHoles, build_shapes
from rastersolid.config import PipelineOptions
from rastersolid.errors import EmptyVectorData, NoImageLoaded
from rastersolid.extrude import extrude_shapes
from rastersolid.geometry import Point2D
from rastersolid.io.dxf import dxf_text
from rastersolid.io.image import load_image
from rastersolid.io.stl import stl_bytes
from rastersolid.mesh import Mesh
from rastersolid.raster import PixelBuffer, preprocess
from rastersolid.simplify import simplify_shapes, tolerance_for_level
from rastersolid.tracer import get_tracer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorResult:
    """Shapes in image pixel space together with the source dimensions."""

    shapes: Tuple[ShapeWithHoles, ...]
    width: int
    height: int

    @property
    def point_count(self) -> int:
        return sum(len(p) for shape in self.shapes for p in shape.polygons())


@dataclass(frozen=True)
class PipelineResult:
    vector: VectorResult
    mesh: Mesh
    stl: bytes
    dxf: str


def trace_shapes(mask: PixelBuffer, options: Optional[PipelineOptions] = None
                 ) -> List[ShapeWithHoles]:
    """Trace a binary buffer and assemble unsimplified shapes."""

    options = options or PipelineOptions()
    tracer = get_tracer(options.tracer)
    polygons = tracer.trace(mask)
    return build_shapes(polygons, mask.width, mask.height, options)


def vectorize(image, options: Optional[PipelineOptions] = None) -> VectorResult:
    """Binarize, trace, classify and simplify ``image``.

    ``image`` is a :class:`PixelBuffer`, a numpy array or anything
    :func:`~rastersolid.io.image.load_image` accepts.
    """

    options = options or PipelineOptions()
    if image is None:
        raise NoImageLoaded()
    if not isinstance(image, PixelBuffer):
        image = load_image(image)

    mask = preprocess(image, options.threshold,
                      blur_radius=options.blur_radius, smooth=options.smooth)
    shapes = trace_shapes(mask, options)
    tolerance = tolerance_for_level(options.simplification_level)
    shapes = simplify_shapes(shapes, tolerance, corner_smoothing=options.corner_smoothing)
    if not shapes:
        raise EmptyVectorData(
            f"no boundary could be traced from the current threshold ({options.threshold})")
    result = VectorResult(tuple(shapes), image.width, image.height)
    logger.info("vectorized %dx%d image into %d shape(s), %d point(s)",
                result.width, result.height, len(result.shapes), result.point_count)
    return result


def build_model(vector: VectorResult, options: Optional[PipelineOptions] = None) -> Mesh:
    """Extrude a :class:`VectorResult` into a mesh."""

    options = options or PipelineOptions()
    return extrude_shapes(vector.shapes,
                          width=vector.width,
                          height=vector.height,
                          depth=options.depth,
                          scale=options.effective_scale(vector.width),
                          min_area=options.min_area)


def run(image, options: Optional[PipelineOptions] = None, *,
        close_loops: bool = False) -> PipelineResult:
    """Run every stage and return the shapes, mesh and both serialized payloads."""

    options = options or PipelineOptions()
    vector = vectorize(image, options)
    return export(vector, options, close_loops=close_loops)


def export(vector: VectorResult, options: Optional[PipelineOptions] = None, *,
           close_loops: bool = False) -> PipelineResult:
    """Build the mesh for ``vector`` and serialize it."""

    mesh = build_model(vector, options)
    return PipelineResult(vector=vector,
                          mesh=mesh,
                          stl=stl_bytes(mesh),
                          dxf=dxf_text(vector.shapes, vector.height, close_loops=close_loops))


def fallback_circle(width: int = 100, height: int = 100, points: int = 36) -> VectorResult:
    """A canned circular shape for callers that want a stand-in model.

    The circle is centered in a ``width`` x ``height`` image with a radius of
    a third of the smaller dimension and is explicitly closed.
    """

    cx, cy = width / 2.0, height / 2.0
    radius = min(width, height) / 3.0
    ring = [Point2D(cx + math.cos(2 * math.pi * i / points) * radius,
                    cy + math.sin(2 * math.pi * i / points) * radius)
            for i in range(points)]
    ring.append(ring[0])
    return VectorResult((ShapeWithHoles(tuple(ring)),), width, height)


__all__ = [
    "VectorResult",
    "PipelineResult",
    "trace_shapes",
    "vectorize",
    "build_model",
    "run",
    "export",
    "fallback_circle",
]
