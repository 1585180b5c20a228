"""Boundary tracing of binary pixel buffers.

A :class:`BoundaryTracer` turns a binary buffer into closed pixel-boundary
polygons.  Implementations are selected by name through the registry at the
bottom of this module; the pipeline never swaps tracers on failure.

:class:`MooreNeighborTracer` follows each boundary with 8-connectivity,
examining neighbors in the clockwise order E, SE, S, SW, W, NW, N, NE,
starting just after the background pixel it arrived from.  The walk keeps
background on its left, so outer boundaries have positive shoelace area and
hole boundaries negative shoelace area in image coordinates (y down).

:class:`OpenCVContourTracer` delegates to ``cv2.findContours`` with a
two-level hierarchy and reorients its output to the same convention.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

import numpy as np

from rastersolid.errors import ConfigurationError, MalformedTraceInput
from rastersolid.geometry import Point2D, Polygon, distinct_count, reverse, signed_area
from rastersolid.raster import PixelBuffer

logger = logging.getLogger(__name__)

MAX_TRACE_POINTS = 10000

# clockwise on screen (y grows downward)
DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (1, 0),    # E
    (1, 1),    # SE
    (0, 1),    # S
    (-1, 1),   # SW
    (-1, 0),   # W
    (-1, -1),  # NW
    (0, -1),   # N
    (1, -1),   # NE
)
_E, _S, _W, _N = 0, 2, 4, 6
_START_SIDES = (_W, _N, _E, _S)
_DIRECTION_INDEX = {d: i for i, d in enumerate(DIRECTIONS)}

Side = Tuple[int, int, int]
MaskLike = Union[PixelBuffer, np.ndarray]


def _as_mask(mask: MaskLike) -> np.ndarray:
    data = mask.data if isinstance(mask, PixelBuffer) else np.asarray(mask)
    if data.ndim != 2:
        raise MalformedTraceInput(f"binary buffer must be 2D, got shape {data.shape}")
    if data.shape[0] == 0 or data.shape[1] == 0:
        raise MalformedTraceInput(
            f"binary buffer has zero size ({data.shape[1]}x{data.shape[0]})")
    if data.dtype != np.bool_:
        raise MalformedTraceInput(f"expected a boolean buffer, got {data.dtype}")
    return data


class BoundaryTracer(ABC):
    """Extracts closed polygons, one per connected boundary component."""

    name = "abstract"

    @abstractmethod
    def trace(self, mask: MaskLike) -> List[Polygon]:
        """Return the traced polygons of ``mask`` in pixel coordinates."""


class MooreNeighborTracer(BoundaryTracer):
    """Moore-neighbor contour following over a padded copy of the mask.

    Parameters
    ----------
    padding : int
        Background pixels added on each side before tracing (at least 2) so
        components touching the image edge remain walkable.
    max_points : int
        Hard cap on the length of a single trace.
    """

    name = "moore"

    def __init__(self, padding: int = 2, max_points: int = MAX_TRACE_POINTS):
        if padding < 2:
            raise ConfigurationError("tracer padding must be at least 2 pixels")
        if max_points < 3:
            raise ConfigurationError("max_points must allow at least a triangle")
        self.padding = padding
        self.max_points = max_points

    def trace(self, mask: MaskLike) -> List[Polygon]:
        data = _as_mask(mask)
        pad = self.padding
        padded = np.pad(data, pad, mode="constant", constant_values=False)
        grid = padded.tolist()

        interior = padded[1:-1, 1:-1]
        boundary = interior & ~(padded[:-2, 1:-1] & padded[2:, 1:-1]
                                & padded[1:-1, :-2] & padded[1:-1, 2:])
        candidates = np.argwhere(boundary) + 1

        visited: Set[Side] = set()
        polygons: List[Polygon] = []
        discarded = 0
        for y, x in candidates.tolist():
            for side in _START_SIDES:
                if (x, y, side) in visited:
                    continue
                dx, dy = DIRECTIONS[side]
                if grid[y + dy][x + dx]:
                    continue
                pixels = self._follow(grid, x, y, side, visited)
                if len(pixels) < 3:
                    discarded += 1
                    continue
                if pixels[0] != pixels[-1]:
                    pixels.append(pixels[0])
                polygons.append(tuple(Point2D(float(px - pad), float(py - pad))
                                      for px, py in pixels))

        logger.debug("traced %d polygon(s), discarded %d short trace(s)",
                     len(polygons), discarded)
        return polygons

    def _follow(self, grid, x: int, y: int, side: int,
                visited: Set[Side]) -> List[Tuple[int, int]]:
        """Walk one boundary starting at ``(x, y)`` with background at ``side``."""

        pixels = [(x, y)]
        visited.add((x, y, side))
        seen = {(x, y, side)}
        cx, cy, back = x, y, side
        while len(pixels) < self.max_points:
            step = self._step(grid, cx, cy, back, visited)
            if step is None:
                break
            nx, ny, nback = step
            if (nx, ny, nback) in seen:
                break
            seen.add((nx, ny, nback))
            visited.add((nx, ny, nback))
            pixels.append((nx, ny))
            cx, cy, back = nx, ny, nback
        else:
            logger.debug("trace from (%d, %d) hit the %d point cap", x, y, self.max_points)
        return pixels

    @staticmethod
    def _step(grid, x: int, y: int, back: int,
              visited: Set[Side]) -> Optional[Side]:
        """Sweep clockwise from ``back``; return the next pixel and its backtrack."""

        prev = back
        for k in range(1, 8):
            d = (back + k) % 8
            dx, dy = DIRECTIONS[d]
            nx, ny = x + dx, y + dy
            if grid[ny][nx]:
                bx, by = DIRECTIONS[prev]
                # the last background pixel examined, seen from the new pixel
                rel = (x + bx - nx, y + by - ny)
                return nx, ny, _DIRECTION_INDEX[rel]
            if d % 2 == 0:
                visited.add((x, y, d))
            prev = d
        return None


class OpenCVContourTracer(BoundaryTracer):
    """Boundary tracing through OpenCV's ``findContours``.

    ``RETR_CCOMP`` splits contours into outer boundaries and the holes
    directly inside them; every contour is rewound so outers have positive
    and holes negative shoelace area, matching :class:`MooreNeighborTracer`.
    """

    name = "opencv"

    def __init__(self, padding: int = 2):
        if padding < 1:
            raise ConfigurationError("tracer padding must be at least 1 pixel")
        self.padding = padding

    def trace(self, mask: MaskLike) -> List[Polygon]:
        import cv2

        data = _as_mask(mask)
        pad = self.padding
        m = np.pad(data, pad, mode="constant", constant_values=False).astype(np.uint8) * 255
        contours, hierarchy = cv2.findContours(m, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_NONE)[-2:]
        if hierarchy is None:
            return []

        polygons: List[Polygon] = []
        discarded = 0
        for contour, links in zip(contours, hierarchy[0]):
            pts = tuple(Point2D(float(x - pad), float(y - pad))
                        for x, y in contour.reshape(-1, 2).tolist())
            if distinct_count(pts) < 3:
                discarded += 1
                continue
            pts = pts + (pts[0],)
            is_hole = links[3] != -1
            if (signed_area(pts) < 0) != is_hole:
                pts = reverse(pts)
            polygons.append(pts)

        logger.debug("opencv traced %d polygon(s), discarded %d short contour(s)",
                     len(polygons), discarded)
        return polygons


TracerFactory = Callable[[], BoundaryTracer]

_REGISTRY: Dict[str, TracerFactory] = {}


def register_tracer(name: str, factory: TracerFactory) -> None:
    """Make a tracer selectable through the ``tracer`` option."""

    if not name:
        raise ValueError("tracer name must not be empty")
    _REGISTRY[name] = factory


def get_tracer(name: str = "moore") -> BoundaryTracer:
    """Instantiate the tracer registered as ``name``."""

    try:
        factory = _REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY))
        raise ConfigurationError(f"unknown tracer {name!r} (available: {known})") from None
    return factory()


def available_tracers() -> List[str]:
    return sorted(_REGISTRY)


register_tracer(MooreNeighborTracer.name, MooreNeighborTracer)
register_tracer(OpenCVContourTracer.name, OpenCVContourTracer)


__all__ = [
    "MAX_TRACE_POINTS",
    "DIRECTIONS",
    "BoundaryTracer",
    "MooreNeighborTracer",
    "OpenCVContourTracer",
    "register_tracer",
    "get_tracer",
    "available_tracers",
]
