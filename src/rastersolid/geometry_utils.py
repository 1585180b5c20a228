"""Triangle helpers shared by the solid builder and the STL codec."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from rastersolid.geometry import epsilon

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Triangle3D:
    """Immutable triangle in model space (millimeters).

    ``normal`` may be ``None``; writers then derive it from the winding.
    """

    v0: Vec3
    v1: Vec3
    v2: Vec3
    normal: Optional[Vec3] = None

    def vertices(self) -> Tuple[Vec3, Vec3, Vec3]:
        return self.v0, self.v1, self.v2


def sub(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def normalize(v: Vec3) -> Optional[Vec3]:
    length = math.sqrt(dot(v, v))
    if length <= epsilon:
        return None
    return v[0] / length, v[1] / length, v[2] / length


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[Vec3]:
    """Unit normal by the right-hand rule, or ``None`` if degenerate."""

    return normalize(cross(sub(v1, v0), sub(v2, v0)))


def winding_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3:
    """Normal from ``cross(v2 - v1, v0 - v1)``; zero vector when degenerate."""

    n = normalize(cross(sub(v2, v1), sub(v0, v1)))
    return n if n is not None else (0.0, 0.0, 0.0)


def triangle_area(v0: Vec3, v1: Vec3, v2: Vec3) -> float:
    n = cross(sub(v1, v0), sub(v2, v0))
    return 0.5 * math.sqrt(dot(n, n))


def triangle_is_degenerate(v0: Vec3, v1: Vec3, v2: Vec3, tol: float = epsilon) -> bool:
    """Return ``True`` if a triangle collapses under the given tolerance."""

    return triangle_area(v0, v1, v2) <= tol


def make_triangle(v0: Vec3, v1: Vec3, v2: Vec3) -> Optional[Triangle3D]:
    """Build a triangle with its right-hand-rule normal; ``None`` if degenerate."""

    normal = triangle_normal(v0, v1, v2)
    if normal is None:
        return None
    return Triangle3D(v0, v1, v2, normal)


__all__ = [
    "Vec3",
    "Triangle3D",
    "sub",
    "cross",
    "dot",
    "normalize",
    "triangle_normal",
    "winding_normal",
    "triangle_area",
    "triangle_is_degenerate",
    "make_triangle",
]
