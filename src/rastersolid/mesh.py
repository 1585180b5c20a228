"""The triangle mesh value produced by the solid builder, plus sanity checks."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from rastersolid.geometry_utils import Triangle3D, Vec3, triangle_normal

_KEY_DIGITS = 6


@dataclass(frozen=True)
class Mesh:
    """An ordered, unindexed sequence of triangles."""

    triangles: Tuple[Triangle3D, ...] = ()

    @classmethod
    def from_triangles(cls, triangles: Iterable[Triangle3D]) -> "Mesh":
        return cls(tuple(triangles))

    def __len__(self) -> int:
        return len(self.triangles)

    def __iter__(self) -> Iterator[Triangle3D]:
        return iter(self.triangles)

    def __bool__(self) -> bool:
        return bool(self.triangles)

    def bounds(self) -> Tuple[Vec3, Vec3]:
        """Return ``(min_xyz, max_xyz)`` over every vertex."""

        if not self.triangles:
            raise ValueError("empty mesh has no bounds")
        xs, ys, zs = [], [], []
        for tri in self.triangles:
            for v in tri.vertices():
                xs.append(v[0])
                ys.append(v[1])
                zs.append(v[2])
        return (min(xs), min(ys), min(zs)), (max(xs), max(ys), max(zs))

    def size(self) -> Vec3:
        lo, hi = self.bounds()
        return hi[0] - lo[0], hi[1] - lo[1], hi[2] - lo[2]


@dataclass
class CheckResult:
    ok: bool
    warnings: List[str]

    def __bool__(self) -> bool:
        return self.ok


def _vertex_key(v: Vec3) -> Tuple[float, float, float]:
    return round(v[0], _KEY_DIGITS), round(v[1], _KEY_DIGITS), round(v[2], _KEY_DIGITS)


def check_watertight(mesh: Mesh) -> CheckResult:
    """Every directed edge must be matched by exactly one opposite edge."""

    edges = Counter()
    for tri in mesh:
        keys = [_vertex_key(v) for v in tri.vertices()]
        for i in range(3):
            edges[(keys[i], keys[(i + 1) % 3])] += 1

    unmatched = [e for e, count in edges.items() if edges.get((e[1], e[0]), 0) != count]
    doubled = [e for e, count in edges.items() if count > 1]

    warnings: List[str] = []
    if unmatched:
        warnings.append(f'{len(unmatched)} unmatched directed edges')
    if doubled:
        warnings.append(f'{len(doubled)} directed edges used more than once')
    return CheckResult(not warnings, warnings)


def check_normals(mesh: Mesh, tol: float = 1e-6) -> CheckResult:
    """Stored normals must agree with the right-hand rule of each winding."""

    inconsistent = []
    for idx, tri in enumerate(mesh):
        if tri.normal is None:
            continue
        computed = triangle_normal(*tri.vertices())
        if computed is None:
            continue
        if any(abs(a - b) > tol for a, b in zip(computed, tri.normal)):
            inconsistent.append(idx)
    if inconsistent:
        return CheckResult(False, [f'normals disagree with winding at {inconsistent[:10]}'])
    return CheckResult(True, [])


__all__ = ["Mesh", "CheckResult", "check_watertight", "check_normals"]
