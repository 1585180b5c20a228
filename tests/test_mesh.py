import pytest

from rastersolid.geometry_utils import (
    Triangle3D,
    make_triangle,
    triangle_area,
    triangle_is_degenerate,
    triangle_normal,
    winding_normal,
)
from rastersolid.mesh import Mesh, check_normals, check_watertight


def _tetrahedron():
    a, b, c, d = (0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)
    return Mesh.from_triangles([
        make_triangle(a, c, b),
        make_triangle(a, b, d),
        make_triangle(b, c, d),
        make_triangle(c, a, d),
    ])


def test_triangle_normal_and_area():
    v0, v1, v2 = (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)
    assert triangle_normal(v0, v1, v2) == (0.0, 0.0, 1.0)
    assert winding_normal(v0, v1, v2) == pytest.approx((0.0, 0.0, 1.0))
    assert triangle_area(v0, v1, v2) == pytest.approx(0.5)


def test_degenerate_triangle():
    v0, v1, v2 = (0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0)
    assert triangle_is_degenerate(v0, v1, v2)
    assert triangle_normal(v0, v1, v2) is None
    assert winding_normal(v0, v1, v2) == (0.0, 0.0, 0.0)
    assert make_triangle(v0, v1, v2) is None


def test_mesh_bounds_and_size():
    mesh = _tetrahedron()
    assert len(mesh) == 4
    assert mesh.bounds() == ((0, 0, 0), (1, 1, 1))
    assert mesh.size() == (1, 1, 1)
    with pytest.raises(ValueError):
        Mesh().bounds()
    assert not Mesh()


def test_closed_tetrahedron_is_watertight():
    mesh = _tetrahedron()
    assert check_watertight(mesh).ok
    assert check_normals(mesh).ok


def test_open_mesh_is_reported():
    mesh = Mesh.from_triangles(list(_tetrahedron())[:3])
    result = check_watertight(mesh)
    assert not result
    assert result.warnings


def test_flipped_normal_is_reported():
    tri = Triangle3D((0, 0, 0), (1, 0, 0), (0, 1, 0), normal=(0.0, 0.0, -1.0))
    assert not check_normals(Mesh((tri,))).ok
