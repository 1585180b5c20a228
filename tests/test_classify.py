import pytest

from rastersolid.classify import (
    ClassifiedPolygon,
    ShapeWithHoles,
    associate_holes,
    build_shapes,
    classify_polygons,
    is_frame_polygon,
)
from rastersolid.config import PipelineOptions
from rastersolid.geometry import signed_area


def _square(lo, hi, hole=False):
    pts = [(lo, lo), (hi, lo), (hi, hi), (lo, hi)]
    if hole:
        pts = [pts[0]] + list(reversed(pts[1:]))
    return pts


def test_area_sign_matches_hole_flag():
    polys = [_square(10, 90), _square(40, 60, hole=True)]
    for cand in classify_polygons(polys, 200, 200):
        assert cand.is_hole == (cand.signed_area < 0)
        assert cand.area == pytest.approx(abs(signed_area(cand.points)))


def test_sorted_by_absolute_area():
    polys = [_square(40, 60, hole=True), _square(100, 110), _square(10, 90)]
    areas = [c.area for c in classify_polygons(polys, 200, 200)]
    assert areas == sorted(areas, reverse=True)


def test_hole_attached_to_containing_outer():
    shapes = build_shapes([_square(10, 90), _square(40, 60, hole=True)], 200, 200)
    assert len(shapes) == 1
    shape = shapes[0]
    assert signed_area(shape.outer) > 0
    assert len(shape.holes) == 1
    assert signed_area(shape.holes[0]) < 0
    assert shape.area == pytest.approx(6400 - 400)


def test_nested_island_gets_its_own_hole():
    polys = [
        _square(10, 190),
        _square(30, 170, hole=True),
        _square(50, 150),
        _square(80, 120, hole=True),
    ]
    shapes = build_shapes(polys, 400, 400)
    assert len(shapes) == 2
    big, island = shapes
    assert big.area > island.area
    assert len(big.holes) == 1 and len(island.holes) == 1
    assert abs(signed_area(island.holes[0])) == pytest.approx(1600)


def test_orphan_hole_becomes_outer():
    shapes = build_shapes([_square(40, 60, hole=True)], 200, 200)
    assert len(shapes) == 1
    assert signed_area(shapes[0].outer) == pytest.approx(400)
    assert shapes[0].holes == ()


def test_frame_polygon_is_rejected():
    frame = _square(0, 100)
    assert is_frame_polygon(frame, 100, 100)
    assert build_shapes([frame], 100, 100) == []


def test_frame_check_needs_every_edge_near_the_border():
    assert not is_frame_polygon([(0, 0), (100, 0), (100, 80), (0, 80)], 100, 100)
    assert not is_frame_polygon(_square(20, 80), 100, 100)


def test_degenerate_polygons_are_dropped():
    polys = [[(0, 0), (5, 5)], [(0, 0), (1, 1), (2, 2)], _square(10, 20)]
    classified = classify_polygons(polys, 100, 100)
    assert len(classified) == 1


def test_preserve_holes_false_fills_holes():
    options = PipelineOptions(preserve_holes=False)
    shapes = build_shapes([_square(10, 90), _square(40, 60, hole=True)], 200, 200, options)
    assert len(shapes) == 1
    assert shapes[0].holes == ()


def test_min_area_drops_small_shapes_and_holes():
    options = PipelineOptions(min_area=50)
    polys = [_square(10, 90), _square(40, 45, hole=True), _square(100, 105)]
    shapes = build_shapes(polys, 200, 200, options)
    assert len(shapes) == 1
    assert shapes[0].holes == ()


def test_associate_holes_leaves_outers_alone():
    classified = classify_polygons([_square(10, 90), _square(40, 60, hole=True)], 200, 200)
    result = associate_holes(classified)
    assert result[0].parent_index is None
    assert result[1].parent_index == 0


def test_shape_polygons_lists_outer_first():
    outer, hole = tuple(_square(0, 10)), tuple(_square(2, 4, hole=True))
    shape = ShapeWithHoles(outer, (hole,))
    assert shape.polygons() == (outer, hole)
    assert ClassifiedPolygon(outer, -1.0).is_hole


def test_hole_starting_on_the_outer_boundary_keeps_its_parent():
    outer = _square(10, 90)
    hole = [(10, 40), (10, 60), (30, 60), (30, 40)]
    assert signed_area(hole) < 0
    shapes = build_shapes([outer, hole], 200, 200)
    assert len(shapes) == 1
    assert len(shapes[0].holes) == 1
