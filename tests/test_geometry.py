import pytest

from rastersolid.geometry import (
    Point2D,
    as_polygon,
    bbox,
    distinct_count,
    is_closed,
    is_degenerate,
    open_ring,
    point_in_polygon,
    point_on_boundary,
    reverse,
    signed_area,
)

SQUARE = [(0, 0), (10, 0), (10, 10), (0, 10)]


def test_signed_area_clockwise_on_screen_is_positive():
    assert signed_area(SQUARE) == pytest.approx(100.0)
    assert signed_area(list(reversed(SQUARE))) == pytest.approx(-100.0)


def test_signed_area_ignores_explicit_closing_point():
    assert signed_area(SQUARE + [SQUARE[0]]) == pytest.approx(100.0)


def test_open_ring_drops_duplicates_and_closure():
    ring = open_ring([(0, 0), (0, 0), (1, 0), (1, 1), (0, 0)])
    assert ring == [Point2D(0, 0), Point2D(1, 0), Point2D(1, 1)]


def test_is_closed():
    assert is_closed(SQUARE + [(0, 0)])
    assert not is_closed(SQUARE)
    assert not is_closed([(0, 0)])


def test_degenerate_polygons():
    assert is_degenerate([(0, 0), (5, 5)])
    assert is_degenerate([(0, 0), (1, 1), (2, 2)])
    assert is_degenerate([(0, 0), (1, 0), (0, 0)])
    assert not is_degenerate(SQUARE)


def test_distinct_count_ignores_repeats():
    assert distinct_count(SQUARE + [(0, 0)]) == 4


def test_point_in_polygon():
    assert point_in_polygon((5, 5), SQUARE)
    assert not point_in_polygon((15, 5), SQUARE)
    assert not point_in_polygon((5, 5), [])


def test_bbox():
    assert bbox([(3, 4), (-1, 7), (2, -2)]) == (-1, -2, 3, 7)
    with pytest.raises(ValueError):
        bbox([])


def test_reverse_keeps_first_point_and_closure():
    closed = as_polygon(SQUARE + [(0, 0)])
    rev = reverse(closed)
    assert rev[0] == rev[-1] == Point2D(0, 0)
    assert signed_area(rev) == pytest.approx(-signed_area(closed))

    rev_open = reverse(as_polygon(SQUARE))
    assert rev_open[0] == Point2D(0, 0)
    assert len(rev_open) == 4


def test_point_on_boundary():
    assert point_on_boundary((0, 5), SQUARE)
    assert point_on_boundary((10, 10), SQUARE)
    assert point_on_boundary((5, 0.0000001), SQUARE)
    assert not point_on_boundary((5, 5), SQUARE)
    assert not point_on_boundary((11, 5), SQUARE)
