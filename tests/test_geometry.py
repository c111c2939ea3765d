"""Tests for the polygon geometry kernel."""

import math

import pytest

from py_mapgraph.core.geometry import (
    BoundingBox,
    Point,
    add,
    cross,
    distance,
    dot,
    expand_polygon,
    inset_polygon,
    is_point_in_polygon,
    lerp,
    normalize,
    perpendicular,
    point_along_polygon,
    polygon_area,
    polygon_bounds,
    polygon_centroid,
    polygon_perimeter,
    scale,
    shrink_polygon,
    subtract,
    to_points,
)


@pytest.fixture
def square():
    """10x10 square, counter-clockwise."""
    return to_points([(0, 0), (10, 0), (10, 10), (0, 10)])


@pytest.fixture
def hexagon():
    return tuple(Point(50 + 20 * math.cos(i * math.pi / 3), 50 + 20 * math.sin(i * math.pi / 3))
                 for i in range(6))


class TestVectorOps:
    """Test point arithmetic."""

    def test_distance(self):
        assert distance(Point(0, 0), Point(3, 4)) == 5.0

    def test_lerp(self):
        assert lerp(Point(0, 0), Point(10, 20), 0.25) == Point(2.5, 5.0)

    def test_add_subtract_scale(self):
        a = Point(1, 2)
        b = Point(3, 5)
        assert add(a, b) == Point(4, 7)
        assert subtract(b, a) == Point(2, 3)
        assert scale(a, 3) == Point(3, 6)

    def test_normalize(self):
        n = normalize(Point(3, 4))
        assert n.x == pytest.approx(0.6)
        assert n.y == pytest.approx(0.8)

    def test_normalize_zero_vector(self):
        assert normalize(Point(0, 0)) == Point(0, 0)

    def test_perpendicular_dot_cross(self):
        v = Point(2, 1)
        assert perpendicular(v) == Point(-1, 2)
        assert dot(v, perpendicular(v)) == 0
        assert cross(Point(1, 0), Point(0, 1)) == 1


class TestPolygonMeasures:
    """Test area, centroid, perimeter and bounds."""

    def test_area_winding_independent(self, square, hexagon):
        for polygon in (square, hexagon):
            assert polygon_area(polygon) == pytest.approx(polygon_area(tuple(reversed(polygon))))
        assert polygon_area(square) == pytest.approx(100.0)

    def test_centroid(self, square):
        c = polygon_centroid(square)
        assert c.x == pytest.approx(5.0)
        assert c.y == pytest.approx(5.0)

    def test_centroid_reversed(self, hexagon):
        c1 = polygon_centroid(hexagon)
        c2 = polygon_centroid(tuple(reversed(hexagon)))
        assert c1.x == pytest.approx(c2.x)
        assert c1.y == pytest.approx(c2.y)

    def test_centroid_degenerate_falls_back_to_mean(self):
        collinear = to_points([(0, 0), (1, 1), (2, 2)])
        c = polygon_centroid(collinear)
        assert c.x == pytest.approx(1.0)
        assert c.y == pytest.approx(1.0)

    def test_centroid_empty(self):
        assert polygon_centroid(()) == Point(0.0, 0.0)

    def test_perimeter(self, square):
        assert polygon_perimeter(square) == pytest.approx(40.0)

    def test_bounds(self, hexagon):
        b = polygon_bounds(hexagon)
        assert b.min_x == pytest.approx(30.0)
        assert b.max_x == pytest.approx(70.0)

    def test_bounds_empty(self):
        assert polygon_bounds(()) == BoundingBox(0.0, 0.0, 0.0, 0.0)


class TestPointInPolygon:
    """Test the even-odd containment test."""

    def test_inside_and_outside(self, square):
        assert is_point_in_polygon(Point(5, 5), square)
        assert not is_point_in_polygon(Point(15, 5), square)
        assert not is_point_in_polygon(Point(-1, -1), square)

    def test_concave(self):
        l_shape = to_points([(0, 0), (10, 0), (10, 4), (4, 4), (4, 10), (0, 10)])
        assert is_point_in_polygon(Point(2, 8), l_shape)
        assert not is_point_in_polygon(Point(8, 8), l_shape)


class TestInsetPolygon:
    """Test inward offsetting."""

    def test_square_inset(self, square):
        inset = inset_polygon(square, 1.0)
        assert len(inset) == 4
        assert polygon_area(inset) == pytest.approx(64.0)
        assert inset[0].x == pytest.approx(1.0)
        assert inset[0].y == pytest.approx(1.0)

    def test_inset_independent_of_winding(self, hexagon):
        forward = polygon_area(inset_polygon(hexagon, 2.0))
        backward = polygon_area(inset_polygon(tuple(reversed(hexagon)), 2.0))
        assert forward == pytest.approx(backward)

    @pytest.mark.parametrize("amount", [0.5, 1.0, 3.0])
    def test_inset_shrinks_area(self, hexagon, amount):
        assert polygon_area(inset_polygon(hexagon, amount)) < polygon_area(hexagon)

    def test_inset_keeps_points_inside(self, hexagon):
        for p in inset_polygon(hexagon, 2.0):
            assert is_point_in_polygon(p, hexagon)

    def test_degenerate_input_returned_unchanged(self):
        line = to_points([(0, 0), (5, 5)])
        assert inset_polygon(line, 1.0) == list(line)

    def test_acute_corner_displacement_capped(self):
        spike = to_points([(0, 0), (100, 1), (0, 2)])
        inset = inset_polygon(spike, 1.0)
        assert distance(inset[1], spike[1]) <= 3.0 + 1e-9


class TestRadialShrink:
    """Test shrink/expand toward the centroid."""

    def test_shrink(self, square):
        shrunk = shrink_polygon(square, math.sqrt(2))
        assert shrunk[0].x == pytest.approx(1.0)
        assert shrunk[0].y == pytest.approx(1.0)

    def test_expand(self, square):
        assert polygon_area(expand_polygon(square, 1.0)) > polygon_area(square)


class TestPointAlongPolygon:
    """Test arc-length walking."""

    def test_walk(self, square):
        assert point_along_polygon(square, 0) == Point(0, 0)
        p = point_along_polygon(square, 15)
        assert p.x == pytest.approx(10.0)
        assert p.y == pytest.approx(5.0)

    def test_wraps(self, square):
        p = point_along_polygon(square, 45)
        assert p.x == pytest.approx(5.0)
        assert p.y == pytest.approx(0.0)

    def test_empty(self):
        assert point_along_polygon((), 3.0) == Point(0.0, 0.0)
