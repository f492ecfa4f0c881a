import math

import pytest

from errors import (ConstructionError, ContainmentError, DegenerateContourError,
                    EmptyInputError, OverlapError, PolarityMismatchError)
from geometry import Circle, LineSegment, Options, Point, Rectangle, Relationship
from polytree import (Contour, PointKind, PolygonType, PolyTree, PolyTreeMismatch, Vertex,
                      half, nest_contours)

from conftest import square


def contour_of(*points):
    return Contour([Vertex(Point(*p)) for p in points])


def test_half_truncates_toward_zero():
    assert half(7) == 3
    assert half(-7) == -3
    assert half(7.0) == 3.5
    assert half(21.0) == 10.5


def test_too_few_points():
    with pytest.raises(DegenerateContourError, match="at least 3 points"):
        PolyTree([(0, 0), (1, 1)])


def test_zero_area():
    with pytest.raises(DegenerateContourError, match="non-zero area"):
        PolyTree([(0, 0), (1, 1), (2, 2)])


def test_construction_errors_are_value_errors():
    with pytest.raises(ValueError):
        PolyTree([(0, 0), (1, 1)])


def test_solid_is_counter_clockwise_from_lowest_leftmost():
    tree = PolyTree([(0, 0), (0, 10), (10, 10), (10, 0)], PolygonType.SOLID)
    assert tree.contour() == [(0, 0), (10, 0), (10, 10), (0, 10)]
    assert tree.vertices[1].point == (20, 0)
    assert tree.integral


def test_hole_is_clockwise():
    tree = PolyTree(square(0, 0, 10), PolygonType.HOLE)
    assert tree.contour() == [(0, 0), (0, 10), (10, 10), (10, 0)]


def test_reorder_starts_at_lowest_leftmost():
    tree = PolyTree([(10, 10), (0, 10), (0, 0), (10, 0)])
    assert tree.contour()[0] == (0, 0)


def test_epsilon_snapping():
    tree = PolyTree([(0, 0), (9.9999999, 0), (10, 10), (0, 10)], options=Options(epsilon=1e-6))
    assert tree.contour()[1] == (10, 0)
    assert not tree.integral


def test_add_child_errors():
    root = PolyTree(square(0, 0, 10))
    with pytest.raises(ConstructionError, match="nil child"):
        root.add_child(None)
    with pytest.raises(PolarityMismatchError, match="parent: SOLID, child: SOLID"):
        root.add_child(PolyTree(square(2, 2, 2)))
    with pytest.raises(ContainmentError):
        root.add_child(PolyTree(square(20, 20, 2), PolygonType.HOLE), validate=True)


def test_add_child_without_validation_accepts_anything():
    root = PolyTree(square(0, 0, 10))
    root.add_child(PolyTree(square(20, 20, 2), PolygonType.HOLE))
    assert len(root.children()) == 1


def test_add_sibling_errors():
    root = PolyTree(square(0, 0, 10))
    with pytest.raises(ConstructionError, match="nil sibling"):
        root.add_sibling(None)
    with pytest.raises(PolarityMismatchError):
        root.add_sibling(PolyTree(square(20, 0, 10), PolygonType.HOLE))
    with pytest.raises(OverlapError):
        root.add_sibling(PolyTree(square(5, 5, 10)), validate=True)


def test_siblings_are_linked_both_ways():
    a = PolyTree(square(0, 0, 10))
    b = PolyTree(square(20, 0, 10))
    c = PolyTree(square(40, 0, 10))
    a.add_sibling(b)
    a.add_sibling(c)
    assert a.siblings() == [b, c]
    assert b.siblings() == [a, c]
    assert c.siblings() == [a, b]
    assert len(a) == 3
    assert len(c) == 3


def test_constructor_validates_when_asked():
    outside = PolyTree(square(20, 20, 2), PolygonType.HOLE)
    with pytest.raises(ContainmentError):
        PolyTree(square(0, 0, 10), children=[outside], options=Options(validate_nesting=True))


def test_parent_and_root():
    island = PolyTree(square(4, 4, 2))
    hole = PolyTree(square(2, 2, 6), PolygonType.HOLE, children=[island])
    root = PolyTree(square(0, 0, 10), children=[hole])
    assert root.is_root()
    assert not island.is_root()
    assert island.parent() is hole
    assert hole.parent() is root
    assert island.root() is root
    assert list(root.iter_polys()) == [root, hole, island]


def test_areas_and_perimeter():
    assert PolyTree(square(0, 0, 10)).area() == 100
    assert PolyTree([(0, 0), (10, 0), (0, 10)]).area() == 50
    hole = PolyTree(square(2, 2, 2), PolygonType.HOLE)
    tree = PolyTree(square(0, 0, 10), children=[hole])
    assert tree.area() == 96
    assert tree.contour_area() == 100
    assert tree.perimeter() == 40


def test_bounding_box():
    tree = PolyTree([(0, 0), (10, 0), (5, 8)])
    assert tree.bounding_box() == Rectangle(Point(0, 0), Point(10, 8))


def test_hull_skips_notch():
    tree = PolyTree([(0, 0), (10, 0), (10, 10), (5, 3), (0, 10)])
    assert tree.hull() == [(0, 0), (10, 0), (10, 10), (0, 10)]
    assert len(tree.contour()) == 5


def test_eq_ignores_start_and_winding():
    a = PolyTree(square(0, 0, 10))
    b = PolyTree([(10, 10), (10, 0), (0, 0), (0, 10)])
    assert a.eq(b) == (True, PolyTreeMismatch.NONE)


def test_eq_reports_mismatches():
    a = PolyTree(square(0, 0, 10))
    assert a.eq(None) == (False, PolyTreeMismatch.NIL_POLYGON)
    assert a.eq(PolyTree(square(0, 0, 11))) == (False, PolyTreeMismatch.CONTOUR)

    holed = PolyTree(square(0, 0, 10), children=[PolyTree(square(2, 2, 2), PolygonType.HOLE)])
    ok, mismatch = a.eq(holed)
    assert not ok
    assert mismatch == PolyTreeMismatch.CHILD


def test_contour_eq_across_polarity():
    solid = PolyTree(square(0, 0, 10), PolygonType.SOLID)
    hole = PolyTree(square(0, 0, 10), PolygonType.HOLE)
    assert solid.vertices.eq(hole.vertices)


@pytest.mark.parametrize("points, inserted, expected_index", [
    ([(0, 0), (10, 10)], (5, 5), 1),
    ([(0, 0), (10, 10), (20, 20)], (5, 5), 1),
    ([(0, 0), (20, 20), (40, 40)], (10, 10), 1),
])
def test_insert_intersection_point(points, inserted, expected_index):
    contour = contour_of(*points)
    contour.insert_intersection_point(0, 1, Vertex(Point(*inserted), PointKind.ADDED_INTERSECTION))
    assert len(contour) == len(points) + 1
    assert contour[expected_index].point == inserted
    assert contour[expected_index].kind is PointKind.ADDED_INTERSECTION


def test_to_points_skips_added_vertices():
    contour = contour_of((0, 0), (20, 0), (20, 20))
    contour.insert_intersection_point(0, 1, Vertex(Point(10, 0), PointKind.ADDED_INTERSECTION))
    assert contour.to_points() == [(0, 0), (10, 0), (10, 10)]


def test_is_point_inside():
    box = contour_of((0, 0), (10, 0), (10, 10), (0, 10))
    assert box.is_point_inside(Point(5, 5))
    assert not box.is_point_inside(Point(-5, 5))
    assert not box.is_point_inside(Point(15, 5))
    assert box.is_point_inside(Point(10, 5))


def test_is_point_inside_along_horizontal_edges():
    stepped = PolyTree([(0, 0), (20, 0), (20, 7), (27, 7), (27, 27), (7, 27), (7, 20), (0, 20)])
    # the ray from (14, 14) runs along the stored edge (40, 14)-(54, 14)
    assert stepped.vertices.is_point_inside(Point(14, 14))
    assert stepped.vertices.is_point_inside(Point(30, 14))
    assert not stepped.vertices.is_point_inside(Point(-4, 14))
    assert not stepped.vertices.is_point_inside(Point(46, 4))

    # touching the ray at a vertex without crossing it
    diamond = contour_of((10, 0), (20, 10), (10, 20), (0, 10))
    assert diamond.is_point_inside(Point(10, 10))
    assert not diamond.is_point_inside(Point(-5, 20))
    assert not diamond.is_point_inside(Point(-5, 0))


def test_intersects(square_a, square_b):
    assert square_a.intersects(square_b)
    assert not square_a.intersects(PolyTree(square(20, 0, 10)))


def test_translate_keeps_structure(donut):
    moved = donut.translate(Point(5, 5))
    assert moved.contour() == square(5, 5, 100)
    assert len(moved) == 2
    assert moved.children()[0].polarity is PolygonType.HOLE
    assert moved.area() == donut.area()
    # the original is untouched
    assert donut.contour() == square(0, 0, 100)


def test_scale():
    tree = PolyTree(square(0, 0, 10)).scale(Point(0, 0), 2)
    assert tree.area() == 400


def test_rotate():
    rotated = PolyTree(square(0, 0, 10)).rotate(Point(0, 0), math.pi / 2)
    assert not rotated.integral
    assert rotated.area() == pytest.approx(100)
    assert rotated.as_int_rounded().contour() == [(-10, 0), (0, 0), (0, 10), (-10, 10)]


def test_as_float_and_as_int():
    tree = PolyTree(square(0, 0, 10))
    floats = tree.as_float()
    assert not floats.integral
    assert floats.contour() == square(0, 0, 10)
    back = floats.as_int()
    assert back.integral
    assert back.eq(tree)[0]


def test_copy_is_deep(donut):
    clone = donut.copy()
    assert clone.eq(donut) == (True, PolyTreeMismatch.NONE)
    assert clone.children()[0] is not donut.children()[0]


def test_round_trip_through_contour():
    for polarity in PolygonType:
        tree = PolyTree([(3, 1), (9, 4), (6, 8), (1, 6)], polarity)
        rebuilt = PolyTree(tree.contour(), tree.polarity)
        assert rebuilt.contour() == tree.contour()
        assert rebuilt.eq(tree) == (True, PolyTreeMismatch.NONE)


def test_reset_twice_matches_reset_once(donut):
    donut.reset_intersection_metadata_and_reorder()
    once = [node.contour() for node in donut.iter_polys()]
    donut.reset_intersection_metadata_and_reorder()
    assert [node.contour() for node in donut.iter_polys()] == once
    assert once == [square(0, 0, 100), [(20, 20), (20, 80), (80, 80), (80, 20)]]


def test_relationship_to_point(donut):
    hole = donut.children()[0]

    rel = donut.relationship_to_point(Point(10, 10))
    assert rel[donut] is Relationship.CONTAINS
    assert rel[hole] is Relationship.DISJOINT

    rel = donut.relationship_to_point(Point(50, 50))
    assert rel[donut] is Relationship.CONTAINS
    assert rel[hole] is Relationship.CONTAINS

    rel = donut.relationship_to_point(Point(0, 50))
    assert rel[donut] is Relationship.INTERSECTION
    assert rel[hole] is Relationship.DISJOINT

    rel = donut.relationship_to_point(Point(150, 50))
    assert rel[donut] is Relationship.DISJOINT


def test_relationship_to_line_segment(donut):
    hole = donut.children()[0]
    rel = donut.relationship_to_line_segment(LineSegment(Point(5, 50), Point(50, 50)))
    assert rel[donut] is Relationship.CONTAINS
    assert rel[hole] is Relationship.INTERSECTION


def test_relationship_to_circle(donut):
    hole = donut.children()[0]
    rel = donut.relationship_to_circle(Circle(Point(50, 50), 10))
    assert rel[donut] is Relationship.CONTAINS
    assert rel[hole] is Relationship.CONTAINS

    rel = donut.relationship_to_circle(Circle(Point(50, 50), 200))
    assert rel[donut] is Relationship.CONTAINED_BY


def test_relationship_to_rectangle(donut):
    hole = donut.children()[0]
    rel = donut.relationship_to_rectangle(Rectangle(Point(5, 5), Point(15, 15)))
    assert rel[donut] is Relationship.CONTAINS
    assert rel[hole] is Relationship.DISJOINT

    rel = donut.relationship_to_rectangle(Rectangle(Point(-10, -10), Point(110, 110)))
    assert rel[donut] is Relationship.CONTAINED_BY


def test_relationship_to_polytree(donut):
    other = donut.copy()
    rel = donut.relationship_to_polytree(other)
    assert rel[donut][other] is Relationship.EQUAL
    assert rel[donut][other.children()[0]] is Relationship.CONTAINS
    assert rel[donut.children()[0]][other] is Relationship.CONTAINED_BY


def test_nest_contours_needs_input():
    with pytest.raises(EmptyInputError):
        nest_contours([])


def test_nest_contours_alternates_polarity():
    root = nest_contours([square(40, 40, 20), square(0, 0, 100), square(20, 20, 60)])
    assert root.contour() == square(0, 0, 100)
    assert root.polarity is PolygonType.SOLID

    (hole,) = root.children()
    assert hole.polarity is PolygonType.HOLE
    assert hole.contour() == [(20, 20), (20, 80), (80, 80), (80, 20)]

    (island,) = hole.children()
    assert island.polarity is PolygonType.SOLID
    assert island.contour() == square(40, 40, 20)

    assert len(root) == 3
    assert root.area() == 10000 - 3600 + 400


def test_nest_contours_disjoint_become_siblings():
    root = nest_contours([square(0, 0, 10), square(20, 0, 10)])
    assert root.contour() == square(0, 0, 10)
    assert [s.contour() for s in root.siblings()] == [square(20, 0, 10)]
    assert root.area() == 200
