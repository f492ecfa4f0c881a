# polytree.py
"""
PolyTree: a hierarchy of polygons with holes and islands.

Each node wraps one closed contour. Solid contours run counter-clockwise,
hole contours clockwise. Children always have the opposite polarity of
their parent; siblings share polarity and do not overlap.

Contour coordinates are stored doubled so that the midpoint of any two
stored vertices is still representable with integer coordinates. Every
public readout halves them again.
"""
import logging
import weakref
from enum import Enum, IntFlag
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from errors import (ConstructionError, ContainmentError, DegenerateContourError,
                    EmptyInputError, OverlapError, PolarityMismatchError)
from geometry import (DEFAULT_OPTIONS, Circle, LineSegment, LineSegmentRelationship,
                      Number, Options, Point, Rectangle, Relationship, Ring,
                      convex_hull, ensure_clockwise, ensure_counter_clockwise,
                      is_on_segment, lowest_leftmost, orient, point_in_convex_hull,
                      segment_relationship, signed_area, signed_area_x2, snap_to_epsilon)

logger = logging.getLogger(__name__)


class PolygonType(Enum):
    SOLID = 0
    HOLE = 1

    def opposite(self) -> "PolygonType":
        return PolygonType.HOLE if self is PolygonType.SOLID else PolygonType.SOLID


class PointKind(Enum):
    ORIGINAL = 0
    ADDED_INTERSECTION = 1


class EntryExit(Enum):
    UNSET = 0
    ENTRY = 1
    EXIT = 2


class PolyTreeMismatch(IntFlag):
    NONE = 0
    NIL_POLYGON = 1
    CONTOUR = 2
    SIBLING = 4
    CHILD = 8


def half(value: Number) -> Number:
    """Undo coordinate doubling; integer halving truncates toward zero."""
    if isinstance(value, int):
        return value // 2 if value >= 0 else -((-value) // 2)
    return value / 2


class Vertex:
    """One annotated contour position (coordinates doubled)."""

    def __init__(self, point: Point, kind: PointKind = PointKind.ORIGINAL):
        self.point = point
        self.kind = kind
        self.entry_exit = EntryExit.UNSET
        self.visited = False
        # (node, index) of the matching vertex in the other operand
        self.partner: Optional[Tuple["PolyTree", int]] = None

    def reset(self):
        self.kind = PointKind.ORIGINAL
        self.entry_exit = EntryExit.UNSET
        self.visited = False
        self.partner = None

    def __repr__(self):
        return (f"Vertex(point={self.point}, kind={self.kind.name}, "
                f"entry_exit={self.entry_exit.name}, visited={self.visited})")


class Contour:
    """Closed ring of vertices; the last vertex connects back to the first."""

    def __init__(self, vertices: Sequence[Vertex]):
        self.vertices: List[Vertex] = list(vertices)
        self.max_x = max(v.point.x for v in self.vertices) + 1 if self.vertices else 0

    def __len__(self):
        return len(self.vertices)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self.vertices)

    def __getitem__(self, index: int) -> Vertex:
        return self.vertices[index]

    def contains(self, point: Point) -> bool:
        """Exact match against any stored vertex."""
        return any(v.point[0] == point[0] and v.point[1] == point[1] for v in self.vertices)

    def edges(self) -> List[Tuple[Point, Point]]:
        n = len(self.vertices)
        if n < 2:
            return []
        return [(self.vertices[i].point, self.vertices[(i + 1) % n].point) for i in range(n)]

    def to_points(self) -> Ring:
        """Original vertices only, halved back to caller coordinates."""
        return [Point(half(v.point.x), half(v.point.y))
                for v in self.vertices if v.kind is PointKind.ORIGINAL]

    def lowest_leftmost(self) -> Point:
        return lowest_leftmost([v.point for v in self.vertices])[1]

    def reorder(self):
        """Rotate so the lowest, then leftmost, vertex comes first."""
        if not self.vertices:
            return
        index, _ = lowest_leftmost([v.point for v in self.vertices])
        self.vertices = self.vertices[index:] + self.vertices[:index]

    def strip_intersections(self):
        self.vertices = [v for v in self.vertices if v.kind is not PointKind.ADDED_INTERSECTION]
        for v in self.vertices:
            v.reset()

    def eq(self, other: "Contour") -> bool:
        """Same original points up to rotation and winding."""
        mine = self.to_points()
        theirs = other.to_points()
        if len(mine) != len(theirs):
            return False
        if not mine:
            return True
        if signed_area_x2(mine) > 0:
            mine.reverse()
        if signed_area_x2(theirs) > 0:
            theirs.reverse()
        n = len(theirs)
        for start in range(n):
            if all(mine[i] == theirs[(i + start) % n] for i in range(n)):
                return True
        return False

    def insert_intersection_point(self, start: int, end: int, vertex: Vertex):
        """
        Insert vertex on the edge start->end, before the first intermediate
        vertex that lies farther along the edge than it does.
        """
        a = self.vertices[start].point
        b = self.vertices[end].point
        segment = LineSegment(a, b)
        pos = end
        for i in range(start + 1, end):
            existing = LineSegment(a, self.vertices[i].point)
            if segment.distance_to_point(vertex.point) < existing.distance_to_point(self.vertices[i].point):
                pos = i
                break
        self.vertices.insert(pos, vertex)

    def is_point_inside(self, point: Point) -> bool:
        """
        Ray cast toward +x. Points on an edge count as inside.

        Each edge is treated as half-open in y, so a vertex on the ray is
        counted once and a horizontal run along the ray is counted once
        or not at all, depending on whether the contour crosses the ray
        there or only touches it.
        """
        y = point[1]
        crosses = 0
        for a, b in self.edges():
            if is_on_segment(point, a, b):
                return True
            if (a[1] > y) == (b[1] > y):
                continue
            # the crossing lies to the right when point is left of the upward edge
            side = orient(a, b, point)
            if (side > 0) == (b[1] > a[1]):
                crosses += 1
        return crosses % 2 == 1

    def is_contour_inside(self, other: "Contour") -> bool:
        return all(self.is_point_inside(v.point) for v in other.vertices)

    def crosses(self, other: "Contour") -> bool:
        """Any pair of edges touches or crosses."""
        for a, b in self.edges():
            for c, d in other.edges():
                if segment_relationship(a, b, c, d) > LineSegmentRelationship.MISS:
                    return True
        return False


def _lowest_leftmost_key(node: "PolyTree"):
    p = node.vertices.lowest_leftmost()
    return p[1], p[0]


class PolyTree:
    """
    A polygon node with links to its parent, children and siblings.

    points: the contour in caller coordinates (at least three, non-zero area)
    polarity: PolygonType.SOLID or PolygonType.HOLE
    """

    def __init__(self, points: Sequence[Point], polarity: PolygonType = PolygonType.SOLID,
                 children: Optional[Sequence["PolyTree"]] = None,
                 siblings: Optional[Sequence["PolyTree"]] = None,
                 options: Optional[Options] = None):
        self.options = options or DEFAULT_OPTIONS
        if len(points) < 3:
            raise DegenerateContourError("new polytree must have at least 3 points")

        eps = self.options.epsilon
        pts = [Point(snap_to_epsilon(p[0], eps), snap_to_epsilon(p[1], eps)) for p in points]
        if signed_area_x2(pts) == 0:
            raise DegenerateContourError("new polytree must have non-zero area")

        self.polarity = polarity
        self.integral = all(isinstance(v, int) and not isinstance(v, bool) for p in pts for v in p)

        ordered = list(pts)
        if polarity is PolygonType.SOLID:
            ensure_counter_clockwise(ordered)
        else:
            ensure_clockwise(ordered)
        self.vertices = Contour([Vertex(Point(x * 2, y * 2)) for x, y in ordered])
        self.vertices.reorder()

        hull = convex_hull(pts)
        ensure_counter_clockwise(hull)
        self._hull = hull

        self._parent: Optional[weakref.ref] = None
        self._children: List[PolyTree] = []
        self._siblings: List[PolyTree] = []

        for child in children or ():
            self.add_child(child, validate=self.options.validate_nesting)
        for sibling in siblings or ():
            self.add_sibling(sibling, validate=self.options.validate_nesting)

    def __repr__(self):
        return f"PolyTree({self.polarity.name}, {self.contour()})"

    def __len__(self):
        return sum(1 for _ in self.iter_polys())

    # ---- links ----

    def add_child(self, child: "PolyTree", validate: bool = False):
        if child is None:
            raise ConstructionError("attempt to add nil child")
        if child.polarity is self.polarity:
            raise PolarityMismatchError(
                f"cannot add child: mismatched polygon types "
                f"(parent: {self.polarity.name}, child: {child.polarity.name})")
        if validate and not self.vertices.is_contour_inside(child.vertices):
            raise ContainmentError("cannot add child: contour is not inside parent")
        child._parent = weakref.ref(self)
        self._children.append(child)
        self._order_siblings_and_children()

    def add_sibling(self, sibling: "PolyTree", validate: bool = False):
        """Link sibling to this node and to every existing sibling of it."""
        if sibling is None:
            raise ConstructionError("attempt to add nil sibling")
        if sibling.polarity is not self.polarity:
            raise PolarityMismatchError("cannot add sibling as polygon type is mismatched")
        if validate:
            for existing in [self] + self._siblings:
                if existing._overlaps(sibling):
                    raise OverlapError("cannot add sibling: contour overlaps an existing sibling")

        for existing in self._siblings:
            existing._siblings.append(sibling)
            existing._order_siblings_and_children()
            sibling._siblings.append(existing)
        sibling._siblings.append(self)
        sibling._order_siblings_and_children()
        self._siblings.append(sibling)
        self._order_siblings_and_children()

    def _order_siblings_and_children(self):
        self._siblings.sort(key=_lowest_leftmost_key)
        self._children.sort(key=_lowest_leftmost_key)

    def _overlaps(self, other: "PolyTree") -> bool:
        if any(self.vertices.is_point_inside(v.point) for v in other.vertices):
            return True
        if any(other.vertices.is_point_inside(v.point) for v in self.vertices):
            return True
        return self.vertices.crosses(other.vertices)

    # ---- accessors ----

    def parent(self) -> Optional["PolyTree"]:
        return self._parent() if self._parent is not None else None

    def root(self) -> "PolyTree":
        node = self
        while node.parent() is not None:
            node = node.parent()
        return node

    def is_root(self) -> bool:
        return self.parent() is None

    def children(self) -> List["PolyTree"]:
        return list(self._children)

    def siblings(self) -> List["PolyTree"]:
        return list(self._siblings)

    def is_simple(self) -> bool:
        """A lone contour with no children or siblings."""
        return not self._children and not self._siblings

    def contour(self) -> Ring:
        return self.vertices.to_points()

    points = contour

    def hull(self) -> Ring:
        return list(self._hull)

    @property
    def max_x(self) -> Number:
        return self.vertices.max_x

    def edges(self) -> List[LineSegment]:
        pts = self.contour()
        return [LineSegment(pts[i], pts[(i + 1) % len(pts)]) for i in range(len(pts))]

    def contour_area(self) -> float:
        return abs(signed_area(self.contour()))

    def area(self) -> float:
        """Net area: solids add, holes subtract, over every reachable node."""
        total = 0.0
        for node in self.iter_polys():
            if node.polarity is PolygonType.SOLID:
                total += node.contour_area()
            else:
                total -= node.contour_area()
        return total

    def perimeter(self) -> float:
        return sum(edge.length() for edge in self.edges())

    def bounding_box(self) -> Rectangle:
        return Rectangle.from_points(*self.contour())

    def iter_polys(self) -> Iterator["PolyTree"]:
        """This node, then its siblings, then its children, each once."""
        return self._walk(set())

    def _walk(self, seen: Set["PolyTree"]) -> Iterator["PolyTree"]:
        if self in seen:
            return
        seen.add(self)
        yield self
        for sibling in self._siblings:
            yield from sibling._walk(seen)
        for child in self._children:
            yield from child._walk(seen)

    # ---- comparison ----

    def eq(self, other: Optional["PolyTree"]) -> Tuple[bool, PolyTreeMismatch]:
        return self._eq(other, set())

    def _eq(self, other, visited: Set["PolyTree"]) -> Tuple[bool, PolyTreeMismatch]:
        if other is None:
            return False, PolyTreeMismatch.NIL_POLYGON
        if self in visited or other in visited:
            return True, PolyTreeMismatch.NONE
        visited.add(self)
        visited.add(other)

        mismatch = PolyTreeMismatch.NONE
        if not self.vertices.eq(other.vertices):
            mismatch |= PolyTreeMismatch.CONTOUR
            logger.debug("contour mismatch: %s vs %s", self.contour(), other.contour())

        if not _match_all(self._siblings, other._siblings, visited):
            mismatch |= PolyTreeMismatch.SIBLING
            logger.debug("sibling mismatch")
        if not _match_all(self._children, other._children, visited):
            mismatch |= PolyTreeMismatch.CHILD
            logger.debug("child mismatch")
        return mismatch == PolyTreeMismatch.NONE, mismatch

    def intersects(self, other: "PolyTree") -> bool:
        """Any node of either tree overlaps, touches or contains a node of the other."""
        for n1 in self.iter_polys():
            for n2 in other.iter_polys():
                if n1._overlaps(n2):
                    return True
        return False

    # ---- intersection bookkeeping ----

    def reset_intersection_metadata_and_reorder(self):
        """Drop synthesized vertices, clear annotations and restore start order."""
        for node in self.iter_polys():
            node.vertices.strip_intersections()
            node.vertices.reorder()

    # ---- transforms ----

    def _map_points(self, fn: Callable[[Point], Point]) -> "PolyTree":
        def build(node: PolyTree) -> PolyTree:
            copy = PolyTree([fn(p) for p in node.contour()], node.polarity, options=node.options)
            for child in node._children:
                copy.add_child(build(child))
            return copy

        result = build(self)
        for sibling in self._siblings:
            result.add_sibling(build(sibling))
        return result

    def copy(self) -> "PolyTree":
        return self._map_points(lambda p: p)

    def translate(self, delta: Point) -> "PolyTree":
        return self._map_points(lambda p: p.add(delta))

    def scale(self, ref: Point, k: Number) -> "PolyTree":
        return self._map_points(lambda p: p.scale_from(ref, k))

    def rotate(self, pivot: Point, radians: float) -> "PolyTree":
        return self._map_points(lambda p: p.rotate(pivot, radians))

    def as_int(self) -> "PolyTree":
        return self._map_points(Point.as_int)

    def as_int_rounded(self) -> "PolyTree":
        return self._map_points(Point.as_int_rounded)

    def as_float(self) -> "PolyTree":
        return self._map_points(Point.as_float)

    # ---- relationships ----

    def relationship_to_point(self, point: Point) -> Dict["PolyTree", Relationship]:
        doubled = Point(point[0] * 2, point[1] * 2)
        result = {}
        for node in self.iter_polys():
            if not point_in_convex_hull(node._hull, point):
                result[node] = Relationship.DISJOINT
            elif any(is_on_segment(doubled, a, b) for a, b in node.vertices.edges()):
                result[node] = Relationship.INTERSECTION
            elif node.vertices.is_point_inside(doubled):
                result[node] = Relationship.CONTAINS
            else:
                result[node] = Relationship.DISJOINT
        return result

    def relationship_to_line_segment(self, segment: LineSegment) -> Dict["PolyTree", Relationship]:
        a = Point(segment.start[0] * 2, segment.start[1] * 2)
        b = Point(segment.end[0] * 2, segment.end[1] * 2)
        result = {}
        for node in self.iter_polys():
            if any(segment_relationship(a, b, c, d) > LineSegmentRelationship.MISS
                   for c, d in node.vertices.edges()):
                result[node] = Relationship.INTERSECTION
            elif node.vertices.is_point_inside(a) and node.vertices.is_point_inside(b):
                result[node] = Relationship.CONTAINS
            else:
                result[node] = Relationship.DISJOINT
        return result

    def relationship_to_circle(self, circle: Circle) -> Dict["PolyTree", Relationship]:
        center = Point(circle.center[0] * 2, circle.center[1] * 2)
        result = {}
        for node in self.iter_polys():
            pts = node.contour()
            n = len(pts)
            if any(circle.crosses_segment(pts[i], pts[(i + 1) % n]) for i in range(n)):
                result[node] = Relationship.INTERSECTION
            elif all(circle.contains_point(p) for p in pts):
                result[node] = Relationship.CONTAINED_BY
            elif node.vertices.is_point_inside(center):
                result[node] = Relationship.CONTAINS
            else:
                result[node] = Relationship.DISJOINT
        return result

    def relationship_to_rectangle(self, rect: Rectangle) -> Dict["PolyTree", Relationship]:
        corners = [Point(x * 2, y * 2) for x, y in rect.corners()]
        rect_edges = [(corners[i], corners[(i + 1) % 4]) for i in range(4)]
        result = {}
        for node in self.iter_polys():
            if any(segment_relationship(a, b, c, d) > LineSegmentRelationship.MISS
                   for a, b in node.vertices.edges() for c, d in rect_edges):
                result[node] = Relationship.INTERSECTION
            elif all(node.vertices.is_point_inside(c) for c in corners):
                result[node] = Relationship.CONTAINS
            elif all(rect.contains_point(p) for p in node.contour()):
                result[node] = Relationship.CONTAINED_BY
            else:
                result[node] = Relationship.DISJOINT
        return result

    def relationship_to_polytree(self, other: "PolyTree") -> Dict["PolyTree", Dict["PolyTree", Relationship]]:
        result = {}
        for n1 in self.iter_polys():
            result[n1] = {n2: n1._relationship_to_node(n2) for n2 in other.iter_polys()}
        return result

    def _relationship_to_node(self, other: "PolyTree") -> Relationship:
        if self.vertices.eq(other.vertices):
            return Relationship.EQUAL
        if self.vertices.crosses(other.vertices):
            return Relationship.INTERSECTION
        if self.vertices.is_contour_inside(other.vertices):
            return Relationship.CONTAINS
        if other.vertices.is_contour_inside(self.vertices):
            return Relationship.CONTAINED_BY
        return Relationship.DISJOINT

    # ---- boolean operations ----

    def boolean_operation(self, other: "PolyTree", operation) -> Optional["PolyTree"]:
        from weiler_atherton import boolean_operation
        return boolean_operation(self, other, operation)


def _match_all(mine: List[PolyTree], theirs: List[PolyTree], visited: Set[PolyTree]) -> bool:
    if len(mine) != len(theirs):
        return False
    for node in mine:
        if not any(node._eq(candidate, visited)[0] for candidate in theirs):
            return False
    return True


def _find_container(node: PolyTree, candidate: PolyTree) -> Optional[PolyTree]:
    if not node.vertices.is_contour_inside(candidate.vertices):
        return None
    for child in node._children:
        found = _find_container(child, candidate)
        if found is not None:
            return found
    return node


def find_container(tree: PolyTree, candidate: PolyTree) -> Optional[PolyTree]:
    """
    Deepest node whose contour holds every vertex of candidate, searching
    below tree and below each of its siblings.
    """
    for top in [tree] + tree.siblings():
        found = _find_container(top, candidate)
        if found is not None:
            return found
    return None


def nest_contours(contours: Sequence[Sequence[Point]], options: Optional[Options] = None) -> PolyTree:
    """
    Rebuild a PolyTree from flat contours. The largest contour becomes the
    solid root; each smaller one becomes a child of the deepest node that
    contains it, with the opposite polarity, or a sibling of the root.
    """
    if not contours:
        raise EmptyInputError("no contours provided")

    ordered = sorted(contours, key=lambda c: abs(signed_area_x2(c)), reverse=True)
    root = PolyTree(ordered[0], PolygonType.SOLID, options=options)

    for points in ordered[1:]:
        candidate = PolyTree(points, PolygonType.SOLID, options=options)
        parent = find_container(root, candidate)

        if parent is None:
            logger.debug("nesting %s as sibling of root", candidate.contour())
            root.add_sibling(candidate)
            continue

        polarity = parent.polarity.opposite()
        if polarity is not candidate.polarity:
            candidate = PolyTree(points, polarity, options=options)
        logger.debug("nesting %s as %s child", candidate.contour(), polarity.name)
        parent.add_child(candidate)
    return root
