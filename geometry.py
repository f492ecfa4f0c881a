# geometry.py
"""
Primitive 2D geometry used by the PolyTree engine: points, segments,
rectangles, circles, orientation/area helpers, convex hull and the
segment-to-segment relationship taxonomy.

Coordinates may be ``int`` or ``float``. Nothing here snaps or rounds
unless an epsilon is asked for explicitly.
"""
import functools
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from fractions import Fraction
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

Number = Union[int, float]


class Point(NamedTuple):
    x: Number
    y: Number

    def add(self, other: "Point") -> "Point":
        return Point(self.x + other[0], self.y + other[1])

    def sub(self, other: "Point") -> "Point":
        return Point(self.x - other[0], self.y - other[1])

    def scale(self, k: Number) -> "Point":
        return Point(self.x * k, self.y * k)

    def cross(self, other: "Point") -> Number:
        return self.x * other[1] - self.y * other[0]

    def dot(self, other: "Point") -> Number:
        return self.x * other[0] + self.y * other[1]

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other[0], self.y - other[1])

    def distance_squared_to(self, other: "Point") -> Number:
        dx = self.x - other[0]
        dy = self.y - other[1]
        return dx * dx + dy * dy

    def eq(self, other: "Point", eps: float = 0.0) -> bool:
        """Exact equality unless a tolerance is given."""
        if eps <= 0:
            return self.x == other[0] and self.y == other[1]
        return almost_equal(self.x, other[0], eps) and almost_equal(self.y, other[1], eps)

    def rotate(self, pivot: "Point", radians: float) -> "Point":
        """Rotate counter-clockwise about pivot; always yields floats."""
        c = math.cos(radians)
        s = math.sin(radians)
        dx = self.x - pivot[0]
        dy = self.y - pivot[1]
        return Point(pivot[0] + dx * c - dy * s, pivot[1] + dx * s + dy * c)

    def scale_from(self, ref: "Point", k: Number) -> "Point":
        return Point(ref[0] + (self.x - ref[0]) * k, ref[1] + (self.y - ref[1]) * k)

    def as_float(self) -> "Point":
        return Point(float(self.x), float(self.y))

    def as_int(self) -> "Point":
        # int() truncates toward zero
        return Point(int(self.x), int(self.y))

    def as_int_rounded(self) -> "Point":
        return Point(int(round(self.x)), int(round(self.y)))


Ring = List[Point]


@dataclass(frozen=True)
class Options:
    """
    Explicit configuration for polygon construction and Boolean operations.

    epsilon: input coordinates within epsilon of an integer are snapped to it.
    max_traversal_steps: upper bound on vertex steps of a single traversal.
    validate_nesting: run containment/overlap checks on constructor links.
    """
    epsilon: float = 0.0
    max_traversal_steps: int = 100000
    validate_nesting: bool = False

    def __post_init__(self):
        if self.epsilon < 0:
            object.__setattr__(self, "epsilon", 0.0)


DEFAULT_OPTIONS = Options()


class Orientation(IntEnum):
    CLOCKWISE = -1
    COLLINEAR = 0
    COUNTER_CLOCKWISE = 1


class LineSegmentRelationship(IntEnum):
    """How segment AB relates to segment CD. Everything above MISS touches."""
    COLLINEAR_DISJOINT = -1
    MISS = 0
    INTERSECTS = 1
    A_EQ_C = 2
    A_EQ_D = 3
    B_EQ_C = 4
    B_EQ_D = 5
    A_ON_CD = 6
    B_ON_CD = 7
    C_ON_AB = 8
    D_ON_AB = 9
    COLLINEAR_A_ON_CD = 10
    COLLINEAR_B_ON_CD = 11
    COLLINEAR_AB_IN_CD = 12
    COLLINEAR_CD_IN_AB = 13
    COLLINEAR_EQUAL = 14


class Relationship(Enum):
    """Relationship of a polygon node to another shape, read as 'node R shape'."""
    DISJOINT = "disjoint"
    INTERSECTION = "intersection"
    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    EQUAL = "equal"


# numeric equality
def almost_equal(a: float, b: float, eps: float) -> bool:
    return abs(a - b) <= eps


def snap_to_epsilon(value: Number, epsilon: float) -> Number:
    """Snap value to the nearest integer when it lies within epsilon of it."""
    if epsilon <= 0 or isinstance(value, int):
        return value
    rounded = round(value)
    if abs(value - rounded) < epsilon:
        return float(rounded)
    return value


# cross product
def orient(a: Point, b: Point, c: Point) -> Number:
    """Cross product (b-a) x (c-a), i.e. twice the signed triangle area."""
    return (b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])


def orientation(a: Point, b: Point, c: Point) -> Orientation:
    v = orient(a, b, c)
    if v > 0:
        return Orientation.COUNTER_CLOCKWISE
    if v < 0:
        return Orientation.CLOCKWISE
    return Orientation.COLLINEAR


def signed_area_x2(pts: Sequence[Point]) -> Number:
    """Twice the signed polygon area (positive is counter-clockwise), fanned from pts[0]."""
    total = 0
    for i in range(1, len(pts) - 1):
        total += orient(pts[0], pts[i], pts[i + 1])
    return total


def signed_area(pts: Sequence[Point]) -> float:
    return signed_area_x2(pts) / 2.0


def ensure_clockwise(pts: List[Point]) -> None:
    """Reverse pts in place unless already clockwise."""
    if signed_area_x2(pts) < 0:
        return
    pts.reverse()


def ensure_counter_clockwise(pts: List[Point]) -> None:
    """Reverse pts in place unless already counter-clockwise."""
    if signed_area_x2(pts) > 0:
        return
    pts.reverse()


def lowest_leftmost(pts: Sequence[Point]) -> Tuple[int, Point]:
    """Index and value of the point with the smallest y, ties broken by smallest x."""
    best = 0
    for i in range(1, len(pts)):
        p = pts[i]
        q = pts[best]
        if p[1] < q[1] or (p[1] == q[1] and p[0] < q[0]):
            best = i
    return best, pts[best]


def _angle_key(lowest: Point):
    def compare(a: Point, b: Point) -> int:
        if a[0] == lowest[0] and a[1] == lowest[1]:
            return -1
        if b[0] == lowest[0] and b[1] == lowest[1]:
            return 1
        cross = orient(lowest, a, b)
        if cross > 0:
            return -1
        if cross < 0:
            return 1
        da = Point(*lowest).distance_squared_to(a)
        db = Point(*lowest).distance_squared_to(b)
        if da < db:
            return -1
        if da > db:
            return 1
        return 0
    return compare


def convex_hull(points: Sequence[Point]) -> Ring:
    """
    Graham scan. Points are sorted by polar angle about the lowest-leftmost
    point, then clockwise turns are removed. Returns the hull counter-clockwise.
    """
    output = [Point(*p) for p in points]
    if len(output) < 3:
        return output
    _, lowest = lowest_leftmost(output)
    output.sort(key=functools.cmp_to_key(_angle_key(lowest)))

    i = 0
    while i < len(output):
        j = (i + 1) % len(output)
        k = (j + 1) % len(output)
        if orientation(output[i], output[j], output[k]) == Orientation.CLOCKWISE:
            del output[j]
            i -= 3
            if i < 0:
                i = 0
        i += 1
    return output


def point_in_convex_hull(hull: Sequence[Point], p: Point) -> bool:
    """Point inside or on a counter-clockwise convex polygon."""
    n = len(hull)
    for i in range(n):
        if orientation(hull[i], hull[(i + 1) % n], p) == Orientation.CLOCKWISE:
            return False
    return True


def is_on_segment(p: Point, a: Point, b: Point) -> bool:
    """p lies on segment ab (endpoints included), exact test."""
    if orient(p, a, b) != 0:
        return False
    return (min(a[0], b[0]) <= p[0] <= max(a[0], b[0]) and
            min(a[1], b[1]) <= p[1] <= max(a[1], b[1]))


def project_onto_segment(p: Point, a: Point, b: Point) -> Point:
    """Closest point on segment ab to p, as floats."""
    ab = (b[0] - a[0], b[1] - a[1])
    ap = (p[0] - a[0], p[1] - a[1])
    ab_ab = ab[0] * ab[0] + ab[1] * ab[1]
    if ab_ab == 0:
        return Point(float(a[0]), float(a[1]))
    t = (ap[0] * ab[0] + ap[1] * ab[1]) / ab_ab
    if t < 0:
        return Point(float(a[0]), float(a[1]))
    if t > 1:
        return Point(float(b[0]), float(b[1]))
    return Point(a[0] + t * ab[0], a[1] + t * ab[1])


def distance_to_segment(p: Point, a: Point, b: Point) -> float:
    q = project_onto_segment(p, a, b)
    return math.hypot(p[0] - q[0], p[1] - q[1])


def midpoint(a: Point, b: Point) -> Point:
    return Point((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def segment_intersection(a: Point, b: Point, c: Point, d: Point) -> Optional[Point]:
    """
    Single intersection point of segments AB and CD, or None.
    Parallel and collinear segments give None. Integer input is solved
    exactly and the result converted to float.
    """
    if all(isinstance(v, int) for p in (a, b, c, d) for v in p):
        a, b, c, d = [(Fraction(p[0]), Fraction(p[1])) for p in (a, b, c, d)]

    dir1 = (b[0] - a[0], b[1] - a[1])
    dir2 = (d[0] - c[0], d[1] - c[1])
    denom = dir1[0] * dir2[1] - dir1[1] * dir2[0]
    if denom == 0:
        return None

    ac = (c[0] - a[0], c[1] - a[1])
    t = (ac[0] * dir2[1] - ac[1] * dir2[0]) / denom
    u = (ac[0] * dir1[1] - ac[1] * dir1[0]) / denom
    if t < 0 or t > 1 or u < 0 or u > 1:
        return None
    return Point(float(a[0] + dir1[0] * t), float(a[1] + dir1[1] * t))


def segment_relationship(a: Point, b: Point, c: Point, d: Point) -> LineSegmentRelationship:
    """Classify segment AB against CD; endpoint coincidence is checked first."""
    R = LineSegmentRelationship
    a_eq_c = a[0] == c[0] and a[1] == c[1]
    a_eq_d = a[0] == d[0] and a[1] == d[1]
    b_eq_c = b[0] == c[0] and b[1] == c[1]
    b_eq_d = b[0] == d[0] and b[1] == d[1]
    if (a_eq_c and b_eq_d) or (a_eq_d and b_eq_c):
        return R.COLLINEAR_EQUAL
    if a_eq_c:
        return R.A_EQ_C
    if a_eq_d:
        return R.A_EQ_D
    if b_eq_c:
        return R.B_EQ_C
    if b_eq_d:
        return R.B_EQ_D

    o1 = orientation(a, b, c)
    o2 = orientation(a, b, d)
    o3 = orientation(c, d, a)
    o4 = orientation(c, d, b)

    a_on = is_on_segment(a, c, d)
    b_on = is_on_segment(b, c, d)
    c_on = is_on_segment(c, a, b)
    d_on = is_on_segment(d, a, b)

    if o1 != o2 and o3 != o4:
        if a_on and not b_on:
            return R.A_ON_CD
        if b_on and not a_on:
            return R.B_ON_CD
        if c_on and not d_on:
            return R.C_ON_AB
        if d_on and not c_on:
            return R.D_ON_AB
        return R.INTERSECTS

    if o1 == o2 == o3 == o4 == Orientation.COLLINEAR:
        if not (a_on or b_on or c_on or d_on):
            return R.COLLINEAR_DISJOINT
        if a_on and b_on:
            return R.COLLINEAR_AB_IN_CD
        if c_on and d_on:
            return R.COLLINEAR_CD_IN_AB
        if a_on:
            return R.COLLINEAR_A_ON_CD
        if b_on:
            return R.COLLINEAR_B_ON_CD

    return R.MISS


@dataclass(frozen=True)
class LineSegment:
    start: Point
    end: Point

    def length(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    def midpoint(self) -> Point:
        return midpoint(self.start, self.end)

    def relationship_to(self, other: "LineSegment") -> LineSegmentRelationship:
        return segment_relationship(self.start, self.end, other.start, other.end)

    def intersects(self, other: "LineSegment") -> bool:
        return self.relationship_to(other) > LineSegmentRelationship.MISS

    def distance_to_point(self, p: Point) -> float:
        return distance_to_segment(p, self.start, self.end)

    def contains_point(self, p: Point) -> bool:
        return is_on_segment(p, self.start, self.end)


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle given by its minimum and maximum corners."""
    min_point: Point
    max_point: Point

    @classmethod
    def from_points(cls, *points: Point) -> "Rectangle":
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(Point(min(xs), min(ys)), Point(max(xs), max(ys)))

    def width(self) -> Number:
        return self.max_point[0] - self.min_point[0]

    def height(self) -> Number:
        return self.max_point[1] - self.min_point[1]

    def area(self) -> Number:
        return self.width() * self.height()

    def perimeter(self) -> Number:
        return 2 * (self.width() + self.height())

    def corners(self) -> Ring:
        """Corners counter-clockwise from the minimum corner."""
        x0, y0 = self.min_point
        x1, y1 = self.max_point
        return [Point(x0, y0), Point(x1, y0), Point(x1, y1), Point(x0, y1)]

    def edges(self) -> List[LineSegment]:
        pts = self.corners()
        return [LineSegment(pts[i], pts[(i + 1) % 4]) for i in range(4)]

    def contains_point(self, p: Point) -> bool:
        return (self.min_point[0] <= p[0] <= self.max_point[0] and
                self.min_point[1] <= p[1] <= self.max_point[1])


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: Number

    def area(self) -> float:
        return math.pi * self.radius * self.radius

    def circumference(self) -> float:
        return 2 * math.pi * self.radius

    def contains_point(self, p: Point) -> bool:
        """Inside or on the circumference."""
        return Point(*self.center).distance_squared_to(p) <= self.radius * self.radius

    def crosses_segment(self, a: Point, b: Point) -> bool:
        """The circumference meets segment ab."""
        r = self.radius
        near = distance_to_segment(self.center, a, b)
        far = max(Point(*self.center).distance_to(a), Point(*self.center).distance_to(b))
        return near <= r <= far
