# weiler_atherton.py
"""
Boolean operations between PolyTrees, Weiler-Atherton style.

1. find_intersections inserts every edge crossing into both operands.
2. mark_entry_exit labels each crossing as an entry or exit point.
3. traverse walks the labelled contours and emits result rings.
4. boolean_operation wraps the steps above with fast paths and re-nests
   the rings into a new PolyTree.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from errors import IntersectionMetadataError, OperationError
from geometry import (LineSegmentRelationship, Options, Point, Ring, midpoint,
                      segment_intersection, segment_relationship)
from polytree import (EntryExit, PointKind, PolygonType, PolyTree, Vertex, find_container,
                      half, nest_contours)

logger = logging.getLogger(__name__)


class BooleanOperation(Enum):
    UNION = 0
    INTERSECTION = 1
    SUBTRACTION = 2


class TraversalDirection(Enum):
    FORWARD = 0
    REVERSE = 1

    def toggled(self) -> "TraversalDirection":
        if self is TraversalDirection.FORWARD:
            return TraversalDirection.REVERSE
        return TraversalDirection.FORWARD


_S = PolygonType.SOLID
_H = PolygonType.HOLE
_EN = EntryExit.ENTRY
_EX = EntryExit.EXIT

# (operation, polarity of A's node, polarity of B's node, A heads into B)
#   -> (label for A's vertex, label for B's vertex)
ENTRY_EXIT_TABLE: Dict[Tuple[BooleanOperation, PolygonType, PolygonType, bool],
                       Tuple[EntryExit, EntryExit]] = {
    (BooleanOperation.UNION, _S, _S, True): (_EX, _EN),
    (BooleanOperation.UNION, _S, _S, False): (_EN, _EX),
    (BooleanOperation.UNION, _S, _H, True): (_EN, _EX),
    (BooleanOperation.UNION, _S, _H, False): (_EX, _EN),
    (BooleanOperation.UNION, _H, _S, True): (_EX, _EN),
    (BooleanOperation.UNION, _H, _S, False): (_EN, _EX),
    (BooleanOperation.UNION, _H, _H, True): (_EN, _EX),
    (BooleanOperation.UNION, _H, _H, False): (_EX, _EN),

    (BooleanOperation.INTERSECTION, _S, _S, True): (_EN, _EX),
    (BooleanOperation.INTERSECTION, _S, _S, False): (_EX, _EN),
    (BooleanOperation.INTERSECTION, _S, _H, True): (_EX, _EN),
    (BooleanOperation.INTERSECTION, _S, _H, False): (_EN, _EX),
    (BooleanOperation.INTERSECTION, _H, _S, True): (_EN, _EX),
    (BooleanOperation.INTERSECTION, _H, _S, False): (_EX, _EN),
    (BooleanOperation.INTERSECTION, _H, _H, True): (_EX, _EN),
    (BooleanOperation.INTERSECTION, _H, _H, False): (_EN, _EX),

    (BooleanOperation.SUBTRACTION, _S, _S, True): (_EX, _EX),
    (BooleanOperation.SUBTRACTION, _S, _S, False): (_EN, _EN),
    (BooleanOperation.SUBTRACTION, _S, _H, True): (_EN, _EN),
    (BooleanOperation.SUBTRACTION, _S, _H, False): (_EX, _EX),
    (BooleanOperation.SUBTRACTION, _H, _S, True): (_EX, _EX),
    (BooleanOperation.SUBTRACTION, _H, _S, False): (_EN, _EN),
    (BooleanOperation.SUBTRACTION, _H, _H, True): (_EN, _EN),
    (BooleanOperation.SUBTRACTION, _H, _H, False): (_EX, _EX),
}


def _to_coordinate(p: Point, integral: bool) -> Point:
    if integral:
        return Point(int(p[0]), int(p[1]))
    return Point(float(p[0]), float(p[1]))


def find_intersections(subject: PolyTree, clipper: PolyTree) -> int:
    """
    Insert every edge-edge crossing between the two trees into both
    contours involved. Both trees are reset first. Returns the number of
    crossings inserted.

    After an insertion both scan indices skip past the new vertex while
    the current subject edge stays fixed, so later crossings on that
    edge are still tested against its original endpoints.
    """
    subject.reset_intersection_metadata_and_reorder()
    clipper.reset_intersection_metadata_and_reorder()
    integral = subject.integral and clipper.integral

    inserted = 0
    for poly1 in subject.iter_polys():
        for poly2 in clipper.iter_polys():
            c1 = poly1.vertices
            c2 = poly2.vertices
            i1 = 0
            while i1 < len(c1):
                j1 = (i1 + 1) % len(c1)
                a = c1[i1].point
                b = c1[j1].point
                i2 = 0
                while i2 < len(c2):
                    j2 = (i2 + 1) % len(c2)
                    hit = segment_intersection(a, b, c2[i2].point, c2[j2].point)
                    if hit is not None:
                        pt = _to_coordinate(hit, integral)
                        if not (c1.contains(pt) or c2.contains(pt)):
                            c1.insert_intersection_point(i1, j1, Vertex(pt, PointKind.ADDED_INTERSECTION))
                            c2.insert_intersection_point(i2, j2, Vertex(pt, PointKind.ADDED_INTERSECTION))
                            i1 += 1
                            i2 += 1
                            inserted += 1
                    i2 += 1
                i1 += 1

    logger.debug("inserted %d intersection vertices", inserted)
    return inserted


def mark_entry_exit(subject: PolyTree, clipper: PolyTree, operation: BooleanOperation):
    """
    Label each pair of matching intersection vertices as entry or exit and
    link them as partners. The label depends on the operation, both node
    polarities and whether the subject, just past the crossing, lies
    inside the clipper node.
    """
    integral = subject.integral and clipper.integral
    for poly1 in subject.iter_polys():
        for poly2 in clipper.iter_polys():
            c1 = poly1.vertices
            c2 = poly2.vertices
            for idx1, v1 in enumerate(c1):
                if v1.kind is not PointKind.ADDED_INTERSECTION:
                    continue
                nxt = c1[(idx1 + 1) % len(c1)]
                for idx2, v2 in enumerate(c2):
                    if v2.kind is not PointKind.ADDED_INTERSECTION or v1.point != v2.point:
                        continue
                    if v1.entry_exit is not EntryExit.UNSET or v2.entry_exit is not EntryExit.UNSET:
                        raise IntersectionMetadataError("found intersection metadata when none was expected")

                    mid = _to_coordinate(midpoint(v1.point, nxt.point), integral)
                    heading_in = c2.is_point_inside(mid)
                    v1.entry_exit, v2.entry_exit = ENTRY_EXIT_TABLE[
                        (operation, poly1.polarity, poly2.polarity, heading_in)]
                    v1.partner = (poly2, idx2)
                    v2.partner = (poly1, idx1)
                    logger.debug("%s: %s/%s", v1.point, v1.entry_exit.name, v2.entry_exit.name)


def find_traversal_start(subject: PolyTree, clipper: PolyTree) -> Optional[Tuple[PolyTree, int]]:
    """First unvisited entry vertex, scanning the subject's nodes before the clipper's."""
    for tree in (subject, clipper):
        for node in tree.iter_polys():
            for index, v in enumerate(node.vertices):
                if v.entry_exit is EntryExit.ENTRY and not v.visited:
                    return node, index
    return None


def _halved(node: PolyTree, index: int) -> Point:
    p = node.vertices[index].point
    return Point(half(p.x), half(p.y))


def _switches(node: PolyTree, v: Vertex, operation: BooleanOperation,
              direction: TraversalDirection) -> bool:
    if v.entry_exit is EntryExit.EXIT:
        return True
    if operation is not BooleanOperation.SUBTRACTION or v.entry_exit is not EntryExit.ENTRY:
        return False
    # subtraction also crosses over at entries on holes, and on solids when walking backwards
    return node.polarity is PolygonType.HOLE or direction is TraversalDirection.REVERSE


def traverse(subject: PolyTree, clipper: PolyTree, operation: BooleanOperation,
             options: Optional[Options] = None) -> List[Ring]:
    """
    Walk the labelled contours and return the result rings in caller
    coordinates. If no ring is produced the operands share no crossings:
    union gives every contour of both, intersection gives nothing and
    subtraction gives the subject's contours.
    """
    options = options or subject.options
    results: List[Ring] = []
    steps = 0

    while True:
        start = find_traversal_start(subject, clipper)
        if start is None:
            break
        node, index = start
        direction = TraversalDirection.FORWARD
        ring: Ring = []

        while True:
            steps += 1
            if steps > options.max_traversal_steps:
                logger.warning("traversal stopped after %d steps", options.max_traversal_steps)
                raise OperationError(f"traversal exceeded {options.max_traversal_steps} steps")

            ring.append(_halved(node, index))
            v = node.vertices[index]
            v.visited = True
            if v.partner is not None:
                partner_node, partner_index = v.partner
                partner_node.vertices[partner_index].visited = True

            n = len(node.vertices)
            if direction is TraversalDirection.FORWARD:
                index = (index + 1) % n
            else:
                index = (index - 1) % n

            v = node.vertices[index]
            if _switches(node, v, operation, direction):
                node, index = v.partner
                if operation is BooleanOperation.SUBTRACTION:
                    direction = direction.toggled()

            if _halved(node, index) == ring[0]:
                break

        logger.debug("result ring (%d points): %s", len(ring), ring)
        results.append(ring)

    if results:
        return results
    if operation is BooleanOperation.UNION:
        return [n.contour() for n in subject.iter_polys()] + [n.contour() for n in clipper.iter_polys()]
    if operation is BooleanOperation.INTERSECTION:
        return []
    return [n.contour() for n in subject.iter_polys()]


def _edges_cross(subject: PolyTree, clipper: PolyTree) -> bool:
    """Some pair of edges, over every node of both trees, crosses properly."""
    for n1 in subject.iter_polys():
        for n2 in clipper.iter_polys():
            for a, b in n1.vertices.edges():
                for c, d in n2.vertices.edges():
                    if segment_relationship(a, b, c, d) == LineSegmentRelationship.INTERSECTS:
                        return True
    return False


def _solid_container(tree: PolyTree, inner: PolyTree) -> Optional[PolyTree]:
    """
    Solid node of tree holding the lone contour inner, provided none of
    that node's holes lies inside inner.
    """
    node = find_container(tree, inner)
    if node is None or node.polarity is not PolygonType.SOLID:
        return None
    if any(inner.vertices.is_contour_inside(hole.vertices) for hole in node.children()):
        return None
    return node


def _containment_result(subject: PolyTree, clipper: PolyTree,
                        operation: BooleanOperation) -> Tuple[bool, Optional[PolyTree]]:
    """
    Short-circuit a lone solid contour lying in the solid part of the other
    operand. Returns (handled, result).
    """
    lone_subject = subject.is_simple() and subject.polarity is PolygonType.SOLID
    lone_clipper = clipper.is_simple() and clipper.polarity is PolygonType.SOLID
    if not (lone_subject or lone_clipper):
        return False, None
    if _edges_cross(subject, clipper):
        return False, None

    clipper_holder = _solid_container(subject, clipper) if lone_clipper else None
    subject_holder = _solid_container(clipper, subject) if lone_subject else None

    if clipper_holder is not None and subject_holder is not None:
        logger.debug("operands are equal")
        if operation is BooleanOperation.SUBTRACTION:
            return True, None
        return True, subject.copy()

    if clipper_holder is not None:
        logger.debug("clipper lies inside subject node %s", clipper_holder.contour())
        if operation is BooleanOperation.UNION:
            return True, subject.copy()
        if operation is BooleanOperation.INTERSECTION:
            return True, clipper.copy()
        result = subject.copy()
        hole = PolyTree(clipper.contour(), PolygonType.HOLE, options=clipper.options)
        find_container(result, clipper).add_child(hole)
        return True, result

    if subject_holder is not None:
        logger.debug("subject lies inside clipper node %s", subject_holder.contour())
        if operation is BooleanOperation.UNION:
            return True, clipper.copy()
        if operation is BooleanOperation.INTERSECTION:
            return True, subject.copy()
        return True, None

    return False, None


def boolean_operation(subject: PolyTree, clipper: PolyTree, operation: BooleanOperation,
                      options: Optional[Options] = None) -> Optional[PolyTree]:
    """
    Union, intersection or subtraction (subject - clipper) of two PolyTrees.
    Returns a new PolyTree, or None when the result is empty. Both operands
    keep the intersection vertices inserted along the way until their next
    operation.
    """
    if not isinstance(operation, BooleanOperation):
        raise OperationError(f"unknown operation: {operation!r}")
    if not isinstance(subject, PolyTree) or not isinstance(clipper, PolyTree):
        raise OperationError("both operands must be PolyTree instances")
    options = options or subject.options

    if not subject.intersects(clipper):
        logger.debug("operands are disjoint")
        if operation is BooleanOperation.UNION:
            contours = [n.contour() for n in subject.iter_polys()]
            contours += [n.contour() for n in clipper.iter_polys()]
            return nest_contours(contours, options)
        if operation is BooleanOperation.INTERSECTION:
            return None
        return subject.copy()

    handled, result = _containment_result(subject, clipper, operation)
    if handled:
        return result

    find_intersections(subject, clipper)
    mark_entry_exit(subject, clipper, operation)
    rings = traverse(subject, clipper, operation, options)
    if not rings:
        return None
    return nest_contours(rings, options)
