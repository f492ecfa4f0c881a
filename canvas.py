# canvas.py
"""
CanvasWidget: draws PolyTrees and handles mouse input for building them.
"""
import logging
from dataclasses import dataclass

from PyQt5.QtWidgets import QWidget
from PyQt5.QtCore import pyqtSignal, QPointF, Qt
from PyQt5.QtGui import QPainter, QPainterPath, QPen, QBrush, QColor, QPolygonF

from polytree import PolyTree, PolygonType
from weiler_atherton import BooleanOperation, boolean_operation

logger = logging.getLogger(__name__)


@dataclass
class CanvasPolygon:
    tree: PolyTree
    in_operation_area: bool = False
    is_clipper: bool = False


class CanvasWidget(QWidget):
    polygon_added = pyqtSignal()
    polygons_changed = pyqtSignal()

    def __init__(self):
        super().__init__()
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)
        self.polygons = []  # CanvasPolygon list
        self.current_rings = []  # closed rings of the polygon being built
        self.current_ring_points = []  # open ring being drawn

        self.result_tree = None

        self.info_text = ("Left click: add point; right click / Close ring: close ring; "
                          "Build polygon: first ring is the outline, the rest are holes")

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.current_ring_points.append((event.x(), event.y()))
            self.update()
        elif event.button() == Qt.RightButton:
            self.close_current_ring()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QBrush(QColor(255, 255, 255)))

        self._draw_operation_polygons(painter)
        self._draw_draft_polygons(painter)

        if self.result_tree is not None:
            self._draw_result(painter)

        self._draw_current_rings(painter)

        painter.setPen(QColor(0, 0, 0))
        margin = 10
        rect = self.rect().adjusted(margin, margin, -margin, -margin)
        painter.drawText(rect, Qt.AlignBottom | Qt.AlignLeft, self.info_text)

    def _draw_operation_polygons(self, painter):
        """Operands: subject in black, clipper in red."""
        for poly in self.polygons:
            if not poly.in_operation_area:
                continue
            color = QColor(255, 0, 0) if poly.is_clipper else QColor(0, 0, 0)
            painter.setBrush(Qt.NoBrush)
            self._draw_tree(painter, poly.tree, color)

    def _draw_draft_polygons(self, painter):
        for poly in self.polygons:
            if poly.in_operation_area:
                continue
            painter.setBrush(Qt.NoBrush)
            self._draw_tree(painter, poly.tree, QColor(128, 128, 128))

    def _draw_tree(self, painter, tree, color):
        for node in tree.iter_polys():
            style = Qt.DashLine if node.polarity is PolygonType.HOLE else Qt.SolidLine
            painter.setPen(QPen(color, 2, style))
            self._draw_ring(painter, node.contour())

    def _draw_result(self, painter):
        """Fill the result; even-odd filling leaves holes empty."""
        path = QPainterPath()
        path.setFillRule(Qt.OddEvenFill)
        for node in self.result_tree.iter_polys():
            ring = node.contour()
            path.addPolygon(QPolygonF([QPointF(x, y) for x, y in ring]))
            path.closeSubpath()
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(QColor(0, 255, 0, 100)))
        painter.drawPath(path)

    def _draw_current_rings(self, painter):
        # open ring
        painter.setPen(QPen(QColor(50, 50, 150), 2))
        r = self.current_ring_points
        for i in range(len(r) - 1):
            painter.drawLine(r[i][0], r[i][1], r[i + 1][0], r[i + 1][1])

        # closed rings
        painter.setPen(QPen(QColor(50, 50, 150), 1, Qt.DashLine))
        for ring in self.current_rings:
            self._draw_ring(painter, ring)

        painter.setBrush(QBrush(QColor(0, 0, 0)))
        for ring in self.current_rings + [self.current_ring_points]:
            for x, y in ring:
                painter.drawEllipse(QPointF(x, y), 3, 3)

    def _draw_ring(self, painter, ring):
        n = len(ring)
        for i in range(n):
            a = ring[i]
            b = ring[(i + 1) % n]
            painter.drawLine(QPointF(a[0], a[1]), QPointF(b[0], b[1]))

    def close_current_ring(self):
        if len(self.current_ring_points) < 3:
            return False

        ring = list(self.current_ring_points)
        if ring[0] == ring[-1]:
            ring = ring[:-1]
        self.current_rings.append(ring)
        self.current_ring_points = []
        self.update()
        return True

    def finish_building_polygon(self):
        """
        Turn the closed rings into a PolyTree: the first ring is the solid
        outline, every further ring becomes a hole. Raises ConstructionError
        for degenerate rings.
        """
        if not self.current_rings:
            return False

        outline, *holes = self.current_rings
        tree = PolyTree(outline, PolygonType.SOLID)
        for ring in holes:
            tree.add_child(PolyTree(ring, PolygonType.HOLE), validate=True)

        self.polygons.append(CanvasPolygon(tree))
        self.current_rings = []
        self.polygon_added.emit()
        self.update()
        return True

    def perform_operation_and_show(self, operation: BooleanOperation):
        subject = None
        clipper = None
        for p in self.polygons:
            if not p.in_operation_area:
                continue
            if p.is_clipper:
                clipper = p
            else:
                subject = p

        if subject is None or clipper is None:
            raise RuntimeError("Put a subject polygon and a clip polygon into the operation area")

        self.result_tree = boolean_operation(subject.tree, clipper.tree, operation)
        if self.result_tree is None:
            logger.info("%s produced an empty result", operation.name.lower())
        else:
            logger.info("%s produced %d contours", operation.name.lower(), len(self.result_tree))
        self.update()

    def clear_all(self):
        self.polygons = []
        self.current_rings = []
        self.current_ring_points = []
        self.result_tree = None
        self.update()
