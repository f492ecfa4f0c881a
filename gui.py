import logging
import sys

from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QPushButton, QListWidget, QListWidgetItem,
    QHBoxLayout, QVBoxLayout, QLabel, QMessageBox, QFrame, QComboBox
)
from PyQt5.QtCore import Qt

from canvas import CanvasWidget
from errors import PolyTreeError
from weiler_atherton import BooleanOperation


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("PolyTree Boolean Operations")
        self.resize(1200, 800)

        main_widget = QWidget()
        self.setCentralWidget(main_widget)

        self.btn_close_ring = QPushButton("Close ring")
        self.btn_build_done = QPushButton("Build polygon")
        self.combo_operation = QComboBox()
        for op in BooleanOperation:
            self.combo_operation.addItem(op.name.capitalize(), op)
        self.btn_run = QPushButton("Run")
        self.btn_clear = QPushButton("Clear")

        top_layout = QHBoxLayout()
        top_layout.addWidget(self.btn_close_ring)
        top_layout.addWidget(self.btn_build_done)
        top_layout.addWidget(self.combo_operation)
        top_layout.addWidget(self.btn_run)
        top_layout.addWidget(self.btn_clear)
        top_layout.addStretch()

        main_h_layout = QHBoxLayout()

        self.canvas = CanvasWidget()

        right_widget = QWidget()
        right_layout = QVBoxLayout()

        # operation area
        operation_frame = QFrame()
        operation_frame.setFrameStyle(QFrame.Box)
        operation_layout = QVBoxLayout()
        operation_layout.addWidget(QLabel("Operation area (subject and clip polygon)"))
        self.operation_list = QListWidget()
        operation_layout.addWidget(self.operation_list)
        operation_frame.setLayout(operation_layout)

        # drawing area
        drawing_frame = QFrame()
        drawing_frame.setFrameStyle(QFrame.Box)
        drawing_layout = QVBoxLayout()
        drawing_layout.addWidget(QLabel("Drawing area (double click to move)"))
        self.drawing_list = QListWidget()
        drawing_layout.addWidget(self.drawing_list)
        drawing_frame.setLayout(drawing_layout)

        right_layout.addWidget(operation_frame)
        right_layout.addWidget(drawing_frame)
        right_widget.setLayout(right_layout)
        right_widget.setMaximumWidth(300)

        main_h_layout.addWidget(self.canvas, 3)
        main_h_layout.addWidget(right_widget, 1)

        main_layout = QVBoxLayout()
        main_layout.addLayout(top_layout)
        main_layout.addLayout(main_h_layout, 1)
        main_widget.setLayout(main_layout)

        self.btn_close_ring.clicked.connect(self.on_close_ring)
        self.btn_build_done.clicked.connect(self.on_build_done)
        self.btn_run.clicked.connect(self.on_run)
        self.btn_clear.clicked.connect(self.on_clear)

        self.operation_list.itemDoubleClicked.connect(
            self.on_operation_item_double_clicked)
        self.drawing_list.itemDoubleClicked.connect(
            self.on_drawing_item_double_clicked)

        self.canvas.polygon_added.connect(self.refresh_poly_lists)
        self.canvas.polygons_changed.connect(self.refresh_poly_lists)

        self.refresh_poly_lists()

    def on_close_ring(self):
        if not self.canvas.close_current_ring():
            QMessageBox.information(self, "Notice", "There is no ring with at least three points to close.")

    def on_build_done(self):
        try:
            ok = self.canvas.finish_building_polygon()
        except PolyTreeError as e:
            self.canvas.current_rings = []
            self.canvas.update()
            QMessageBox.critical(self, "Invalid polygon", str(e))
            return
        if not ok:
            QMessageBox.information(self, "Notice", "Draw and close at least one ring first.")
        else:
            self.refresh_poly_lists()

    def on_run(self):
        operation = self.combo_operation.currentData()
        try:
            self.canvas.perform_operation_and_show(operation)
        except (RuntimeError, PolyTreeError) as e:
            QMessageBox.critical(self, "Operation failed", str(e))

    def on_clear(self):
        self.canvas.clear_all()
        self.refresh_poly_lists()

    def refresh_poly_lists(self):
        self.operation_list.clear()
        self.drawing_list.clear()

        for idx, poly in enumerate(self.canvas.polygons):
            name = f"Polygon {idx + 1}"
            if poly.in_operation_area:
                name += " (clip)" if poly.is_clipper else " (subject)"
            item = QListWidgetItem(name)
            item.setData(Qt.UserRole, idx)
            if poly.in_operation_area:
                self.operation_list.addItem(item)
            else:
                self.drawing_list.addItem(item)

    def on_operation_item_double_clicked(self, item):
        self.move_to_drawing_area(item.data(Qt.UserRole))

    def on_drawing_item_double_clicked(self, item):
        self.move_to_operation_area(item.data(Qt.UserRole))

    def move_to_operation_area(self, idx):
        """The first polygon placed is the subject, the second the clipper."""
        poly = self.canvas.polygons[idx]

        operation_count = sum(1 for p in self.canvas.polygons if p.in_operation_area)
        if operation_count >= 2:
            QMessageBox.information(self, "Notice", "The operation area holds at most two polygons.")
            return

        poly.in_operation_area = True
        if operation_count == 0:
            poly.is_clipper = False
        else:
            poly.is_clipper = True
            for other_idx, other in enumerate(self.canvas.polygons):
                if other_idx != idx and other.in_operation_area:
                    other.is_clipper = False
                    break

        self.canvas.update()
        self.refresh_poly_lists()

    def move_to_drawing_area(self, idx):
        poly = self.canvas.polygons[idx]
        poly.in_operation_area = False
        poly.is_clipper = False

        self.canvas.update()
        self.refresh_poly_lists()


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
