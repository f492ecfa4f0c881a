import pytest

from polytree import PolygonType, PolyTree


def square(x0, y0, size):
    return [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]


@pytest.fixture
def framed_a():
    """20x20 solid with a 10x10 hole."""
    hole = PolyTree([(5, 5), (15, 5), (15, 15), (5, 15)], PolygonType.HOLE)
    return PolyTree([(0, 0), (20, 0), (20, 20), (0, 20)], PolygonType.SOLID, children=[hole])


@pytest.fixture
def framed_b():
    """framed_a shifted by (7, 7)."""
    hole = PolyTree([(12, 12), (22, 12), (22, 22), (12, 22)], PolygonType.HOLE)
    return PolyTree([(7, 7), (27, 7), (27, 27), (7, 27)], PolygonType.SOLID, children=[hole])


@pytest.fixture
def square_a():
    return PolyTree(square(0, 0, 10))


@pytest.fixture
def square_b():
    return PolyTree(square(5, 5, 10))


@pytest.fixture
def donut():
    """100x100 solid with a 60x60 hole in the middle."""
    hole = PolyTree(square(20, 20, 60), PolygonType.HOLE)
    return PolyTree(square(0, 0, 100), PolygonType.SOLID, children=[hole])
