from __future__ import annotations

import pickle

import numpy as np
import pytest

from engine.core.errors import DegeneratePolygonError, InvalidCoordinateError
from engine.core.polygon import Polygon, signed_area


def test_polygon_basic_properties() -> None:
    p = Polygon([(0, 0), (4, 0), (4, 3), (0, 3)], color=(1.0, 0.5, 0.25, 0.5))
    assert p.n_vertices == 4
    assert p.area == pytest.approx(12.0)
    assert p.bounds == (0.0, 0.0, 4.0, 3.0)
    assert p.alpha == 0.5
    assert p.vertices.dtype == np.float64
    assert not p.vertices.flags.writeable


def test_signed_area_orientation() -> None:
    ccw = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    assert signed_area(ccw) == pytest.approx(0.5)
    assert signed_area(ccw[::-1]) == pytest.approx(-0.5)


def test_degenerate_polygons_raise() -> None:
    with pytest.raises(DegeneratePolygonError):
        Polygon([(0, 0), (1, 1)])
    with pytest.raises(DegeneratePolygonError):
        Polygon([(0, 0), (1, 1), (2, 2)])  # 共線
    with pytest.raises(DegeneratePolygonError):
        Polygon([(3, 3), (3, 3), (3, 3)])


def test_non_finite_coordinates_raise() -> None:
    with pytest.raises(InvalidCoordinateError):
        Polygon([(0, 0), (float("nan"), 1), (2, 0)])
    with pytest.raises(InvalidCoordinateError):
        Polygon([(0, 0), (float("inf"), 1), (2, 0)])


def test_vertices_outside_canvas_are_allowed() -> None:
    p = Polygon([(-100, -100), (500, -50), (10, 900)])
    assert p.bounds[0] == -100.0


def test_from_flat_and_to_flat() -> None:
    p = Polygon.from_flat([0, 0, 8, 0, 8, 10], color="#336699")
    assert p.to_flat() == [0.0, 0.0, 8.0, 0.0, 8.0, 10.0]
    assert p.color[3] == 1.0
    with pytest.raises(ValueError):
        Polygon.from_flat([0, 0, 8, 0, 8])


def test_edges_close_the_ring() -> None:
    p = Polygon([(0, 0), (2, 0), (0, 2)])
    edges = list(p.edges())
    assert len(edges) == 3
    assert edges[-1] == ((0.0, 2.0), (0.0, 0.0))


def test_translate_and_with_color_are_pure() -> None:
    p = Polygon([(0, 0), (2, 0), (0, 2)], color=(0, 0, 0, 1))
    q = p.translate(1.5, -1.0)
    assert q.to_flat() == [1.5, -1.0, 3.5, -1.0, 1.5, 1.0]
    assert p.to_flat() == [0.0, 0.0, 2.0, 0.0, 0.0, 2.0]
    r = p.with_color((255, 0, 0))
    assert r.color == (1.0, 0.0, 0.0, 1.0)
    assert p.color == (0.0, 0.0, 0.0, 1.0)


def test_equality_hash_and_pickle() -> None:
    a = Polygon([(0, 0), (2, 0), (0, 2)], color=(0.1, 0.2, 0.3, 0.4))
    b = Polygon(np.array([[0, 0], [2, 0], [0, 2]]), color=(0.1, 0.2, 0.3, 0.4))
    assert a == b
    assert hash(a) == hash(b)
    c = pickle.loads(pickle.dumps(a))
    assert c == a
    assert not c.vertices.flags.writeable
