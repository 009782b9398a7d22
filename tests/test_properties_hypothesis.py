import numpy as np
import pytest

hypothesis = pytest.importorskip("hypothesis", reason="hypothesis is a dev optional dependency")
from hypothesis import given, settings, strategies as st  # type: ignore

from engine.core.image import ImageBuffer, ImageShape
from engine.core.polygon import Polygon
from engine.metrics.similarity import SimilarityMetric
from engine.raster.scanline import FillRule, rasterize
from engine.search.engine import Engine

unit = st.floats(0.0, 1.0)


@given(
    a=st.lists(unit, min_size=12, max_size=12),
    b=st.lists(unit, min_size=12, max_size=12),
)
def test_mse_identity_and_symmetry(a, b):
    shape = ImageShape(2, 2, 3)
    x = ImageBuffer(shape, a)
    y = ImageBuffer(shape, b)
    assert SimilarityMetric.MSE.compare(x, x) == 0.0
    assert SimilarityMetric.MSE.compare(x, y) == SimilarityMetric.MSE.compare(y, x)


@given(x=st.integers(0, 4), y=st.integers(0, 2), p=st.lists(unit, min_size=4, max_size=4))
def test_get_set_roundtrip(x, y, p):
    buf = ImageBuffer(ImageShape(5, 3, 4))
    buf.set(x, y, p)
    assert buf.get(x, y) == tuple(p)


@given(k=st.floats(0.01, 11.99))
def test_vertical_split_partitions(k):
    shape = ImageShape(12, 5, 1)
    left = rasterize(Polygon([(0, 0), (k, 0), (k, 5), (0, 5)]), shape)
    right = rasterize(Polygon([(k, 0), (12, 0), (12, 5), (k, 5)]), shape)
    assert not np.any(left & right)
    assert np.all(left | right)


@given(a=st.floats(0.01, 15.99), b=st.floats(0.01, 15.99), rule=st.sampled_from(list(FillRule)))
def test_slanted_chord_partitions(a, b, rule):
    shape = ImageShape(16, 9, 1)
    left = rasterize(Polygon([(0, 0), (a, 0), (b, 9), (0, 9)]), shape, rule)
    right = rasterize(Polygon([(a, 0), (16, 0), (16, 9), (b, 9)]), shape, rule)
    assert not np.any(left & right)
    assert np.all(left | right)


@settings(max_examples=30, deadline=None)
@given(
    pts=st.lists(
        st.tuples(st.floats(-4, 20), st.floats(-4, 20)), min_size=3, max_size=6
    ),
    color=st.tuples(unit, unit, unit, unit),
)
def test_step_outcome_invariants(pts, color):
    target = ImageBuffer(ImageShape(16, 16, 3), np.linspace(0.0, 1.0, 16 * 16 * 3))
    try:
        poly = Polygon(pts, color=color)
    except ValueError:
        return  # 退化
    engine = Engine(target)
    before = engine.current_canvas()
    old = engine.score
    result = engine.step(poly)
    if result.accepted:
        assert engine.score < old
        assert engine.undo() == old
        assert engine.current_canvas() == before
    else:
        assert engine.score == old
        assert engine.current_canvas() == before
