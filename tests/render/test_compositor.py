from __future__ import annotations

import numpy as np
import pytest

from engine.core.image import Canvas, ImageShape
from engine.core.polygon import Polygon
from engine.raster.scanline import rasterize
from engine.render.blend import BlendMode
from engine.render.compositor import composite_mask, render_polygon


def test_render_returns_covered_count_and_touches_only_mask(white_rgba, red_triangle) -> None:
    before = white_rgba.clone()
    covered = render_polygon(white_rgba, red_triangle)
    mask = rasterize(red_triangle, white_rgba.shape)
    assert covered == int(mask.sum()) > 0
    assert np.array_equal(white_rgba.pixels[~mask], before.pixels[~mask])
    r, g, b, a = white_rgba.pixels[mask][0]
    assert (r, g, b, a) == pytest.approx((1.0, 0.25, 0.25, 1.0))


def test_render_outside_canvas_is_noop() -> None:
    canvas = Canvas.white(ImageShape(8, 8, 3))
    before = canvas.clone()
    assert render_polygon(canvas, Polygon([(20, 20), (30, 20), (30, 30)])) == 0
    assert canvas == before


def test_multiply_layers_red_then_green_gives_black() -> None:
    canvas = Canvas.white(ImageShape(30, 20, 4))
    left = Polygon.from_flat([0, 0, 20, 0, 20, 10, 0, 10], color=(1.0, 0.0, 0.0, 1.0))
    right = Polygon.from_flat([10, 0, 30, 0, 30, 10, 0, 10], color=(0.0, 1.0, 0.0, 1.0))
    canvas.draw(left, BlendMode.MULTIPLY)
    assert canvas.get(15, 5) == (1.0, 0.0, 0.0, 1.0)
    canvas.draw(right, BlendMode.MULTIPLY)
    assert canvas.get(15, 5) == (0.0, 0.0, 0.0, 1.0)
    # 右ポリゴンだけが覆う画素
    assert canvas.get(25, 5) == (0.0, 1.0, 0.0, 1.0)


def test_composite_mask_rejects_wrong_mask_shape() -> None:
    canvas = Canvas.white(ImageShape(4, 3, 1))
    with pytest.raises(ValueError):
        composite_mask(canvas, np.zeros((4, 3), dtype=bool), (0.0, 0.0, 0.0, 1.0))
