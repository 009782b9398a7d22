"""共通フィクスチャ。

- 乱数シード固定
- 小さなバッファ/ポリゴン試料
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from common import settings
from engine.core.image import Canvas, ImageBuffer, ImageShape
from engine.core.polygon import Polygon


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture()
def shape_gray4() -> ImageShape:
    return ImageShape(4, 4, 1)


@pytest.fixture()
def shape_rgba() -> ImageShape:
    return ImageShape(16, 12, 4)


@pytest.fixture()
def white_rgba(shape_rgba: ImageShape) -> Canvas:
    return Canvas.white(shape_rgba)


@pytest.fixture()
def gradient_rgb() -> ImageBuffer:
    h, w = 12, 16
    ys, xs = np.mgrid[0:h, 0:w]
    arr = np.stack([xs / (w - 1), ys / (h - 1), np.full((h, w), 0.25)], axis=2)
    return ImageBuffer.from_array(arr)


@pytest.fixture()
def red_triangle() -> Polygon:
    return Polygon([(2.0, 2.0), (12.0, 3.0), (5.0, 10.0)], color=(1.0, 0.0, 0.0, 0.75))


@pytest.fixture()
def env_no_numba(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("PCV_USE_NUMBA", "0")
    settings.reload_from_env()
    yield
    monkeypatch.delenv("PCV_USE_NUMBA", raising=False)
    settings.reload_from_env()
