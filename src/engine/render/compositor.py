"""
どこで: `engine.render.compositor`。
何を: ポリゴンをラスタライズし、被覆画素だけに合成モードを適用してキャンバスへ書き込む。
なぜ: 被覆（raster）と合成（blend）を分離したまま、描画 1 回ぶんの手順を 1 箇所に集約するため。
"""

from __future__ import annotations

import numpy as np

from engine.core.image import ImageBuffer
from engine.core.polygon import Polygon
from engine.raster.scanline import FillRule, rasterize

from .blend import BlendMode, blend_pixels


def render_polygon(
    canvas: ImageBuffer,
    polygon: Polygon,
    mode: BlendMode | str | None = None,
    rule: FillRule | str | None = None,
) -> int:
    """`polygon` を `canvas` へインプレース合成し、被覆した画素数を返す。

    被覆が空（キャンバス外/退化）の場合はキャンバスを変更せず 0 を返す。
    """
    mask = rasterize(polygon, canvas.shape, rule)
    return composite_mask(canvas, mask, polygon.color, mode)


def composite_mask(
    canvas: ImageBuffer,
    mask: np.ndarray,
    color: tuple[float, float, float, float],
    mode: BlendMode | str | None = None,
) -> int:
    """bool マスク `(H, W)` の画素に単色を合成する。"""
    if mask.shape != (canvas.height, canvas.width):
        raise ValueError(f"mask shape {mask.shape} != {(canvas.height, canvas.width)}")
    covered = int(np.count_nonzero(mask))
    if covered == 0:
        return 0
    pixels = canvas.pixels
    pixels[mask] = blend_pixels(pixels[mask], color, mode)
    return covered


__all__ = ["render_polygon", "composite_mask"]
