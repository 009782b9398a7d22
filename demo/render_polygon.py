"""
どこで: demo/render_polygon.py（デモ用スクリプト）
何を: 50px 四方の正方形を 3 行 x 4 列に敷き詰め、行/列ごとに色を変えて PNG に保存する。
なぜ: 辺を共有するポリゴン同士が重複も隙間もなく塗られることを目視で確認するため。

起動: `python demo/render_polygon.py [out.png]`

注意:
- PNG 保存は任意依存の imageio を使う（`pip install -e .[io]`）。
"""

from __future__ import annotations

import sys
from pathlib import Path

# src/ を import パスへ追加（簡易ブート）
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from api import BlendMode, Canvas, FillRule, ImageShape, Polygon  # type: ignore  # after sys.path tweak
from common.logging import setup_default_logging
from engine.io.image_io import save_image

BLOCK = 50
ROWS = 3
COLS = 4


def build_canvas() -> Canvas:
    canvas = Canvas.white(ImageShape(COLS * BLOCK, ROWS * BLOCK, 4))
    for row in range(ROWS):
        for col in range(COLS):
            x0, y0 = col * BLOCK, row * BLOCK
            square = Polygon(
                [(x0, y0), (x0 + BLOCK, y0), (x0 + BLOCK, y0 + BLOCK), (x0, y0 + BLOCK)],
                color=(0.2 + row * 0.35, 0.9 - col * 0.25, 0.7, 1.0),
            )
            canvas.draw(square, BlendMode.ALPHA, FillRule.NON_ZERO)
    return canvas


if __name__ == "__main__":
    setup_default_logging()
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    path = save_image(build_canvas(), out)
    print(f"saved: {path}")
