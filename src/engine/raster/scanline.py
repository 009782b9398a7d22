from __future__ import annotations

"""
ポリゴンの走査線塗り（被覆マスク生成）

多角形 + キャンバス形状から「内部に含まれる画素」の集合を bool マスク `(H, W)` として求める。
隣接する 2 枚のポリゴンが辺を共有するとき、その辺上に中心を持つ画素がどちらか一方だけに
属することを保証する（重複塗りも隙間も生じない）。

境界規則（開発者向け）
1) 標本点
   - 画素 (c, r) は中心 (c + 0.5, r + 0.5) で内外判定する。
2) 辺の有効範囲（縦方向・半開区間）
   - 辺は `y_lo <= y_center < y_hi` の走査線でのみ交差を持つ。水平辺は無視する。
   - 頂点を共有する 2 辺のうち片方だけが交差を生むので、頂点で交点が二重計上されない。
3) 交点の x 座標
   - 常に「下端点（y が小さい側）」から計算する。共有辺を逆向きに持つ隣接ポリゴンでも
     ビット単位で同一の交点になり、境界画素の割り当てがぶれない。
4) スパン（横方向・半開区間）
   - ソートした交点列を左から走査し、巻き数が「内部」の区間 `[x_i, x_{i+1})` を塗る。
   - 画素列は `x_i <= c + 0.5 < x_{i+1}` を満たす c、すなわち
     `ceil(x_i - 0.5) <= c < ceil(x_{i+1} - 0.5)`。
5) 巻き数規則
   - 既定は偶奇（EVEN_ODD）。非ゼロ（NON_ZERO）は辺の向き（+1/-1）を積算する。
6) クリップ
   - 行は `[0, height)`、列は `[0, width)` に切り詰める。キャンバス外のポリゴンは空マスク（例外なし）。

実装メモ
- 内側ループは Numba（`@njit(cache=True)`）。`PCV_USE_NUMBA=0` のときは同じ関数の
  `py_func`（純 Python）で実行するため、結果は同一。
- 退化（3 点未満/面積ゼロ）の頂点列は空マスクを返す。非有限座標と面積が桁あふれする座標は
  `InvalidCoordinateError`。
- 辺の差分が inf に桁あふれする巨大座標は半分に縮めて内分し直す。交点は [-1, width + 1] に
  クランプしてから格納する（整数変換の桁あふれ防止）。
"""

import math
from enum import Enum

import numpy as np
from numba import njit  # type: ignore[attr-defined]

from common.settings import get as _get_settings
from engine.core.errors import InvalidCoordinateError
from engine.core.image import ImageShape
from engine.core.polygon import Polygon, signed_area


class FillRule(str, Enum):
    """内部判定の巻き数規則。"""

    EVEN_ODD = "even_odd"
    NON_ZERO = "non_zero"

    @classmethod
    def parse(cls, value: "FillRule | str | None") -> "FillRule":
        """設定値（大文字小文字/ハイフン不問）から列挙子へ。None は既定の EVEN_ODD。"""
        if value is None:
            return cls.EVEN_ODD
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if member.value == key or member.name.lower() == key:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"unknown fill rule: {value!r}; allowed={allowed}")


def rasterize(
    polygon: Polygon, shape: ImageShape, rule: FillRule | str | None = None
) -> np.ndarray:
    """ポリゴンの被覆マスク `(H, W) bool` を返す。"""
    return coverage_mask(polygon.vertices, shape, rule)


def coverage_mask(
    vertices: np.ndarray, shape: ImageShape, rule: FillRule | str | None = None
) -> np.ndarray:
    """頂点配列 `(N, 2)` から被覆マスクを求める（生の頂点列向けの低レベル API）。

    Parameters
    ----------
    vertices : np.ndarray
        `(N, 2)` の頂点列。閉路として扱う（末尾→先頭の辺を暗黙に含む）。
    shape : ImageShape
        出力マスクの幅/高さ（チャンネル数は使わない）。
    rule : FillRule | str | None, default EVEN_ODD
        巻き数規則。

    Returns
    -------
    np.ndarray
        `(height, width)` の bool 配列。退化/キャンバス外は全 False。
    """
    fill_rule = FillRule.parse(rule)
    mask = np.zeros((shape.height, shape.width), dtype=np.bool_)

    verts = np.asarray(vertices, dtype=np.float64)
    if verts.ndim != 2 or verts.shape[1] != 2 or verts.shape[0] < 3:
        return mask
    if not np.all(np.isfinite(verts)):
        raise InvalidCoordinateError("頂点座標に NaN/inf が含まれています")
    area = signed_area(verts)
    if not math.isfinite(area):
        raise InvalidCoordinateError("座標が大きすぎて面積を表現できません")
    if abs(area) <= _get_settings().AREA_EPS:
        return mask

    # 完全にキャンバス外なら走査しない
    x_min, y_min = verts.min(axis=0)
    x_max, y_max = verts.max(axis=0)
    if x_max <= 0.0 or y_max <= 0.0 or x_min >= shape.width or y_min >= shape.height:
        return mask

    xs = np.ascontiguousarray(verts[:, 0])
    ys = np.ascontiguousarray(verts[:, 1])
    kernel = fill_mask_njit if _get_settings().USE_NUMBA else fill_mask_njit.py_func
    with np.errstate(over="ignore", invalid="ignore"):
        kernel(xs, ys, fill_rule is FillRule.NON_ZERO, mask)
    return mask


def coverage_pixels(
    polygon: Polygon, shape: ImageShape, rule: FillRule | str | None = None
) -> set[tuple[int, int]]:
    """被覆画素の集合 `{(x, y), ...}` を返す（テスト/デバッグ向け）。"""
    rows, cols = np.nonzero(rasterize(polygon, shape, rule))
    return {(int(c), int(r)) for r, c in zip(rows, cols)}


# 高速化のための Numba コンパイル関数
@njit(cache=True)
def fill_mask_njit(xs: np.ndarray, ys: np.ndarray, nonzero: bool, mask: np.ndarray) -> None:
    """走査線ごとに交点を求め、内部スパンの画素を `mask` に立てる（Numba最適化版）。"""
    height = mask.shape[0]
    width = mask.shape[1]
    n = xs.shape[0]

    y_lo_all = ys[0]
    y_hi_all = ys[0]
    for i in range(1, n):
        if ys[i] < y_lo_all:
            y_lo_all = ys[i]
        if ys[i] > y_hi_all:
            y_hi_all = ys[i]

    # 中心 r + 0.5 が [y_lo_all, y_hi_all) に入る行だけを走査
    # 巨大な座標で整数変換が溢れないよう先に浮動小数のままクランプする
    y_lo_all = max(y_lo_all, -1.0)
    y_hi_all = min(y_hi_all, height + 1.0)
    row_start = max(0, int(math.ceil(y_lo_all - 0.5)))
    row_end = min(height, int(math.ceil(y_hi_all - 0.5)))

    crossings = np.empty(n, dtype=np.float64)
    dirs = np.empty(n, dtype=np.int64)

    for row in range(row_start, row_end):
        yc = row + 0.5
        count = 0
        for i in range(n):
            j = (i + 1) % n
            y0 = ys[i]
            y1 = ys[j]
            if y0 == y1:
                continue
            if y0 < y1:
                x_lo, y_lo, x_hi, y_hi, d = xs[i], y0, xs[j], y1, 1
            else:
                x_lo, y_lo, x_hi, y_hi, d = xs[j], y1, xs[i], y0, -1
            if y_lo <= yc < y_hi:
                xc = x_lo + (yc - y_lo) * (x_hi - x_lo) / (y_hi - y_lo)
                if not math.isfinite(xc):
                    # 差分が桁あふれする巨大座標: 半分にしてから内分する
                    half_dy = 0.5 * y_hi - 0.5 * y_lo
                    t = (0.5 * (yc - y_lo)) / half_dy if half_dy > 0.0 else 0.0
                    xc = x_lo * (1.0 - t) + x_hi * t
                    if not math.isfinite(xc):
                        xc = x_lo
                # 単調なクランプなので交点の順序は保たれる
                crossings[count] = min(max(xc, -1.0), width + 1.0)
                dirs[count] = d
                count += 1

        if count < 2:
            continue

        order = np.argsort(crossings[:count])
        winding = 0
        for k in range(count - 1):
            idx = order[k]
            if nonzero:
                winding += dirs[idx]
                inside = winding != 0
            else:
                winding += 1
                inside = (winding % 2) == 1
            if not inside:
                continue
            col_start = max(0, int(math.ceil(crossings[idx] - 0.5)))
            col_end = min(width, int(math.ceil(crossings[order[k + 1]] - 0.5)))
            for col in range(col_start, col_end):
                mask[row, col] = True


__all__ = ["FillRule", "rasterize", "coverage_mask", "coverage_pixels", "fill_mask_njit"]
