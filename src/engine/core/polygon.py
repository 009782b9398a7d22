"""
多角形プリミティブ `Polygon`

データモデル（不変条件）:
- `vertices: float64 ndarray (N, 2)`: N >= 3。書き込み不可フラグを立てた配列として保持する。
- `color: (r, g, b, a)`: 各成分 0–1。`util.color.normalize_color` が受理する任意の指定から正規化する。
- 符号付き面積がゼロ（退化/全頂点共線）のものは生成時に `DegeneratePolygonError`。
- 非有限の座標、および有限でも面積が float64 で表現できないほど巨大な座標は `InvalidCoordinateError`。
- 頂点はキャンバス外にあってよい（クリップはラスタライズ時に行う）。

API 方針:
- 変換（`translate`/`with_color`）はすべて純関数で、新しい `Polygon` を返す。
- 合成モードはポリゴンの属性ではない（描画呼び出しの引数）。同じ候補を異なるモードで評価できる。

使用例:
    p = Polygon([(0, 0), (4, 0), (4, 4), (0, 4)], color=(1.0, 0.0, 0.0, 0.5))
    q = Polygon.from_flat([0, 0, 8, 0, 8, 10], color="#336699")
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import numpy as np

from common.settings import get as _get_settings
from common.types import RGBA, Vec2
from util.color import normalize_color

from .errors import DegeneratePolygonError, InvalidCoordinateError

DEFAULT_COLOR: RGBA = (0.0, 0.0, 0.0, 1.0)


def signed_area(vertices: np.ndarray) -> float:
    """靴紐公式による符号付き面積（反時計回りで正、y 下向き座標では時計回りに見える）。

    巨大座標での桁あふれを抑えるため、外接矩形の中心を原点に移してから積和を取る。
    それでも表現できない面積は `inf`/`nan` として返る（呼び出し側で検査する）。
    """
    if vertices.shape[0] < 3:
        return 0.0
    lo = vertices.min(axis=0)
    hi = vertices.max(axis=0)
    centred = vertices - (0.5 * lo + 0.5 * hi)
    x = centred[:, 0]
    y = centred[:, 1]
    with np.errstate(over="ignore", invalid="ignore"):
        return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def _normalize_vertices(vertices: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
    """`Polygon` 生成時の内部正規化ヘルパ。"""
    try:
        arr = np.array(vertices, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidCoordinateError(f"頂点列を数値配列に変換できません: {e}") from e
    if arr.ndim != 2 or arr.shape[1] != 2:
        if arr.size < 6:
            raise DegeneratePolygonError(f"頂点は 3 点以上必要です: shape={arr.shape}")
        raise ValueError(f"vertices は形状 (N, 2) の配列である必要があります: {arr.shape}")
    if arr.shape[0] < 3:
        raise DegeneratePolygonError(f"頂点は 3 点以上必要です: {arr.shape[0]} 点")
    if not np.all(np.isfinite(arr)):
        raise InvalidCoordinateError("頂点座標に NaN/inf が含まれています")
    arr = np.ascontiguousarray(arr)
    arr.setflags(write=False)
    return arr


class Polygon:
    """頂点列と色からなる合成単位。"""

    __slots__ = ("vertices", "color", "_area")

    vertices: np.ndarray
    color: RGBA

    def __init__(
        self,
        vertices: np.ndarray | Sequence[Sequence[float]],
        color: object = DEFAULT_COLOR,
    ) -> None:
        verts = _normalize_vertices(vertices)
        area = signed_area(verts)
        if not np.isfinite(area):
            raise InvalidCoordinateError("座標が大きすぎて面積を表現できません")
        if abs(area) <= _get_settings().AREA_EPS:
            raise DegeneratePolygonError("符号付き面積がゼロのポリゴンは描画できません")
        self.vertices = verts
        self.color = normalize_color(color)
        self._area = area

    # ── ファクトリ ───────────────────
    @classmethod
    def from_flat(cls, values: Iterable[float], color: object = DEFAULT_COLOR) -> "Polygon":
        """`[x0, y0, x1, y1, ...]` のフラット列から生成する。奇数長は `ValueError`。"""
        flat = np.asarray(list(values), dtype=np.float64)
        if flat.size % 2 != 0:
            raise ValueError(f"フラット座標列の長さは偶数である必要があります: {flat.size}")
        return cls(flat.reshape(-1, 2), color)

    # ── 参照 ───────────────────
    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def signed_area(self) -> float:
        return self._area

    @property
    def area(self) -> float:
        return abs(self._area)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """`(x_min, y_min, x_max, y_max)`。"""
        mins = self.vertices.min(axis=0)
        maxs = self.vertices.max(axis=0)
        return float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])

    @property
    def alpha(self) -> float:
        return self.color[3]

    def edges(self) -> Iterator[tuple[Vec2, Vec2]]:
        """閉路として辺 `(start, end)` を順に返す（最後の辺は末尾→先頭）。"""
        n = self.n_vertices
        for i in range(n):
            a = self.vertices[i]
            b = self.vertices[(i + 1) % n]
            yield (float(a[0]), float(a[1])), (float(b[0]), float(b[1]))

    def to_flat(self) -> list[float]:
        return [float(v) for v in self.vertices.reshape(-1)]

    # ── 純関数変換 ───────────────────
    def translate(self, dx: float, dy: float) -> "Polygon":
        return Polygon(self.vertices + np.array([dx, dy], dtype=np.float64), self.color)

    def with_color(self, color: object) -> "Polygon":
        return Polygon(self.vertices, color)

    # ── 比較/表示 ───────────────────
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Polygon):
            return NotImplemented
        return self.color == other.color and np.array_equal(self.vertices, other.vertices)

    def __hash__(self) -> int:
        return hash((self.vertices.tobytes(), self.color))

    def __repr__(self) -> str:
        r, g, b, a = self.color
        return f"Polygon(n={self.n_vertices}, color=({r:.3g}, {g:.3g}, {b:.3g}, {a:.3g}))"

    def __reduce__(self):
        # 書き込み不可フラグは pickle で失われるため、生成経路を通して復元する
        return (Polygon, (np.array(self.vertices), self.color))


__all__ = ["Polygon", "signed_area", "DEFAULT_COLOR"]
