"""
画素バッファ型（ImageShape / ImageBuffer / Canvas）

本モジュールは、ラスタライズ・合成・類似度評価のすべてが共有する唯一の画素表現を提供する。

データモデル（不変条件）:
- `ImageShape(width, height, channels)`: 幅/高さは正の整数、チャンネル数は 1/3/4 のいずれか。
  生成後は不変（frozen）。
- `ImageBuffer.pixels: float64 ndarray (H, W, C)`: C 順（行優先・チャンネルインターリーブ）の
  連続メモリ。要素数は常に `width * height * channels` と一致する。
- すべてのサンプルは [0, 1] に収まる。書き込み経路（コンストラクタ/`set`/`fill`/`from_array`）は
  必ずクランプし、NaN/inf は `ValueError` で拒否する（`np.clip` は NaN を素通しするため）。
- 形状を変える操作は存在しない。別形状が必要なら新しいバッファを作る。

直感図（2x2, RGB のフラット配置）:

    # data (N = 2*2*3 = 12)
    #   [r00 g00 b00 | r10 g10 b10 | r01 g01 b01 | r11 g11 b11]
    #    └ (x=0,y=0) ┘ └ (x=1,y=0) ┘ └ (x=0,y=1) ┘ └ (x=1,y=1) ┘
    # pixels[y, x, c] == data[(y * width + x) * channels + c]

補足:
- `clone()` は独立した深いコピーを返す（評価エンジンのスクラッチ用）。
- `Canvas` は描画先として使う `ImageBuffer`。`Canvas.white(shape)` で全チャンネル 1.0 に初期化する。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

import numpy as np

from common.types import Pixel

from .errors import OutOfBoundsError, ShapeMismatchError

if TYPE_CHECKING:  # pragma: no cover
    from engine.raster.scanline import FillRule
    from engine.render.blend import BlendMode

    from .polygon import Polygon

SAMPLE_DTYPE = np.float64
VALID_CHANNELS = (1, 3, 4)


def _clamped(values: np.ndarray, what: str) -> np.ndarray:
    """非有限値を拒否したうえで [0, 1] にクランプした配列を返す。"""
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{what} に非有限値（NaN/inf）が含まれています")
    return np.clip(values, 0.0, 1.0)


@dataclass(slots=True, frozen=True)
class ImageShape:
    """バッファの幾何（幅・高さ・チャンネル数）。"""

    width: int
    height: int
    channels: int = 4

    def __post_init__(self) -> None:
        for name in ("width", "height", "channels"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} は整数である必要があります: {value!r}")
            object.__setattr__(self, name, int(value))
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"width/height は正である必要があります: {self.width}x{self.height}")
        if self.channels not in VALID_CHANNELS:
            raise ValueError(f"channels は {VALID_CHANNELS} のいずれか: {self.channels}")

    @property
    def size(self) -> int:
        """総サンプル数（width * height * channels）。"""
        return self.width * self.height * self.channels

    @property
    def n_pixels(self) -> int:
        return self.width * self.height

    @property
    def array_shape(self) -> tuple[int, int, int]:
        """numpy 配列としての形状 `(H, W, C)`。"""
        return (self.height, self.width, self.channels)


class ImageBuffer:
    """固定形状のフラットな画素ストア。

    フィールド:
    - `shape`: `ImageShape`（不変）。
    - `pixels`: `(H, W, C)` float64 配列（C 連続）。`data` は同じメモリのフラットビュー。

    設計意図:
    - 画素の読み書きは境界検査付きの `get/set` を経由し、値は常に [0,1] に保つ。
    - 一括処理（ラスタライズ結果の合成や類似度計算）は `pixels` を直接扱う。
    """

    __slots__ = ("shape", "_pixels")

    shape: ImageShape
    _pixels: np.ndarray

    def __init__(self, shape: ImageShape, data: np.ndarray | Sequence[float] | None = None) -> None:
        if not isinstance(shape, ImageShape):
            raise TypeError(f"shape は ImageShape である必要があります: {type(shape)!r}")
        self.shape = shape
        if data is None:
            self._pixels = np.zeros(shape.array_shape, dtype=SAMPLE_DTYPE)
            return
        arr = np.asarray(data, dtype=SAMPLE_DTYPE)
        if arr.size != shape.size:
            raise ShapeMismatchError(
                shape.size, arr.size, f"buffer length {arr.size} != {shape.size} for {shape}"
            )
        arr = _clamped(arr.reshape(shape.array_shape), "buffer data")
        self._pixels = np.ascontiguousarray(arr, dtype=SAMPLE_DTYPE)

    # ── ファクトリ ───────────────────
    @classmethod
    def from_array(cls, array: np.ndarray) -> "ImageBuffer":
        """numpy 配列から生成する。

        - `(H, W)` は 1 チャンネル、`(H, W, C)` は C チャンネルとして扱う。
        - 整数 dtype（uint8 等）は 0–255 とみなして 0–1 へスケールする。
        - 浮動小数はそのまま [0,1] へクランプする。NaN/inf を含めば `ValueError`。
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = arr[:, :, None]
        if arr.ndim != 3:
            raise ValueError(f"配列は (H, W) または (H, W, C) である必要があります: {arr.shape}")
        h, w, c = arr.shape
        shape = ImageShape(int(w), int(h), int(c))
        if np.issubdtype(arr.dtype, np.integer):
            arr = arr.astype(np.float64) / 255.0
        return cls(shape, arr)

    @classmethod
    def filled(cls, shape: ImageShape, value: float = 1.0) -> "ImageBuffer":
        buf = cls(shape)
        buf.fill(value)
        return buf

    # ── アクセサ ───────────────────
    @property
    def pixels(self) -> np.ndarray:
        """`(H, W, C)` の内部配列（コピーなし）。"""
        return self._pixels

    @property
    def data(self) -> np.ndarray:
        """行優先・チャンネルインターリーブのフラットビュー（コピーなし）。"""
        return self._pixels.reshape(-1)

    @property
    def width(self) -> int:
        return self.shape.width

    @property
    def height(self) -> int:
        return self.shape.height

    @property
    def channels(self) -> int:
        return self.shape.channels

    def as_array(self, copy: bool = True) -> np.ndarray:
        """`(H, W, C)` 配列を返す。`copy=False` は内部配列そのもの。"""
        return self._pixels.copy() if copy else self._pixels

    def _check_bounds(self, x: int, y: int) -> tuple[int, int]:
        # 0 方向への切り捨てだと -0.5 が 0 列に化けるため floor で整数化する
        xi, yi = math.floor(x), math.floor(y)
        if xi < 0 or yi < 0 or xi >= self.shape.width or yi >= self.shape.height:
            raise OutOfBoundsError(xi, yi, self.shape.width, self.shape.height)
        return xi, yi

    def get(self, x: int, y: int) -> Pixel:
        """画素 (x, y) のサンプル列を返す。範囲外は `OutOfBoundsError`。"""
        xi, yi = self._check_bounds(x, y)
        return tuple(float(v) for v in self._pixels[yi, xi])

    def set(self, x: int, y: int, pixel: float | Sequence[float]) -> None:
        """画素 (x, y) を書き込む（各値は [0,1] にクランプ）。

        1 チャンネルではスカラも受理する。長さがチャンネル数と異なれば `ValueError`。
        """
        xi, yi = self._check_bounds(x, y)
        values = np.atleast_1d(np.asarray(pixel, dtype=np.float64))
        if values.ndim != 1 or values.shape[0] != self.shape.channels:
            raise ValueError(
                f"pixel は長さ {self.shape.channels} である必要があります: {np.shape(pixel)}"
            )
        self._pixels[yi, xi] = _clamped(values, f"pixel {pixel!r}")

    def fill(self, value: float | Sequence[float]) -> None:
        """全画素を同じ値で埋める（スカラは全チャンネル共通）。NaN/inf は `ValueError`。"""
        values = np.asarray(value, dtype=np.float64)
        if values.ndim > 1 or (values.ndim == 1 and values.shape[0] != self.shape.channels):
            raise ValueError(f"fill 値の形状が不正です: {values.shape}")
        self._pixels[...] = _clamped(values, "fill 値")

    def fill_white(self) -> None:
        """全チャンネルを最大値 1.0 に初期化する。"""
        self._pixels.fill(1.0)

    def clone(self) -> "ImageBuffer":
        """独立した深いコピーを返す（型は保持）。"""
        out = object.__new__(type(self))
        out.shape = self.shape
        out._pixels = self._pixels.copy()
        return out

    def require_same_shape(self, other: "ImageBuffer") -> None:
        """`other` と形状が異なれば `ShapeMismatchError`。"""
        if self.shape != other.shape:
            raise ShapeMismatchError(self.shape, other.shape)

    # ── 比較/表示 ───────────────────
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self._pixels, other._pixels)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        s = self.shape
        return f"{type(self).__name__}({s.width}x{s.height}x{s.channels})"


class Canvas(ImageBuffer):
    """描画先となる可変バッファ。"""

    __slots__ = ()

    @classmethod
    def white(cls, shape: ImageShape) -> "Canvas":
        """全チャンネル 1.0 のキャンバスを生成する。"""
        canvas = cls(shape)
        canvas.fill_white()
        return canvas

    @classmethod
    def from_buffer(cls, buffer: ImageBuffer) -> "Canvas":
        """任意の `ImageBuffer` の内容をコピーしたキャンバスを返す。"""
        return cls(buffer.shape, buffer.pixels)

    def draw(
        self,
        polygon: "Polygon",
        mode: "BlendMode | str | None" = None,
        rule: "FillRule | str | None" = None,
    ) -> int:
        """ポリゴンを自身へ合成し、被覆した画素数を返す（`engine.render.compositor` へ委譲）。"""
        from engine.render.compositor import render_polygon

        return render_polygon(self, polygon, mode=mode, rule=rule)


__all__ = ["ImageShape", "ImageBuffer", "Canvas", "SAMPLE_DTYPE"]
