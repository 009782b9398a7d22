"""
どこで: `engine.metrics.similarity`。
何を: 同形状の 2 バッファから類似度スカラを返す `SimilarityMetric`（閉じた列挙）。
なぜ: 評価エンジンの契約（compare + 向き）を変えずに指標を差し替えられるようにするため。

指標ごとの向きとスケール:
- `MSE`  : 全画素・全チャンネルの二乗誤差の平均。0 以上、小さいほど良い。`MSE(x, x) = 0`、対称。
- `MAE`  : 絶対誤差の平均。0 以上、小さいほど良い。対称。
- `PSNR` : `10 * log10(1 / MSE)`（dB, ピーク値 1.0）。大きいほど良い。同一画像は `inf`。
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np

from engine.core.image import ImageBuffer


def mean_squared_error(a: np.ndarray, b: np.ndarray) -> float:
    """二乗誤差の平均（float64 で積算）。"""
    diff = a.astype(np.float64, copy=False) - b.astype(np.float64, copy=False)
    return float(np.mean(diff * diff))


def mean_absolute_error(a: np.ndarray, b: np.ndarray) -> float:
    diff = a.astype(np.float64, copy=False) - b.astype(np.float64, copy=False)
    return float(np.mean(np.abs(diff)))


def peak_signal_noise_ratio(a: np.ndarray, b: np.ndarray) -> float:
    mse = mean_squared_error(a, b)
    if mse <= 0.0:
        return math.inf
    return 10.0 * math.log10(1.0 / mse)


class SimilarityMetric(str, Enum):
    """類似度指標（列挙可能な閉じた集合）。"""

    MSE = "mse"
    MAE = "mae"
    PSNR = "psnr"

    @classmethod
    def parse(cls, value: "SimilarityMetric | str | None") -> "SimilarityMetric":
        """設定値（大文字小文字不問）から列挙子へ。None は既定の MSE。"""
        if value is None:
            return cls.MSE
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"unknown similarity metric: {value!r}; allowed={allowed}")

    @property
    def higher_is_better(self) -> bool:
        return self is SimilarityMetric.PSNR

    def compare(self, a: ImageBuffer, b: ImageBuffer) -> float:
        """`a` と `b` のスコアを返す。形状が異なれば `ShapeMismatchError`。"""
        a.require_same_shape(b)
        return self.compare_arrays(a.pixels, b.pixels)

    def compare_arrays(self, a: np.ndarray, b: np.ndarray) -> float:
        """検証済みの同形状配列に対するスコア（ワーカ向けの低レベル API）。"""
        if self is SimilarityMetric.MSE:
            return mean_squared_error(a, b)
        if self is SimilarityMetric.MAE:
            return mean_absolute_error(a, b)
        return peak_signal_noise_ratio(a, b)

    def improves(self, new: float, old: float) -> bool:
        """`new` が `old` より厳密に良ければ True（向きは指標に従う）。"""
        if self.higher_is_better:
            return new > old
        return new < old

    def sort_key(self, score: float) -> float:
        """昇順ソートで良い順になるキー。"""
        return -score if self.higher_is_better else score


__all__ = [
    "SimilarityMetric",
    "mean_squared_error",
    "mean_absolute_error",
    "peak_signal_noise_ratio",
]
