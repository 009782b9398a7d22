"""
どこで: `engine.search.generators`。
何を: 候補ポリゴンの生成器。`(rng, shape) -> Polygon` の呼び出し可能オブジェクトとして扱う。
なぜ: 探索ループから候補の作り方を切り離し、乱数源（Engine の rng）だけで再現可能にするため。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, runtime_checkable

import numpy as np

from engine.core.errors import DegeneratePolygonError
from engine.core.image import ImageBuffer, ImageShape
from engine.core.polygon import Polygon

logger = logging.getLogger(__name__)


@runtime_checkable
class CandidateGenerator(Protocol):
    def __call__(self, rng: np.random.Generator, shape: ImageShape) -> Polygon: ...


class RandomPolygonGenerator:
    """一様乱数で中心と頂点を選ぶ基本の生成器。

    - 中心はキャンバス内で一様。
    - 各頂点は中心から `max_extent * (width, height)` 以内に散らす（キャンバス外にはみ出してよい）。
    - 色は `target` があれば中心画素の色、なければ一様乱数。アルファは `alpha_range` から一様。
    - 退化した頂点列を引いた場合は `max_attempts` 回まで引き直し、尽きたら `DegeneratePolygonError`。
    """

    def __init__(
        self,
        n_vertices: int = 3,
        max_extent: float = 0.5,
        alpha_range: tuple[float, float] = (0.1, 0.9),
        target: ImageBuffer | None = None,
        max_attempts: int = 16,
    ) -> None:
        if int(n_vertices) < 3:
            raise ValueError(f"n_vertices は 3 以上: {n_vertices}")
        if not (0.0 < float(max_extent)):
            raise ValueError(f"max_extent は正の値: {max_extent}")
        lo, hi = (float(v) for v in alpha_range)
        if not (0.0 <= lo <= hi <= 1.0):
            raise ValueError(f"alpha_range は 0 <= lo <= hi <= 1: {alpha_range}")
        if int(max_attempts) < 1:
            raise ValueError(f"max_attempts は 1 以上: {max_attempts}")
        self.n_vertices = int(n_vertices)
        self.max_extent = float(max_extent)
        self.alpha_range = (lo, hi)
        self.target = target
        self.max_attempts = int(max_attempts)

    @classmethod
    def from_config(
        cls, section: Mapping[str, Any], target: ImageBuffer | None = None
    ) -> "RandomPolygonGenerator":
        """`generator` 設定セクションから生成する（欠けたキーは既定値）。"""
        return cls(
            n_vertices=int(section.get("n_vertices", 3)),
            max_extent=float(section.get("max_extent", 0.5)),
            alpha_range=(
                float(section.get("alpha_min", 0.1)),
                float(section.get("alpha_max", 0.9)),
            ),
            target=target,
            max_attempts=int(section.get("max_attempts", 16)),
        )

    def _color_at(self, rng: np.random.Generator, x: float, y: float) -> tuple[float, ...]:
        alpha = float(rng.uniform(*self.alpha_range))
        if self.target is None:
            r, g, b = (float(v) for v in rng.random(3))
            return (r, g, b, alpha)
        tx = min(max(int(x), 0), self.target.width - 1)
        ty = min(max(int(y), 0), self.target.height - 1)
        px = self.target.get(tx, ty)
        if len(px) == 1:
            return (px[0], px[0], px[0], alpha)
        return (px[0], px[1], px[2], alpha)

    def __call__(self, rng: np.random.Generator, shape: ImageShape) -> Polygon:
        extent = np.array([shape.width, shape.height], dtype=np.float64) * self.max_extent
        for attempt in range(1, self.max_attempts + 1):
            cx = float(rng.uniform(0.0, shape.width))
            cy = float(rng.uniform(0.0, shape.height))
            offsets = rng.uniform(-1.0, 1.0, size=(self.n_vertices, 2)) * extent
            vertices = offsets + np.array([cx, cy], dtype=np.float64)
            color = self._color_at(rng, cx, cy)
            try:
                return Polygon(vertices, color)
            except DegeneratePolygonError:
                logger.debug("degenerate candidate drawn (attempt %d/%d)", attempt, self.max_attempts)
        raise DegeneratePolygonError(
            f"{self.max_attempts} 回の試行で非退化のポリゴンを生成できませんでした"
        )

    def __repr__(self) -> str:
        return (
            f"RandomPolygonGenerator(n_vertices={self.n_vertices}, max_extent={self.max_extent}, "
            f"alpha_range={self.alpha_range}, max_attempts={self.max_attempts})"
        )


__all__ = ["CandidateGenerator", "RandomPolygonGenerator"]
