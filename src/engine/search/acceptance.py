"""
どこで: `engine.search.acceptance`。
何を: 候補を採用するかの判定ポリシー（差し替え可能なプロトコル）と既定の貪欲判定。
なぜ: 採用規則（貪欲/確率的など）を探索ループから切り離し、エンジン本体を変えずに試せるようにするため。
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from engine.metrics.similarity import SimilarityMetric


@runtime_checkable
class AcceptancePolicy(Protocol):
    """`(current, candidate, metric, rng) -> bool` の判定器。

    `current`/`candidate` はスコア（`metric.compare` の戻り値）。
    """

    def __call__(
        self,
        current: float,
        candidate: float,
        metric: SimilarityMetric,
        rng: np.random.Generator,
    ) -> bool: ...


class GreedyAcceptance:
    """メトリクスの向きで厳密に改善したときだけ採用する。"""

    def __call__(
        self,
        current: float,
        candidate: float,
        metric: SimilarityMetric,
        rng: np.random.Generator,
    ) -> bool:
        return metric.improves(candidate, current)

    def __repr__(self) -> str:
        return "GreedyAcceptance()"


__all__ = ["AcceptancePolicy", "GreedyAcceptance"]
