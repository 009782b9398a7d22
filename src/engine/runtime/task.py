"""
どこで: `engine.runtime` のタスク定義。
何を: ワーカへ渡す候補 1 件ぶんの `EvaluationTask`（候補ポリゴン・合成条件・画素スナップショット）。
なぜ: 実行キューの型を固定し、プロセス間/スレッド間での受け渡しを簡潔にするため。
"""

from dataclasses import dataclass

import numpy as np

from engine.core.polygon import Polygon


@dataclass(slots=True, frozen=True)
class EvaluationTask:
    """オーケストレータ → ワーカへ送る評価タスク。"""

    step_id: int
    index: int  # 候補の投入順（同点時のタイブレークに使用）
    polygon: Polygon
    mode: str  # BlendMode.value
    rule: str  # FillRule.value
    metric: str  # SimilarityMetric.value
    # 読み取り専用スナップショット。ワーカは current を複製したスクラッチへ描画する。
    current: np.ndarray
    target: np.ndarray
