"""
どこで: `engine.runtime` の結果コンテナ。
何を: ワーカからオーケストレータへ返す `EvaluationPacket`（スコアと候補 index）。
なぜ: 完了順に依存せず、受信側が index で並べ直して決定的に勝者を選べるようにするため。
"""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class EvaluationPacket:
    """ワーカ → オーケストレータへ渡す評価結果。"""

    step_id: int
    index: int
    score: float
    covered: int  # 被覆画素数（0 ならキャンバスは変化していない）
