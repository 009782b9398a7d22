"""
どこで: `engine.runtime` サブパッケージ。
何を: 候補評価のファンアウト（EvaluationPool）と、タスク/結果パケットの型。
なぜ: 評価（並列可能）と確定（単一スレッド）の責務を分離し、完了順に依存しない決定的な選択を保つため。
"""

from .packet import EvaluationPacket
from .task import EvaluationTask
from .worker import EvaluationError, EvaluationPool, score_candidate

__all__ = [
    "EvaluationPool",
    "EvaluationError",
    "EvaluationTask",
    "EvaluationPacket",
    "score_candidate",
]
