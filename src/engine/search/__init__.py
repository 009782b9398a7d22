"""
どこで: `engine.search` サブパッケージ。
何を: 近似ループ（Engine/StepResult/EngineState）、採用判定、候補生成器。
なぜ: 探索の状態機械と、差し替え可能な方針（採用/生成）を 1 箇所から参照できるようにするため。
"""

from .acceptance import AcceptancePolicy, GreedyAcceptance
from .engine import Engine, EngineState, StepResult
from .generators import CandidateGenerator, RandomPolygonGenerator

__all__ = [
    "Engine",
    "EngineState",
    "StepResult",
    "AcceptancePolicy",
    "GreedyAcceptance",
    "CandidateGenerator",
    "RandomPolygonGenerator",
]
