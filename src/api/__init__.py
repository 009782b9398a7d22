"""
どこで: `api` 入口（高レベル公開 API）。
何を: 画素バッファ・ポリゴン・探索エンジン・合成モード/指標・ランナーを再輸出。
なぜ: 利用者（デモ/バインディング/スクリプト）が単一名前空間から近似の実行まで完結できるようにするため。

Usage:
    from api import Engine, ImageBuffer, Polygon, run_approximation

    target = ImageBuffer.from_array(arr)          # (H, W, C) uint8 / float
    with Engine(target, seed=0) as engine:
        result = engine.step()                     # 既定の乱数生成器で 1 候補
        result = engine.step(Polygon.from_flat([0, 0, 8, 0, 8, 8], color="#ff000080"))
        engine.undo()

    engine, polygons = run_approximation(target, steps=500, candidates_per_step=8)
"""

from engine.core.errors import (
    CanvasError,
    DegeneratePolygonError,
    EmptyHistoryError,
    InvalidCoordinateError,
    OutOfBoundsError,
    ShapeMismatchError,
)
from engine.core.image import Canvas, ImageBuffer, ImageShape
from engine.core.polygon import Polygon
from engine.metrics.similarity import SimilarityMetric
from engine.raster.scanline import FillRule, rasterize
from engine.render.blend import BlendMode
from engine.render.compositor import render_polygon
from engine.runtime.worker import EvaluationError, EvaluationPool
from engine.search.acceptance import AcceptancePolicy, GreedyAcceptance
from engine.search.engine import Engine, EngineState, StepResult
from engine.search.generators import RandomPolygonGenerator

from .runner import run_approximation

__all__ = [
    # メインAPI
    "Engine",
    "run_approximation",
    # 値型
    "ImageShape",
    "ImageBuffer",
    "Canvas",
    "Polygon",
    # 列挙（設定値から parse 可能）
    "BlendMode",
    "FillRule",
    "SimilarityMetric",
    "EngineState",
    "StepResult",
    # 方針/生成器
    "AcceptancePolicy",
    "GreedyAcceptance",
    "RandomPolygonGenerator",
    # 並列評価
    "EvaluationPool",
    "EvaluationError",
    # 低レベル描画
    "rasterize",
    "render_polygon",
    # エラー
    "CanvasError",
    "ShapeMismatchError",
    "OutOfBoundsError",
    "DegeneratePolygonError",
    "InvalidCoordinateError",
    "EmptyHistoryError",
]

# バージョン情報
__version__ = "2026.10"
