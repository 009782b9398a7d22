"""
どこで: `engine.search.engine`。
何を: 近似ループの状態機械 `Engine`。候補の提案 → ラスタライズ → 合成 → スコア → 採用/棄却を 1 ステップとし、
      採用時は直前の (current, score) を履歴に積んで `undo()` で戻せるようにする。
なぜ: キャンバスの確定（current の差し替え）を単一スレッドのこのクラスだけに閉じ込め、
      候補評価（並列可能）とは分離するため。

状態遷移:
    IDLE → PROPOSING → EVALUATING → {ACCEPTED, REJECTED} → IDLE

不変条件:
- 棄却されたステップは `current` と `score` をビット単位で変更しない（評価はクローン上で行う）。
- `current` と `target` は常に同じ `ImageShape`。
- `step_many` の勝者はスコア最良、同点は投入順の最小 index。完了順には依存しない。
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence, Union

import numpy as np

from engine.core.errors import EmptyHistoryError, ShapeMismatchError
from engine.core.image import Canvas, ImageBuffer, ImageShape
from engine.core.polygon import Polygon
from engine.metrics.similarity import SimilarityMetric
from engine.raster.scanline import FillRule
from engine.render.blend import BlendMode
from engine.render.compositor import render_polygon
from engine.runtime.worker import EvaluationPool

from .acceptance import AcceptancePolicy, GreedyAcceptance
from .generators import RandomPolygonGenerator

logger = logging.getLogger(__name__)

GeneratorFn = Callable[[np.random.Generator, ImageShape], Polygon]
Candidate = Union[Polygon, GeneratorFn, None]


class EngineState(str, Enum):
    IDLE = "idle"
    PROPOSING = "proposing"
    EVALUATING = "evaluating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class StepResult:
    """1 ステップの結果。

    - `score`: ステップ後のエンジンのスコア（棄却時は直前と同じ値）。
    - `candidate_score`: 候補を描画したときのスコア。
    - `delta`: `candidate_score - 直前のスコア`。
    - `index`: `step_many` で選ばれた候補の投入順 index（`step` は 0）。
    """

    accepted: bool
    score: float
    delta: float
    candidate: Polygon
    candidate_score: float
    covered: int = 0
    index: int = 0


class Engine:
    """ターゲット画像をポリゴンの積み重ねで近似する探索エンジン。

    Parameters
    ----------
    target : ImageBuffer
        近似対象。内部では読み取り専用のスナップショットとして保持する。
    shape : ImageShape | None
        キャンバス形状。指定され、`target.shape` と異なれば `ShapeMismatchError`。
    metric, fill_rule, blend_mode : 列挙子または設定文字列
        既定は MSE / EVEN_ODD / ALPHA。
    acceptance : AcceptancePolicy | None
        採用判定。既定は `GreedyAcceptance`。
    seed : int | None
        `np.random.default_rng` のシード（生成器を使う候補の再現性に使う）。
    generator : callable | None
        `(rng, shape) -> Polygon`。既定はターゲット色を拾う `RandomPolygonGenerator`。
    pool : EvaluationPool | int | None
        `step_many` の評価先。整数ならその数のワーカでエンジン所有のプールを作る（`close()` で停止）。
    history_limit : int | None
        履歴の上限（超えた分は古いものから捨てる）。None は無制限。
    initial : ImageBuffer | None
        白以外の初期キャンバス（保存した途中経過からの再開など）。
    """

    def __init__(
        self,
        target: ImageBuffer,
        shape: ImageShape | None = None,
        *,
        metric: SimilarityMetric | str | None = None,
        acceptance: AcceptancePolicy | None = None,
        fill_rule: FillRule | str | None = None,
        blend_mode: BlendMode | str | None = None,
        seed: int | None = None,
        generator: GeneratorFn | None = None,
        pool: EvaluationPool | int | None = None,
        history_limit: int | None = None,
        initial: ImageBuffer | None = None,
    ) -> None:
        if shape is not None and shape != target.shape:
            raise ShapeMismatchError(shape, target.shape)
        if history_limit is not None and int(history_limit) < 0:
            raise ValueError(f"history_limit は 0 以上: {history_limit}")
        self._metric = SimilarityMetric.parse(metric)
        self._fill_rule = FillRule.parse(fill_rule)
        self._blend_mode = BlendMode.parse(blend_mode)
        self._acceptance: AcceptancePolicy = acceptance or GreedyAcceptance()
        self._rng = np.random.default_rng(seed)
        self._history_limit = None if history_limit is None else int(history_limit)
        self._history: deque[tuple[Canvas, float]] = deque(maxlen=self._history_limit)
        self._state = EngineState.IDLE

        self._owns_generator = generator is None
        self._owns_pool = isinstance(pool, int) and not isinstance(pool, bool)
        if self._owns_pool:
            self._pool: EvaluationPool | None = EvaluationPool(int(pool))  # type: ignore[arg-type]
        else:
            self._pool = pool  # type: ignore[assignment]

        self._set_target(target)
        if generator is None:
            generator = RandomPolygonGenerator(target=self._target)
        self._generator: GeneratorFn = generator

        if initial is not None:
            self._target.require_same_shape(initial)
            self._current = Canvas.from_buffer(initial)
        else:
            self._current = Canvas.white(self._target.shape)
        self._score = self._metric.compare(self._current, self._target)
        logger.debug(
            "engine ready shape=%s metric=%s score=%.6g", self._target.shape, self._metric.value, self._score
        )

    # ── 参照 ───────────────────
    @property
    def target(self) -> ImageBuffer:
        """ターゲットのスナップショット（画素は書き込み不可）。"""
        return self._target

    @property
    def shape(self) -> ImageShape:
        return self._target.shape

    @property
    def score(self) -> float:
        return self._score

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def history_limit(self) -> int | None:
        return self._history_limit

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    @property
    def metric(self) -> SimilarityMetric:
        return self._metric

    @property
    def fill_rule(self) -> FillRule:
        return self._fill_rule

    @property
    def pool(self) -> EvaluationPool | None:
        return self._pool

    def current_canvas(self) -> Canvas:
        """現在のキャンバスの独立したコピーを返す。"""
        return self._current.clone()  # type: ignore[return-value]

    # ── 操作 ───────────────────
    def step(self, candidate: Candidate = None, blend_mode: BlendMode | str | None = None) -> StepResult:
        """候補 1 つを評価し、採用判定を適用する。

        `candidate` は `Polygon`、`(rng, shape) -> Polygon` の生成器、または None（既定の生成器）。
        """
        mode = self._resolve_mode(blend_mode)
        try:
            self._state = EngineState.PROPOSING
            polygon = self._propose(candidate)
            self._state = EngineState.EVALUATING
            scratch = self._current.clone()
            covered = render_polygon(scratch, polygon, mode=mode, rule=self._fill_rule)
            cand_score = self._metric.compare(scratch, self._target)
            return self._decide(polygon, scratch, cand_score, covered, 0)  # type: ignore[arg-type]
        finally:
            self._state = EngineState.IDLE

    def step_many(
        self, candidates: Sequence[Candidate], blend_mode: BlendMode | str | None = None
    ) -> StepResult:
        """全候補を同じ `current` スナップショットに対して評価し、最良の 1 つだけ採用判定にかける。

        プールがあればワーカへファンアウトし、勝者はこのスレッドで再描画して確定する。
        候補が空なら `ValueError`。
        """
        if len(candidates) == 0:
            raise ValueError("step_many には 1 つ以上の候補が必要です")
        mode = self._resolve_mode(blend_mode)
        try:
            self._state = EngineState.PROPOSING
            polygons = [self._propose(c) for c in candidates]
            self._state = EngineState.EVALUATING
            if self._pool is not None:
                packets = self._pool.evaluate(
                    self._current, self._target, polygons, mode, self._fill_rule, self._metric
                )
                scores = [p.score for p in packets]
            else:
                scores = [self._score_inline(p, mode) for p in polygons]
            best = min(range(len(polygons)), key=lambda i: (self._metric.sort_key(scores[i]), i))
            scratch = self._current.clone()
            covered = render_polygon(scratch, polygons[best], mode=mode, rule=self._fill_rule)
            cand_score = self._metric.compare(scratch, self._target)
            return self._decide(polygons[best], scratch, cand_score, covered, best)  # type: ignore[arg-type]
        finally:
            self._state = EngineState.IDLE

    def undo(self) -> float:
        """直前の採用を取り消し、復元したスコアを返す。履歴が空なら `EmptyHistoryError`。"""
        if not self._history:
            raise EmptyHistoryError("取り消せる履歴がありません")
        self._current, self._score = self._history.pop()
        logger.debug("undo score=%.6g history=%d", self._score, len(self._history))
        return self._score

    def reset(self, target: ImageBuffer | None = None) -> None:
        """白キャンバスに戻し履歴を消去する。`target` を渡すとその形状で作り直す。"""
        if target is not None:
            self._set_target(target)
            if self._owns_generator:
                self._generator = RandomPolygonGenerator(target=self._target)
        self._current = Canvas.white(self._target.shape)
        self._history.clear()
        self._score = self._metric.compare(self._current, self._target)
        self._state = EngineState.IDLE
        logger.debug("reset shape=%s score=%.6g", self._target.shape, self._score)

    def close(self) -> None:
        """エンジンが作ったプールを停止する（多重呼び出しに安全）。

        停止後の `step_many` はインラインで評価する。
        """
        if self._owns_pool and self._pool is not None:
            self._pool.close()
            self._pool = None

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Engine(shape={self._target.shape}, metric={self._metric.value}, "
            f"score={self._score:.6g}, history={len(self._history)})"
        )

    # ── 内部 ───────────────────
    def _set_target(self, target: ImageBuffer) -> None:
        snapshot = ImageBuffer(target.shape, target.pixels)
        snapshot.pixels.setflags(write=False)
        self._target = snapshot

    def _resolve_mode(self, blend_mode: BlendMode | str | None) -> BlendMode:
        return self._blend_mode if blend_mode is None else BlendMode.parse(blend_mode)

    def _propose(self, candidate: Candidate) -> Polygon:
        if candidate is None:
            polygon = self._generator(self._rng, self._target.shape)
        elif isinstance(candidate, Polygon):
            polygon = candidate
        elif callable(candidate):
            polygon = candidate(self._rng, self._target.shape)
        else:
            raise TypeError(f"candidate は Polygon/生成器/None のいずれか: {type(candidate)!r}")
        if not isinstance(polygon, Polygon):
            raise TypeError(f"生成器は Polygon を返す必要があります: {type(polygon)!r}")
        return polygon

    def _score_inline(self, polygon: Polygon, mode: BlendMode) -> float:
        scratch = self._current.clone()
        render_polygon(scratch, polygon, mode=mode, rule=self._fill_rule)
        return self._metric.compare(scratch, self._target)

    def _decide(
        self, polygon: Polygon, scratch: Canvas, cand_score: float, covered: int, index: int
    ) -> StepResult:
        old = self._score
        accepted = bool(self._acceptance(old, cand_score, self._metric, self._rng))
        if accepted:
            self._state = EngineState.ACCEPTED
            self._history.append((self._current, old))
            self._current = scratch
            self._score = cand_score
        else:
            self._state = EngineState.REJECTED
        logger.debug(
            "step %s index=%d score=%.6g candidate=%.6g covered=%d history=%d",
            self._state.value,
            index,
            self._score,
            cand_score,
            covered,
            len(self._history),
        )
        return StepResult(
            accepted=accepted,
            score=self._score,
            delta=cand_score - old,
            candidate=polygon,
            candidate_score=cand_score,
            covered=covered,
            index=index,
        )


__all__ = ["Engine", "EngineState", "StepResult"]
