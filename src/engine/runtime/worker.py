"""
どこで: `engine.runtime` のワーカ実行層。
何を: 候補ポリゴン群を `EvaluationTask` としてワーカ（プロセス/インライン）へ配り、各ワーカが
      自前のスクラッチへ描画→スコア計算した `EvaluationPacket` を集めて index 順に返す。
      例外は `EvaluationError` で候補 index 付きに伝搬し、`close()` は安全に停止する。
なぜ: 候補評価は共有可変状態に触れないため並列化でき、確定（current の差し替え）だけを
      オーケストレータ側の単一スレッドに残せるから。

注意（重要）:
- `current`/`target` はタスクごとに読み取り専用スナップショットとして送る（ワーカは複製して描画）。
- 結果は完了順に届くが、呼び出し側へは必ず投入順（index）に並べて返す。
- macOS など spawn 方式の環境でも動くよう、ワーカへ渡すものはすべてピクル可能な値に限る。
"""

from __future__ import annotations

import logging
import multiprocessing as mp
from queue import Empty
from typing import Sequence, cast

import numpy as np

from common.settings import get as _get_settings
from engine.core.image import Canvas, ImageBuffer, ImageShape
from engine.core.polygon import Polygon
from engine.metrics.similarity import SimilarityMetric
from engine.raster.scanline import FillRule
from engine.render.blend import BlendMode
from engine.render.compositor import render_polygon

from .packet import EvaluationPacket
from .task import EvaluationTask

# 結果待ちでワーカの生存を確認する間隔（秒）
_POLL_INTERVAL = 0.1


class EvaluationError(Exception):
    """候補評価中の例外をラップして step/候補 index の文脈を付与。

    multiprocessing 経由のシリアライズ/デシリアライズに耐えるよう、
    元例外は保持せずメッセージだけで再構築できるようにする。
    """

    def __init__(
        self,
        step_id: int | None = None,
        index: int | None = None,
        original: BaseException | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"EvaluationError(step_id={step_id}, index={index}): {original!r}"
        super().__init__(message)
        self.step_id = step_id
        self.index = index
        self.original = original

    def __reduce__(self):
        # ピクル化時は文脈とメッセージのみで再構築できるようにする
        return (EvaluationError, (self.step_id, self.index, None, str(self)))


def score_candidate(
    current: np.ndarray,
    target: np.ndarray,
    polygon: Polygon,
    mode: BlendMode | str | None,
    rule: FillRule | str | None,
    metric: SimilarityMetric | str | None,
) -> tuple[float, int]:
    """`current` の複製へ候補を描画し、`(score, covered)` を返す。入力配列は変更しない。"""
    h, w, c = current.shape
    scratch = Canvas(ImageShape(int(w), int(h), int(c)), current)
    covered = render_polygon(scratch, polygon, mode=mode, rule=rule)
    score = SimilarityMetric.parse(metric).compare_arrays(scratch.pixels, target)
    return score, covered


def _execute_task(task: EvaluationTask) -> tuple[EvaluationPacket | None, EvaluationError | None]:
    """1 候補ぶんの描画～スコア計算～Packet 生成を共通化。

    例外は内部で捕捉して `EvaluationError` を返し、呼び出し側では put するだけにする。
    """
    logger = logging.getLogger(__name__)
    try:
        score, covered = score_candidate(
            task.current, task.target, task.polygon, task.mode, task.rule, task.metric
        )
        return EvaluationPacket(task.step_id, task.index, score, covered), None
    except Exception as e:
        # 例外を統一ログ（stacktrace 付き）
        logger.exception(
            "[worker] stage=evaluate step_id=%s index=%s error=%s", task.step_id, task.index, e
        )
        return None, EvaluationError(task.step_id, task.index, e)


class _WorkerProcess(mp.Process):
    """バックグラウンドで候補を評価し EvaluationPacket を返す。"""

    def __init__(self, task_q: mp.Queue, result_q: mp.Queue):
        super().__init__(daemon=True)
        self.task_q, self.result_q = task_q, result_q

    def run(self) -> None:
        for task in iter(self.task_q.get, None):  # None = sentinel
            packet, err = _execute_task(task)
            self.result_q.put(err if err is not None else packet)


class EvaluationPool:
    """候補評価のファンアウトとワーカープール管理のみを担当。

    - `num_workers < 1` は呼び出しスレッド内で順に評価する（インライン）。
    - それ以外は `num_workers` 個のプロセスを起動し、タスクキュー経由で配る。
    - 勝者の選択や current の確定は行わない（`engine.search.engine.Engine` の責務）。
    """

    def __init__(self, num_workers: int | None = None) -> None:
        if num_workers is None:
            num_workers = _get_settings().NUM_WORKERS
        self._num_workers = max(0, int(num_workers))
        self._step_id = 0
        self._inline = self._num_workers < 1
        self._logger = logging.getLogger(__name__)
        self._task_q: mp.Queue | None
        self._result_q: mp.Queue | None
        if self._inline:
            self._task_q = None
            self._result_q = None
            self._workers: list[_WorkerProcess] = []
        else:
            self._task_q = mp.Queue()
            self._result_q = mp.Queue()
            self._workers = [
                _WorkerProcess(self._task_q, self._result_q) for _ in range(self._num_workers)
            ]
            for w in self._workers:
                w.start()
        # 冪等な close() のための内部フラグ
        self._closed: bool = False

    # --------- public API ---------
    @property
    def num_workers(self) -> int:
        return self._num_workers

    @property
    def inline(self) -> bool:
        return self._inline

    @property
    def closed(self) -> bool:
        return self._closed

    def evaluate(
        self,
        current: ImageBuffer,
        target: ImageBuffer,
        candidates: Sequence[Polygon],
        mode: BlendMode | str | None = None,
        rule: FillRule | str | None = None,
        metric: SimilarityMetric | str | None = None,
    ) -> list[EvaluationPacket]:
        """全候補を評価し、投入順（index）に並んだ `EvaluationPacket` のリストを返す。

        いずれかの候補で例外が起きた場合は `EvaluationError` を送出する。
        """
        if self._closed:
            raise RuntimeError("EvaluationPool is closed")
        current.require_same_shape(target)
        self._step_id += 1
        step_id = self._step_id
        mode_v = BlendMode.parse(mode).value
        rule_v = FillRule.parse(rule).value
        metric_v = SimilarityMetric.parse(metric).value
        cur = current.as_array(copy=True)
        tgt = target.as_array(copy=False)
        cur.setflags(write=False)
        tasks = [
            EvaluationTask(step_id, i, poly, mode_v, rule_v, metric_v, cur, tgt)
            for i, poly in enumerate(candidates)
        ]
        if not tasks:
            return []
        if self._inline:
            return self._evaluate_inline(tasks)
        return self._evaluate_workers(step_id, tasks)

    def close(self) -> None:
        """ワーカプールを停止してキューをクローズ（多重呼び出しに安全）。"""
        if self._closed:
            return
        # 以降の例外で途中離脱しても、次回は no-op になるよう先にフラグを立てる
        self._closed = True
        if self._inline:
            return
        task_q = cast(mp.Queue, self._task_q)
        try:
            for _ in self._workers:
                task_q.put_nowait(None)
            for w in self._workers:
                w.join(timeout=1.0)
                if w.is_alive():
                    self._logger.debug("terminating unresponsive worker pid=%s", w.pid)
                    w.terminate()
        finally:
            task_q.close()
            cast(mp.Queue, self._result_q).close()

    def __enter__(self) -> "EvaluationPool":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --------- internals ---------
    def _evaluate_inline(self, tasks: list[EvaluationTask]) -> list[EvaluationPacket]:
        packets: list[EvaluationPacket] = []
        for task in tasks:
            packet, err = _execute_task(task)
            if err is not None:
                raise err
            packets.append(cast(EvaluationPacket, packet))
        return packets

    def _evaluate_workers(
        self, step_id: int, tasks: list[EvaluationTask]
    ) -> list[EvaluationPacket]:
        task_q = cast(mp.Queue, self._task_q)
        for task in tasks:
            task_q.put(task)

        results: dict[int, EvaluationPacket] = {}
        while len(results) < len(tasks):
            try:
                item = cast(mp.Queue, self._result_q).get(timeout=_POLL_INTERVAL)
            except Empty:
                dead = [w for w in self._workers if not w.is_alive()]
                if dead:
                    raise EvaluationError(
                        step_id, None, message=f"{len(dead)} worker(s) exited during evaluation"
                    )
                continue
            if item.step_id != step_id:
                # 以前に失敗した step の残り結果は捨てる
                continue
            if isinstance(item, EvaluationError):
                raise item
            results[item.index] = item
        return [results[i] for i in range(len(tasks))]


__all__ = ["EvaluationPool", "EvaluationError", "score_candidate"]
