"""
どこで: `api.runner`（近似ランナー）。
何を: YAML 設定と環境設定から `Engine` を組み立て、既定の乱数生成器で指定ステップ数だけ近似を進める。
なぜ: デモや外部の呼び出し側が、エンジンの結線（メトリクス/合成モード/ワーカ数/生成器）を毎回書かずに済むようにするため。

実行フロー（概要）:
1) 設定解決: 引数 `config` が None なら `util.utils.load_config()` を読む。引数 > 設定 > 既定 の順で採用。
2) ロギング: `logging.level` があればそれで `setup_default_logging()`（ホスト側で設定済みなら no-op）。
3) ターゲット: `ImageBuffer` をそのまま、パスなら `engine.io.image_io.load_image()` で読み込む。
4) 探索: `candidates_per_step == 1` は `Engine.step()`、2 以上は `Engine.step_many()`（ワーカ数 >= 1 でプロセス並列）。
5) 終了: エンジン所有のワーカプールを停止し、`(engine, accepted_polygons)` を返す。
   返したエンジンは以降もインライン評価で使える。

設定キー:
- `engine.{blend_mode, metric, fill_rule, seed, history_limit, num_workers, candidates_per_step, log_every}`
- `generator.{n_vertices, max_extent, alpha_min, alpha_max, max_attempts}`
- `logging.level`
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict

from common.logging import setup_default_logging
from common.settings import get as _get_settings
from engine.core.image import ImageBuffer
from engine.core.polygon import Polygon
from engine.search.engine import Engine, StepResult
from engine.search.generators import RandomPolygonGenerator
from util.utils import config_section, load_config, resolve_setting

logger = logging.getLogger(__name__)


def run_approximation(
    target: ImageBuffer | str | Path,
    steps: int,
    *,
    candidates_per_step: int | None = None,
    config: Dict[str, Any] | None = None,
    seed: int | None = None,
    num_workers: int | None = None,
    blend_mode: str | None = None,
    metric: str | None = None,
    on_step: Callable[[int, StepResult], None] | None = None,
) -> tuple[Engine, list[Polygon]]:
    """`steps` 回の探索ステップを実行し、`(engine, accepted_polygons)` を返す。

    Parameters
    ----------
    target : ImageBuffer | str | Path
        近似対象の画像（パスの場合は imageio で読み込む）。
    steps : int
        実行するステップ数（0 以上）。
    candidates_per_step : int | None
        1 ステップで評価する候補数。None で設定（なければ 1）。
    config : dict | None
        `load_config()` 互換の設定辞書。None でファイルから読み込む。
    seed, num_workers, blend_mode, metric
        設定値の上書き。`num_workers` の最終既定は `PCV_NUM_WORKERS`。
    on_step : callable | None
        各ステップ後に `(step_index, StepResult)` で呼ばれる。
    """
    if int(steps) < 0:
        raise ValueError(f"steps は 0 以上: {steps}")
    cfg = load_config() if config is None else config
    engine_cfg = config_section(cfg, "engine")
    gen_cfg = config_section(cfg, "generator")
    log_cfg = config_section(cfg, "logging")

    setup_default_logging(log_cfg.get("level"))

    k = int(resolve_setting(candidates_per_step, engine_cfg, "candidates_per_step", 1))
    if k < 1:
        raise ValueError(f"candidates_per_step は 1 以上: {k}")
    workers = int(
        resolve_setting(num_workers, engine_cfg, "num_workers", _get_settings().NUM_WORKERS)
    )
    log_every = max(0, int(engine_cfg.get("log_every", 100) or 0))

    if not isinstance(target, ImageBuffer):
        from engine.io.image_io import load_image

        target = load_image(target, channels=engine_cfg.get("channels"))

    generator = RandomPolygonGenerator.from_config(gen_cfg, target=target)
    engine = Engine(
        target,
        metric=resolve_setting(metric, engine_cfg, "metric", None),
        fill_rule=engine_cfg.get("fill_rule"),
        blend_mode=resolve_setting(blend_mode, engine_cfg, "blend_mode", None),
        seed=resolve_setting(seed, engine_cfg, "seed", None),
        generator=generator,
        pool=workers if (k > 1 and workers >= 1) else None,
        history_limit=engine_cfg.get("history_limit"),
    )

    accepted: list[Polygon] = []
    logger.info(
        "approximation start shape=%s steps=%d candidates=%d workers=%d metric=%s score=%.6g",
        engine.shape,
        steps,
        k,
        workers if k > 1 else 0,
        engine.metric.value,
        engine.score,
    )
    t0 = time.perf_counter()
    with engine:
        for i in range(int(steps)):
            if k == 1:
                result = engine.step()
            else:
                result = engine.step_many([None] * k)
            if result.accepted:
                accepted.append(result.candidate)
            if on_step is not None:
                on_step(i, result)
            if log_every and (i + 1) % log_every == 0:
                logger.info(
                    "step %d/%d score=%.6g accepted=%d", i + 1, steps, engine.score, len(accepted)
                )
    logger.info(
        "approximation done steps=%d accepted=%d score=%.6g elapsed=%.2fs",
        steps,
        len(accepted),
        engine.score,
        time.perf_counter() - t0,
    )
    return engine, accepted


__all__ = ["run_approximation"]
