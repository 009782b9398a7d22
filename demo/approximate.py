"""
どこで: demo/approximate.py（デモ用スクリプト）
何を: 画像ファイルをポリゴンの積み重ねで近似し、結果 PNG と採用ポリゴン列（JSON）を保存する。
なぜ: `run_approximation` の設定（configs/default.yaml / config.yaml）と出力の流れを一通り確認するため。

起動: `python demo/approximate.py <image> [steps] [candidates_per_step]`

注意:
- 画像入出力は任意依存の imageio を使う（`pip install -e .[io]`）。
- 並列評価は `engine.num_workers`（または `PCV_NUM_WORKERS`）で有効化する。
"""

from __future__ import annotations

import sys
from pathlib import Path

# src/ を import パスへ追加（簡易ブート）
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from api import run_approximation  # type: ignore  # after sys.path tweak
from engine.io.image_io import save_image
from engine.io.serialize import save_session
from util.paths import ensure_output_dir


def main(argv: list[str]) -> int:
    if not argv:
        print(__doc__)
        return 2
    image = Path(argv[0])
    steps = int(argv[1]) if len(argv) > 1 else 1000
    k = int(argv[2]) if len(argv) > 2 else None
    engine, polygons = run_approximation(image, steps, candidates_per_step=k)
    out_dir = ensure_output_dir()
    png = save_image(engine.current_canvas(), out_dir / f"{image.stem}_approx.png")
    js = save_session(out_dir / f"{image.stem}_approx.json", polygons, engine.current_canvas())
    print(f"score={engine.score:.6g} polygons={len(polygons)}")
    print(f"saved: {png}")
    print(f"saved: {js}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
