"""
どこで: `util.paths`。
何を: 近似結果（PNG/JSON）の保存先ディレクトリの生成と解決ユーティリティを提供する。
なぜ: ランナー/デモから簡潔に保存先を扱え、並行呼び出しでも安全に作成できるようにするため。
"""

from __future__ import annotations

from pathlib import Path

from .utils import find_project_root


def ensure_output_dir(name: str = "output") -> Path:
    """出力先 `data/<name>/` を作成して返す。

    - プロジェクトルート直下の `data/` 配下に作成する。
    - 既存の場合もそのまま Path を返す。
    - 並行呼び出しに対して `exist_ok=True` で安全。
    """
    root = find_project_root(Path(__file__).parent)
    out = root / "data" / name
    out.mkdir(parents=True, exist_ok=True)
    return out
