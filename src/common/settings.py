"""
どこで: `common.settings`
何を: プロジェクトの環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。

対応する環境変数:
- `PCV_USE_NUMBA`      : 0 でラスタライズの JIT を使わず純 Python カーネルで実行。
- `PCV_NUM_WORKERS`    : 候補評価プールの既定ワーカ数（0 以下はインライン評価）。
- `PCV_LOG_LEVEL`      : `setup_default_logging` の既定レベル。
- `PCV_AREA_EPS`       : 退化ポリゴン判定に使う符号付き面積の閾値。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, env_str


@dataclass
class _Settings:
    # ラスタライズ
    USE_NUMBA: bool = True
    AREA_EPS: float = 1e-12

    # 候補評価
    NUM_WORKERS: int = 0

    # Misc
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - bool は `env_bool`、int は `env_int`、float は `env_float` を使用。
    - 面積閾値は負値を許容しない（既定へ戻す）。
    """
    _settings.USE_NUMBA = env_bool("PCV_USE_NUMBA", True)

    eps = env_float("PCV_AREA_EPS", 1e-12)
    _settings.AREA_EPS = eps if eps is not None and eps >= 0.0 else 1e-12

    _settings.NUM_WORKERS = env_int("PCV_NUM_WORKERS", 0, min_value=0) or 0

    _settings.LOG_LEVEL = (env_str("PCV_LOG_LEVEL", "INFO") or "INFO").upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
