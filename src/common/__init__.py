"""
どこで: `common` パッケージ。
何を: ロギング初期化・環境変数パース・型付き設定などの横断的ユーティリティ。
なぜ: engine/api の双方から再利用する基盤を分離し、依存の向きを単純化するため。
"""

from .logging import setup_default_logging

__all__ = [
    "setup_default_logging",
]
