"""
どこで: `engine.metrics` サブパッケージ。
何を: キャンバスとターゲット画像の類似度指標（MSE/MAE/PSNR）。
"""

from .similarity import SimilarityMetric

__all__ = ["SimilarityMetric"]
