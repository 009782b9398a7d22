"""
どこで: `engine.render` サブパッケージ。
何を: 合成モード（BlendMode）とポリゴン描画（render_polygon）を提供。
なぜ: ラスタライズ結果を画素値へ反映する処理を、評価エンジンから独立に再利用可能にするため。
"""

from .blend import BlendMode, blend_buffers, blend_pixels
from .compositor import composite_mask, render_polygon

__all__ = ["BlendMode", "blend_pixels", "blend_buffers", "render_polygon", "composite_mask"]
