"""
どこで: `engine.raster` サブパッケージ。
何を: ポリゴン → 被覆マスクの走査線ラスタライザ（偶奇/非ゼロ規則、半開区間の境界規則）。
なぜ: 隣接ポリゴンの共有辺で重複塗り/隙間を出さない決定的な被覆を合成層へ渡すため。
"""

from .scanline import FillRule, coverage_mask, coverage_pixels, rasterize

__all__ = ["FillRule", "rasterize", "coverage_mask", "coverage_pixels"]
