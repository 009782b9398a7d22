"""
どこで: `engine.io` サブパッケージ。
何を: 画像ファイル入出力（imageio 経由、任意依存）と、ポリゴン/バッファのプレーン値シリアライズ。
なぜ: コーデックや保存形式をコアから隔離し、コアには `ImageBuffer`/`Polygon` だけを見せるため。
"""

from .image_io import convert_channels, load_image, save_image
from .serialize import (
    buffer_from_dict,
    buffer_to_dict,
    load_session,
    polygon_from_dict,
    polygon_to_dict,
    polygons_from_list,
    polygons_to_list,
    save_session,
)

__all__ = [
    "load_image",
    "save_image",
    "convert_channels",
    "polygon_to_dict",
    "polygon_from_dict",
    "polygons_to_list",
    "polygons_from_list",
    "buffer_to_dict",
    "buffer_from_dict",
    "save_session",
    "load_session",
]
