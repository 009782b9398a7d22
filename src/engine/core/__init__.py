"""
どこで: `engine.core` サブパッケージ。
何を: 画素バッファ（ImageShape/ImageBuffer/Canvas）、多角形 `Polygon`、エラー種別。
なぜ: ラスタライズ・合成・評価・探索の全層が共有する値型を最下層にまとめるため。
"""

from .errors import (
    CanvasError,
    DegeneratePolygonError,
    EmptyHistoryError,
    InvalidCoordinateError,
    OutOfBoundsError,
    ShapeMismatchError,
)
from .image import Canvas, ImageBuffer, ImageShape
from .polygon import Polygon

__all__ = [
    "ImageShape",
    "ImageBuffer",
    "Canvas",
    "Polygon",
    "CanvasError",
    "ShapeMismatchError",
    "OutOfBoundsError",
    "DegeneratePolygonError",
    "InvalidCoordinateError",
    "EmptyHistoryError",
]
