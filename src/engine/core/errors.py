"""
どこで: `engine.core.errors`。
何を: キャンバス/ラスタライズ/評価エンジンが送出する例外の型階層。
なぜ: いずれも呼び出し側で回復可能な局所的エラーであり、候補の差し替えや中断の判断を
      呼び出し側に委ねるため。標準例外も多重継承し、既存の `except ValueError` 等でも捕捉できる。
"""

from __future__ import annotations


class CanvasError(Exception):
    """本パッケージの例外の基底。"""


class ShapeMismatchError(CanvasError, ValueError):
    """形状（幅・高さ・チャンネル数）が異なるバッファ同士を比較/合成しようとした。"""

    def __init__(self, expected: object, actual: object, message: str | None = None) -> None:
        if message is None:
            message = f"shape mismatch: expected {expected}, got {actual}"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class OutOfBoundsError(CanvasError, IndexError):
    """バッファ範囲外の画素へアクセスした。"""

    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        super().__init__(f"pixel ({x}, {y}) is outside {width}x{height}")
        self.x = x
        self.y = y


class DegeneratePolygonError(CanvasError, ValueError):
    """頂点数が 3 未満、または符号付き面積がゼロのポリゴン。"""


class InvalidCoordinateError(CanvasError, ValueError):
    """非有限（NaN/inf）の頂点座標。"""


class EmptyHistoryError(CanvasError, LookupError):
    """取り消す履歴が無い状態で undo した。"""


__all__ = [
    "CanvasError",
    "ShapeMismatchError",
    "OutOfBoundsError",
    "DegeneratePolygonError",
    "InvalidCoordinateError",
    "EmptyHistoryError",
]
