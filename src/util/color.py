"""
どこで: `util.color`。
何を: 色指定の正規化/変換（Hex, グレースケール, RGBA 0–1, RGBA 0–255）と輝度変換を一元化。
なぜ: Polygon/ジェネレータ/設定ファイルで同一の受理仕様とエラーメッセージを提供するため。
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

# ITU-R BT.601 の輝度係数（和は 1.0 なので灰色はそのまま保たれる）
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> tuple[float, float, float, float]:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    大文字/小文字は不問。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        r = int(t[0:2], 16)
        g = int(t[2:4], 16)
        b = int(t[4:6], 16)
        a = int(t[6:8], 16) if len(t) == 8 else 255
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def _as_sequence(value: object) -> Sequence[float | int] | None:
    if isinstance(value, np.ndarray):
        return value.ravel().tolist()
    if isinstance(value, (list, tuple)):
        return value  # type: ignore[return-value]
    return None


def normalize_color(value: object) -> tuple[float, float, float, float]:
    """色を RGBA(0–1) へ正規化する。

    - 受理: Hex 文字列, グレースケール数値, (r,g,b[,a]) （0–1 または 0–255）, 1 次元 ndarray
    - 返値: (r,g,b,a) （0–1）
    - いずれかの成分が 1.0 を超える場合は 0–255 指定とみなしてスケールする。
    - 非有限値は `ValueError`。範囲外は [0,1] にクランプする。
    """
    if isinstance(value, str):
        return parse_hex_color_str(value)
    if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
        v = float(value)
        if not math.isfinite(v):
            raise ValueError(f"color component must be finite: {value!r}")
        g = _clamp01(v / 255.0 if v > 1.0 else v)
        return (g, g, g, 1.0)
    seq = _as_sequence(value)
    if seq is None:
        raise ValueError(f"unsupported color type: {type(value)!r}")
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        comps = [float(c) for c in seq]
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    if not all(math.isfinite(c) for c in comps):
        raise ValueError(f"color component must be finite: {value!r}")
    if any(c > 1.0 for c in comps):
        # 0–255 とみなし、整数丸め → 0–1 へスケール
        u8 = [max(0, min(255, int(round(c)))) for c in comps]
        if len(u8) == 3:
            u8.append(255)
        return (u8[0] / 255.0, u8[1] / 255.0, u8[2] / 255.0, u8[3] / 255.0)
    a = comps[3] if len(comps) == 4 else 1.0
    return (_clamp01(comps[0]), _clamp01(comps[1]), _clamp01(comps[2]), _clamp01(a))


def luma(rgb: Sequence[float]) -> float:
    """RGB(0–1) から BT.601 の輝度（0–1）を返す。"""
    r, g, b = float(rgb[0]), float(rgb[1]), float(rgb[2])
    if r == g == b:
        return _clamp01(r)
    return _clamp01(LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b)


def to_u8_rgba(value: object) -> tuple[int, int, int, int]:
    """色を RGBA(0–255) へ変換する。"""
    r, g, b, a = normalize_color(value)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)), int(round(a * 255)))


__all__ = [
    "LUMA_WEIGHTS",
    "parse_hex_color_str",
    "normalize_color",
    "luma",
    "to_u8_rgba",
]
