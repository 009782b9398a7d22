"""
どこで: `engine.render.blend`。
何を: 合成モード `BlendMode`（閉じた列挙）と、チャンネル独立の合成式の適用。
なぜ: 同じ候補ポリゴンを異なるモードで評価できるよう、モードを描画呼び出しの引数に分離するため。

合成式（s: ソース色, d: 既存画素, a: ソースのアルファ。すべて 0–1）:

    d' = clamp(d * (1 - a) + f(s, d) * a, 0, 1)

| モード      | f(s, d)                                                       |
|-------------|---------------------------------------------------------------|
| ALPHA       | s（通常の source-over）                                        |
| MULTIPLY    | s * d                                                         |
| SCREEN      | 1 - (1 - s)(1 - d)                                            |
| BURN        | d >= 1 → 1, s <= 0 → 0, それ以外 1 - min(1, (1 - d) / s)       |
| DODGE       | d <= 0 → 0, s >= 1 → 1, それ以外 min(1, d / (1 - s))           |
| DARKEN      | min(s, d)                                                     |
| LIGHTEN     | max(s, d)                                                     |
| OVERLAY     | d <= 0.5 → 2sd, それ以外 1 - 2(1 - s)(1 - d)                   |
| DIFFERENCE  | abs(s - d)                                                    |
| ADD         | min(1, s + d)                                                 |

チャンネルの扱い:
- 1 チャンネル: ソース RGB の BT.601 輝度を s とする。
- 3 チャンネル: RGB をそれぞれ s とする。
- 4 チャンネル: RGB は上表、キャンバスのアルファは常に `a + d_a * (1 - a)`（source-over）。
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Sequence

import numpy as np

from engine.core.image import ImageBuffer
from util.color import luma


def _mix_alpha(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.broadcast_to(s, d.shape)


def _mix_multiply(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return s * d


def _mix_screen(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return 1.0 - (1.0 - s) * (1.0 - d)


def _mix_burn(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    s_b = np.broadcast_to(s, d.shape)
    with np.errstate(divide="ignore", invalid="ignore"):
        burned = 1.0 - np.minimum(1.0, (1.0 - d) / s_b)
    out = np.where(s_b <= 0.0, 0.0, burned)
    return np.where(d >= 1.0, 1.0, out)


def _mix_dodge(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    s_b = np.broadcast_to(s, d.shape)
    with np.errstate(divide="ignore", invalid="ignore"):
        dodged = np.minimum(1.0, d / (1.0 - s_b))
    out = np.where(s_b >= 1.0, 1.0, dodged)
    return np.where(d <= 0.0, 0.0, out)


def _mix_darken(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.minimum(s, d)


def _mix_lighten(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.maximum(s, d)


def _mix_overlay(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.where(d <= 0.5, 2.0 * s * d, 1.0 - 2.0 * (1.0 - s) * (1.0 - d))


def _mix_difference(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.abs(s - d)


def _mix_add(s: np.ndarray, d: np.ndarray) -> np.ndarray:
    return np.minimum(1.0, s + d)


class BlendMode(str, Enum):
    """合成モード（列挙可能な閉じた集合）。"""

    ALPHA = "alpha"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    BURN = "burn"
    DODGE = "dodge"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    OVERLAY = "overlay"
    DIFFERENCE = "difference"
    ADD = "add"

    @classmethod
    def parse(cls, value: "BlendMode | str | None") -> "BlendMode":
        """設定値（大文字小文字不問）から列挙子へ。None は既定の ALPHA。

        `normal`/`over` は ALPHA、`color_burn`/`color_dodge` は BURN/DODGE の別名として受理する。
        """
        if value is None:
            return cls.ALPHA
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_")
        key = _ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValueError(f"unknown blend mode: {value!r}; allowed={allowed}")

    def mix(self, s: np.ndarray, d: np.ndarray) -> np.ndarray:
        """アルファ適用前の合成値 f(s, d) を返す。"""
        return _MIXERS[self](s, d)


_ALIASES = {"normal": "alpha", "over": "alpha", "color_burn": "burn", "color_dodge": "dodge"}

_MIXERS: dict[BlendMode, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    BlendMode.ALPHA: _mix_alpha,
    BlendMode.MULTIPLY: _mix_multiply,
    BlendMode.SCREEN: _mix_screen,
    BlendMode.BURN: _mix_burn,
    BlendMode.DODGE: _mix_dodge,
    BlendMode.DARKEN: _mix_darken,
    BlendMode.LIGHTEN: _mix_lighten,
    BlendMode.OVERLAY: _mix_overlay,
    BlendMode.DIFFERENCE: _mix_difference,
    BlendMode.ADD: _mix_add,
}


def source_channels(color: Sequence[float], channels: int) -> np.ndarray:
    """RGBA 色をキャンバスのチャンネル構成に合わせたソース値 `(C,)` へ変換する。

    4 チャンネルの末尾（アルファ）はソースのアルファそのもの。
    """
    r, g, b, a = (float(c) for c in color)
    if channels == 1:
        return np.array([luma((r, g, b))], dtype=np.float64)
    if channels == 3:
        return np.array([r, g, b], dtype=np.float64)
    if channels == 4:
        return np.array([r, g, b, a], dtype=np.float64)
    raise ValueError(f"unsupported channel count: {channels}")


def blend_pixels(
    dst: np.ndarray,
    color: Sequence[float],
    mode: BlendMode | str | None = None,
    alpha: float | None = None,
) -> np.ndarray:
    """画素列 `(..., C)` に単色を合成した新しい配列を返す（入力は変更しない）。

    Parameters
    ----------
    dst : np.ndarray
        既存画素。末尾軸がチャンネル（1/3/4）。
    color : Sequence[float]
        ソース色 RGBA（0–1）。
    mode : BlendMode | str | None, default ALPHA
        合成モード。
    alpha : float | None
        ソースのアルファ。None なら `color[3]`。
    """
    blend_mode = BlendMode.parse(mode)
    d = np.asarray(dst, dtype=np.float64)
    channels = d.shape[-1]
    a = float(color[3]) if alpha is None else float(alpha)
    a = 0.0 if a < 0.0 else 1.0 if a > 1.0 else a
    src = source_channels(color, channels)

    n_color = 3 if channels == 4 else channels
    out = np.empty_like(d)
    d_col = d[..., :n_color]
    mixed = blend_mode.mix(src[:n_color], d_col)
    out[..., :n_color] = d_col * (1.0 - a) + mixed * a
    if channels == 4:
        out[..., 3] = a + d[..., 3] * (1.0 - a)
    np.clip(out, 0.0, 1.0, out=out)
    return out


def blend_buffers(
    dst: ImageBuffer,
    src: ImageBuffer,
    mode: BlendMode | str | None = None,
    alpha: float = 1.0,
) -> None:
    """バッファ `src` 全体を `dst` へ合成する（`dst` をインプレース更新）。

    - 形状が異なれば `ShapeMismatchError`。
    - 4 チャンネルの `src` は画素ごとのアルファ（× `alpha`）を使い、それ以外は `alpha` 一定。
    """
    dst.require_same_shape(src)
    blend_mode = BlendMode.parse(mode)
    a_glob = 0.0 if alpha < 0.0 else 1.0 if alpha > 1.0 else float(alpha)

    d = dst.pixels
    s = src.pixels
    channels = dst.channels
    n_color = 3 if channels == 4 else channels
    if channels == 4:
        a = s[..., 3:4] * a_glob
    else:
        a = np.full(d.shape[:-1] + (1,), a_glob, dtype=np.float64)

    d_col = d[..., :n_color]
    mixed = blend_mode.mix(s[..., :n_color], d_col)
    out = np.empty_like(d)
    out[..., :n_color] = d_col * (1.0 - a) + mixed * a
    if channels == 4:
        out[..., 3] = a[..., 0] + d[..., 3] * (1.0 - a[..., 0])
    np.clip(out, 0.0, 1.0, out=out)
    d[...] = out


__all__ = ["BlendMode", "blend_pixels", "blend_buffers", "source_channels"]
