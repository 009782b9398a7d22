"""
どこで: `engine.io.image_io`。
何を: 画像ファイル ⇔ `ImageBuffer` の変換アダプタ（読み込み/PNG 等への保存）とチャンネル数の変換。
なぜ: コーデックの詳細をコア（バッファ/探索）から隔離し、コアには常に `ImageBuffer` だけを渡すため。

- 依存は任意（`imageio`）。見つからない場合は呼び出し時に明確な RuntimeError を送出。
- 整数画像は dtype の最大値で 0–1 に正規化する（uint8 → /255, uint16 → /65535）。
- 保存は 8bit（0–1 → 0–255 に丸め）。
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import numpy as np

from engine.core.image import ImageBuffer, ImageShape
from util.color import LUMA_WEIGHTS
from util.paths import ensure_output_dir


def _imageio():
    try:
        import imageio.v3 as iio  # type: ignore
    except Exception as e:  # pragma: no cover - 環境依存
        raise RuntimeError("imageio が見つからないため画像を読み書きできません") from e
    return iio


def convert_channels(buffer: ImageBuffer, channels: int) -> ImageBuffer:
    """チャンネル数を変換した新しいバッファを返す。

    - 1 → 3/4: 輝度を RGB に複製（4 はアルファ 1.0）。
    - 3/4 → 1: BT.601 輝度。
    - 3 → 4: アルファ 1.0 を付与。4 → 3: アルファを捨てる（合成はしない）。
    """
    target = ImageShape(buffer.width, buffer.height, channels)
    src = buffer.pixels
    if buffer.channels == channels:
        return ImageBuffer(target, src)
    h, w = src.shape[:2]
    if channels == 1:
        rgb = src[..., :3]
        gray = rgb @ np.asarray(LUMA_WEIGHTS, dtype=np.float64)
        return ImageBuffer(target, gray)
    if buffer.channels == 1:
        rgb = np.repeat(src, 3, axis=2)
    else:
        rgb = src[..., :3]
    if channels == 3:
        return ImageBuffer(target, rgb)
    out = np.ones((h, w, 4), dtype=np.float64)
    out[..., :3] = rgb
    return ImageBuffer(target, out)


def _gray_alpha_to_rgba(arr: np.ndarray) -> np.ndarray:
    """`(H, W, 2)` の輝度+アルファ（PNG の LA）を RGBA に展開する。"""
    gray = arr[..., :1]
    return np.concatenate([gray, gray, gray, arr[..., 1:2]], axis=2)


def load_image(path: str | Path, channels: int | None = None) -> ImageBuffer:
    """画像ファイルを読み込み `ImageBuffer` を返す。

    Parameters
    ----------
    path : str | Path
        入力ファイル。存在しなければ `FileNotFoundError`。
    channels : int | None
        1/3/4 を指定するとその構成へ変換する。None はファイルのまま（輝度+アルファは RGBA）。
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    iio = _imageio()
    try:
        arr = np.asarray(iio.imread(p))
    except Exception as e:
        raise RuntimeError(f"画像の読み込みに失敗: {p}: {e}") from e
    if np.issubdtype(arr.dtype, np.integer):
        arr = arr.astype(np.float64) / float(np.iinfo(arr.dtype).max)
    elif arr.dtype == np.bool_:
        arr = arr.astype(np.float64)
    if arr.ndim == 3 and arr.shape[2] == 2:
        arr = _gray_alpha_to_rgba(arr)
    buffer = ImageBuffer.from_array(arr)
    if channels is not None:
        buffer = convert_channels(buffer, int(channels))
    return buffer


def to_uint8(buffer: ImageBuffer) -> np.ndarray:
    """8bit 配列（1 チャンネルは `(H, W)`、それ以外は `(H, W, C)`）へ量子化する。"""
    arr = np.rint(buffer.pixels * 255.0).astype(np.uint8)
    if buffer.channels == 1:
        return arr[..., 0]
    return arr


def save_image(buffer: ImageBuffer, path: str | Path | None = None) -> Path:
    """バッファを画像ファイルとして保存し、保存先を返す。

    `path` が None の場合は `data/output/` にタイムスタンプ名の PNG で保存する。
    """
    if path is None:
        out_dir = ensure_output_dir()
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        p = _unique_path(out_dir / f"{ts}_{buffer.width}x{buffer.height}.png")
    else:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
    iio = _imageio()
    try:
        iio.imwrite(p, to_uint8(buffer))
    except Exception as e:
        raise RuntimeError(f"画像の書き出しに失敗: {p}: {e}") from e
    return p


def _unique_path(path: Path) -> Path:
    if not path.exists():
        return path
    stem = path.stem
    suffix = path.suffix
    parent = path.parent
    i = 1
    while True:
        cand = parent / f"{stem}-{i}{suffix}"
        if not cand.exists():
            return cand
        i += 1


__all__ = ["load_image", "save_image", "convert_channels", "to_uint8"]
