"""
どこで: `engine.io.serialize`。
何を: `Polygon`/ポリゴン列/`ImageBuffer` をプレーンな値（dict/list/str）へ可逆に変換し、JSON セッションとして保存/復元する。
なぜ: コアの値型は隠れ状態を持たないため、外部形式への変換をこの層だけで完結させられるから。

仕様（要点）:
- 座標/色は Python float のまま出力する（JSON の repr 往復で値は完全一致）。
- バッファのサンプルはリトルエンディアン float64 の生バイト列を base64 で格納する（`dtype: "<f8"`）。
- セッション JSON: `{"version", "saved_at", "polygons", "canvas"}`。`canvas` は省略可。
"""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from engine.core.image import ImageBuffer, ImageShape
from engine.core.polygon import Polygon

SESSION_VERSION = 1
_WIRE_DTYPE = "<f8"


def polygon_to_dict(polygon: Polygon) -> dict[str, Any]:
    return {
        "vertices": [[float(x), float(y)] for x, y in polygon.vertices],
        "color": [float(c) for c in polygon.color],
    }


def polygon_from_dict(data: Mapping[str, Any]) -> Polygon:
    """`polygon_to_dict` の逆変換。必須キー欠落は `ValueError`。"""
    try:
        vertices = data["vertices"]
        color = data["color"]
    except KeyError as e:
        raise ValueError(f"polygon dict に必須キーがありません: {e.args[0]!r}") from e
    return Polygon(vertices, tuple(color))


def polygons_to_list(polygons: Iterable[Polygon]) -> list[dict[str, Any]]:
    return [polygon_to_dict(p) for p in polygons]


def polygons_from_list(items: Sequence[Mapping[str, Any]]) -> list[Polygon]:
    return [polygon_from_dict(d) for d in items]


def buffer_to_dict(buffer: ImageBuffer) -> dict[str, Any]:
    raw = np.ascontiguousarray(buffer.data, dtype=_WIRE_DTYPE).tobytes()
    return {
        "width": buffer.width,
        "height": buffer.height,
        "channels": buffer.channels,
        "dtype": _WIRE_DTYPE,
        "data": base64.b64encode(raw).decode("ascii"),
    }


def buffer_from_dict(data: Mapping[str, Any]) -> ImageBuffer:
    """`buffer_to_dict` の逆変換。形状とサンプル数が合わなければ `ShapeMismatchError`。"""
    try:
        shape = ImageShape(int(data["width"]), int(data["height"]), int(data["channels"]))
        payload = data["data"]
    except KeyError as e:
        raise ValueError(f"buffer dict に必須キーがありません: {e.args[0]!r}") from e
    dtype = data.get("dtype", _WIRE_DTYPE)
    if dtype != _WIRE_DTYPE:
        raise ValueError(f"未対応の dtype: {dtype!r}")
    samples = np.frombuffer(base64.b64decode(payload), dtype=_WIRE_DTYPE)
    return ImageBuffer(shape, samples)


def save_session(
    path: str | Path,
    polygons: Iterable[Polygon],
    canvas: ImageBuffer | None = None,
) -> Path:
    """採用済みポリゴン列（と任意でキャンバス）を JSON に保存する。"""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {
        "version": SESSION_VERSION,
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "polygons": polygons_to_list(polygons),
    }
    if canvas is not None:
        data["canvas"] = buffer_to_dict(canvas)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return p


def load_session(path: str | Path) -> tuple[list[Polygon], ImageBuffer | None]:
    """`save_session` の出力を読み込み `(polygons, canvas)` を返す。"""
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)
    version = data.get("version")
    if version != SESSION_VERSION:
        raise ValueError(f"未対応のセッション version: {version!r}")
    polygons = polygons_from_list(data.get("polygons", []))
    canvas_data = data.get("canvas")
    canvas = buffer_from_dict(canvas_data) if canvas_data is not None else None
    return polygons, canvas


__all__ = [
    "polygon_to_dict",
    "polygon_from_dict",
    "polygons_to_list",
    "polygons_from_list",
    "buffer_to_dict",
    "buffer_from_dict",
    "save_session",
    "load_session",
]
