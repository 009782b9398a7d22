from __future__ import annotations

import numpy as np
import pytest

from engine.core.image import ImageBuffer, ImageShape
from engine.io.image_io import convert_channels, to_uint8


def test_convert_gray_to_rgba_and_back() -> None:
    gray = ImageBuffer.filled(ImageShape(3, 2, 1), 0.4)
    rgba = convert_channels(gray, 4)
    assert rgba.shape == ImageShape(3, 2, 4)
    assert rgba.get(0, 0) == pytest.approx((0.4, 0.4, 0.4, 1.0))
    back = convert_channels(rgba, 1)
    assert back.get(2, 1) == pytest.approx((0.4,))


def test_convert_rgba_to_rgb_drops_alpha() -> None:
    buf = ImageBuffer(ImageShape(1, 1, 4), [0.1, 0.2, 0.3, 0.0])
    rgb = convert_channels(buf, 3)
    assert rgb.get(0, 0) == (0.1, 0.2, 0.3)


def test_to_uint8_quantizes_and_squeezes_gray() -> None:
    gray = ImageBuffer(ImageShape(2, 1, 1), [0.0, 1.0])
    arr = to_uint8(gray)
    assert arr.shape == (1, 2)
    assert arr.dtype == np.uint8
    assert arr.tolist() == [[0, 255]]


@pytest.mark.optional
def test_save_and_load_png_roundtrip(tmp_path) -> None:
    pytest.importorskip("imageio")
    from engine.io.image_io import load_image, save_image

    rng = np.random.default_rng(5)
    arr = rng.integers(0, 256, size=(6, 7, 3), dtype=np.uint8)
    buf = ImageBuffer.from_array(arr)
    path = save_image(buf, tmp_path / "img.png")
    loaded = load_image(path)
    assert loaded == buf
    assert load_image(path, channels=1).channels == 1


def test_load_missing_file_raises(tmp_path) -> None:
    from engine.io.image_io import load_image

    with pytest.raises(FileNotFoundError):
        load_image(tmp_path / "missing.png")


class _FakeImageIO:
    """固定配列を返す imageio.v3 の代役（ファイルは存在確認のみ）。"""

    def __init__(self, array: np.ndarray) -> None:
        self.array = array

    def imread(self, path):
        return self.array


def test_load_gray_alpha_image_expands_to_rgba(tmp_path, monkeypatch) -> None:
    import engine.io.image_io as image_io

    la = np.array([[[255, 255], [51, 0]]], dtype=np.uint8)  # (1, 2, 2)
    monkeypatch.setattr(image_io, "_imageio", lambda: _FakeImageIO(la))
    path = tmp_path / "la.png"
    path.write_bytes(b"")

    rgba = image_io.load_image(path)
    assert rgba.shape == ImageShape(2, 1, 4)
    assert rgba.get(0, 0) == (1.0, 1.0, 1.0, 1.0)
    assert rgba.get(1, 0) == pytest.approx((0.2, 0.2, 0.2, 0.0))
    gray = image_io.load_image(path, channels=1)
    assert gray.get(1, 0) == pytest.approx((0.2,))
