from __future__ import annotations

import numpy as np
import pytest

from engine.core.errors import CanvasError, OutOfBoundsError, ShapeMismatchError
from engine.core.image import Canvas, ImageBuffer, ImageShape


def test_image_shape_validation() -> None:
    s = ImageShape(3, 2, 3)
    assert s.size == 18
    assert s.n_pixels == 6
    assert s.array_shape == (2, 3, 3)
    with pytest.raises(ValueError):
        ImageShape(0, 2, 3)
    with pytest.raises(ValueError):
        ImageShape(2, -1, 3)
    with pytest.raises(ValueError):
        ImageShape(2, 2, 2)
    with pytest.raises(ValueError):
        ImageShape(2.5, 2, 3)  # type: ignore[arg-type]


def test_buffer_flat_layout_is_row_major_interleaved() -> None:
    shape = ImageShape(2, 2, 3)
    data = np.arange(12, dtype=np.float64) / 12.0
    buf = ImageBuffer(shape, data)
    assert buf.data.shape == (12,)
    # pixels[y, x, c] == data[(y * width + x) * channels + c]
    for y in range(2):
        for x in range(2):
            for c in range(3):
                assert buf.pixels[y, x, c] == data[(y * 2 + x) * 3 + c]
    assert buf.pixels.flags["C_CONTIGUOUS"]


def test_buffer_length_mismatch_raises() -> None:
    with pytest.raises(ShapeMismatchError):
        ImageBuffer(ImageShape(2, 2, 3), np.zeros(11))


def test_buffer_clamps_on_construction() -> None:
    buf = ImageBuffer(ImageShape(1, 1, 3), [-0.5, 0.5, 1.5])
    assert buf.get(0, 0) == (0.0, 0.5, 1.0)


def test_get_set_roundtrip_and_bounds() -> None:
    buf = ImageBuffer(ImageShape(3, 2, 4))
    buf.set(2, 1, (0.1, 0.2, 0.3, 0.4))
    assert buf.get(2, 1) == (0.1, 0.2, 0.3, 0.4)
    for x, y in [(-1, 0), (0, -1), (3, 0), (0, 2)]:
        with pytest.raises(OutOfBoundsError):
            buf.get(x, y)
        with pytest.raises(OutOfBoundsError):
            buf.set(x, y, (0.0, 0.0, 0.0, 0.0))
    # IndexError/CanvasError どちらでも捕捉できる
    with pytest.raises(IndexError):
        buf.get(5, 5)
    with pytest.raises(CanvasError):
        buf.get(5, 5)


def test_set_clamps_and_validates_length() -> None:
    buf = ImageBuffer(ImageShape(2, 2, 3))
    buf.set(0, 0, (2.0, -1.0, 0.5))
    assert buf.get(0, 0) == (1.0, 0.0, 0.5)
    with pytest.raises(ValueError):
        buf.set(0, 0, (0.1, 0.2))
    with pytest.raises(ValueError):
        buf.set(0, 0, (0.1, float("nan"), 0.2))


def test_all_write_paths_reject_non_finite() -> None:
    shape = ImageShape(2, 1, 1)
    with pytest.raises(ValueError):
        ImageBuffer(shape, [float("nan"), 0.5])
    with pytest.raises(ValueError):
        ImageBuffer(shape, [float("inf"), 0.5])
    with pytest.raises(ValueError):
        ImageBuffer.from_array(np.full((2, 2), np.nan))
    buf = ImageBuffer.filled(shape, 0.25)
    with pytest.raises(ValueError):
        buf.fill(float("nan"))
    # 拒否された書き込みはバッファを変更しない
    assert buf.get(0, 0) == (0.25,) and buf.get(1, 0) == (0.25,)


def test_fractional_negative_coordinates_are_out_of_bounds() -> None:
    buf = ImageBuffer.filled(ImageShape(2, 2, 1), 0.5)
    with pytest.raises(OutOfBoundsError):
        buf.get(-0.5, 0)
    with pytest.raises(OutOfBoundsError):
        buf.set(0, -0.25, 0.0)
    assert buf.get(np.int64(1), 1) == (0.5,)


def test_single_channel_accepts_scalar() -> None:
    buf = ImageBuffer(ImageShape(2, 2, 1))
    buf.set(1, 1, 0.75)
    assert buf.get(1, 1) == (0.75,)


def test_clone_is_independent_and_equal() -> None:
    buf = ImageBuffer.filled(ImageShape(3, 3, 3), 0.5)
    other = buf.clone()
    assert other == buf
    assert type(other) is ImageBuffer
    other.set(0, 0, (0.0, 0.0, 0.0))
    assert other != buf
    assert buf.get(0, 0) == (0.5, 0.5, 0.5)


def test_fill_white_and_canvas_white() -> None:
    shape = ImageShape(4, 3, 4)
    canvas = Canvas.white(shape)
    assert np.all(canvas.pixels == 1.0)
    buf = ImageBuffer(shape)
    assert np.all(buf.pixels == 0.0)
    buf.fill_white()
    assert buf == canvas


def test_fill_rejects_wrong_shape() -> None:
    buf = ImageBuffer(ImageShape(2, 2, 3))
    buf.fill((0.1, 0.2, 0.3))
    assert buf.get(1, 1) == (0.1, 0.2, 0.3)
    with pytest.raises(ValueError):
        buf.fill((0.1, 0.2))


def test_from_array_uint8_and_gray() -> None:
    arr = np.array([[0, 255], [51, 102]], dtype=np.uint8)
    buf = ImageBuffer.from_array(arr)
    assert buf.shape == ImageShape(2, 2, 1)
    assert buf.get(1, 0) == (1.0,)
    assert buf.get(0, 1) == pytest.approx((0.2,))
    with pytest.raises(ValueError):
        ImageBuffer.from_array(np.zeros((2, 2, 2, 2)))


def test_as_array_copy_semantics() -> None:
    buf = ImageBuffer.filled(ImageShape(2, 2, 1), 0.25)
    copied = buf.as_array()
    copied[...] = 0.0
    assert buf.get(0, 0) == (0.25,)
    view = buf.as_array(copy=False)
    view[0, 0, 0] = 1.0
    assert buf.get(0, 0) == (1.0,)


def test_equality_requires_same_shape() -> None:
    a = ImageBuffer(ImageShape(2, 3, 1))
    b = ImageBuffer(ImageShape(3, 2, 1))
    assert a != b
    with pytest.raises(ShapeMismatchError):
        a.require_same_shape(b)


def test_canvas_from_buffer_copies() -> None:
    buf = ImageBuffer.filled(ImageShape(2, 2, 3), 0.3)
    canvas = Canvas.from_buffer(buf)
    assert canvas == buf
    canvas.fill(0.9)
    assert buf.get(0, 0) == (0.3, 0.3, 0.3)
