from __future__ import annotations

import json

import numpy as np
import pytest

from engine.core.image import ImageBuffer, ImageShape
from engine.core.polygon import Polygon
from engine.io.serialize import (
    buffer_from_dict,
    buffer_to_dict,
    load_session,
    polygon_from_dict,
    polygon_to_dict,
    polygons_from_list,
    polygons_to_list,
    save_session,
)


def test_polygon_dict_is_plain_and_lossless() -> None:
    p = Polygon([(0.1, 0.2), (10.000000001, 0.0), (3.3, 7.7)], color=(0.1, 0.2, 0.3, 0.4))
    d = polygon_to_dict(p)
    assert d == json.loads(json.dumps(d))
    assert polygon_from_dict(json.loads(json.dumps(d))) == p


def test_polygon_dict_missing_key() -> None:
    with pytest.raises(ValueError):
        polygon_from_dict({"vertices": [[0, 0], [1, 0], [0, 1]]})


def test_polygon_list_preserves_order() -> None:
    polys = [
        Polygon([(0, 0), (1, 0), (0, 1)]),
        Polygon([(5, 5), (9, 5), (9, 9)], color="#ff000080"),
    ]
    assert polygons_from_list(polygons_to_list(polys)) == polys


def test_buffer_dict_is_bit_exact() -> None:
    rng = np.random.default_rng(11)
    buf = ImageBuffer(ImageShape(5, 3, 4), rng.random(60))
    d = buffer_to_dict(buf)
    assert d["dtype"] == "<f8"
    restored = buffer_from_dict(json.loads(json.dumps(d)))
    assert restored == buf


def test_buffer_dict_rejects_unknown_dtype() -> None:
    d = buffer_to_dict(ImageBuffer(ImageShape(1, 1, 1)))
    d["dtype"] = "<f4"
    with pytest.raises(ValueError):
        buffer_from_dict(d)


def test_session_roundtrip(tmp_path) -> None:
    polys = [Polygon([(0, 0), (4, 0), (0, 4)], color=(0.5, 0.5, 0.5, 0.5))]
    canvas = ImageBuffer.filled(ImageShape(3, 3, 3), 0.75)
    path = save_session(tmp_path / "out" / "session.json", polys, canvas)
    got_polys, got_canvas = load_session(path)
    assert got_polys == polys
    assert got_canvas == canvas

    path2 = save_session(tmp_path / "no_canvas.json", polys)
    assert load_session(path2) == (polys, None)
